"""zonestore: content-addressed remote storage with CDN zone publication."""

__version__ = "0.1.0"
