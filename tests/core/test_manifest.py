"""Tests for the JSON-file resource repository."""

import json
from pathlib import Path

import pytest

from zonestore.contracts.resources import Resource


def _resource(
    sha1: str = "a" * 40,
    filename: str = "f.txt",
    collection_name: str = "persistent",
    relative_publication_path: str = "",
) -> Resource:
    return Resource(
        sha1=sha1,
        filename=filename,
        file_size=3,
        collection_name=collection_name,
        relative_publication_path=relative_publication_path,
    )


class TestResourceManifest:
    """Test collection membership bookkeeping."""

    def test_add_and_find(self) -> None:
        from zonestore.core.manifest import ResourceManifest

        manifest = ResourceManifest()
        resource = _resource()
        manifest.add(resource)

        assert manifest.find_by_collection_name("persistent") == [resource]
        assert manifest.find_by_sha1("a" * 40, "persistent") == resource
        assert manifest.find_by_sha1("a" * 40, "static") is None
        assert manifest.find_by_collection_name("static") == []

    def test_add_is_idempotent(self) -> None:
        from zonestore.core.manifest import ResourceManifest

        manifest = ResourceManifest()
        manifest.add(_resource())
        manifest.add(_resource())

        assert len(manifest.find_by_collection_name("persistent")) == 1

    def test_same_content_different_filenames_are_distinct(self) -> None:
        from zonestore.core.manifest import ResourceManifest

        manifest = ResourceManifest()
        manifest.add(_resource(filename="a.txt"))
        manifest.add(_resource(filename="b.txt"))

        assert len(manifest.find_by_collection_name("persistent")) == 2
        assert manifest.count_references("a" * 40) == 2

    def test_remove(self) -> None:
        from zonestore.core.manifest import ResourceManifest

        manifest = ResourceManifest()
        resource = _resource()
        manifest.add(resource)

        assert manifest.remove(resource) is True
        assert manifest.remove(resource) is False
        assert manifest.find_by_collection_name("persistent") == []

    def test_count_references_spans_collections(self) -> None:
        from zonestore.core.manifest import ResourceManifest

        manifest = ResourceManifest()
        manifest.add(_resource())
        manifest.add(_resource(collection_name="static", relative_publication_path="x/"))

        assert manifest.count_references("a" * 40) == 2
        assert manifest.count_references("b" * 40) == 0
        assert list(manifest.collection_names()) == ["persistent", "static"]

    def test_persists_to_file(self, tmp_path: Path) -> None:
        from zonestore.core.manifest import ResourceManifest

        path = tmp_path / "state" / "manifest.json"
        manifest = ResourceManifest(path)
        manifest.add(_resource())

        reloaded = ResourceManifest(path)

        assert reloaded.find_by_collection_name("persistent") == [_resource()]
        assert json.loads(path.read_text())["version"] == 1
        assert not path.with_suffix(".json.tmp").exists()

    def test_unreadable_file_raises_storage_error(self, tmp_path: Path) -> None:
        from zonestore.contracts.errors import StorageError
        from zonestore.core.manifest import ResourceManifest

        path = tmp_path / "manifest.json"
        path.write_text("{not json")

        with pytest.raises(StorageError, match="Cannot read manifest"):
            ResourceManifest(path)

    def test_unknown_version_raises_storage_error(self, tmp_path: Path) -> None:
        from zonestore.contracts.errors import StorageError
        from zonestore.core.manifest import ResourceManifest

        path = tmp_path / "manifest.json"
        path.write_text(json.dumps({"version": 99, "collections": {}}))

        with pytest.raises(StorageError, match="Unsupported manifest version"):
            ResourceManifest(path)
