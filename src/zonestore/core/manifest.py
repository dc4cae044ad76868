"""JSON-file resource repository.

Records which resources exist in which collection, the way the hosting
application's resource repository would. Collection membership read from
here is what a publish pass reconciles the target zone against.

File format:
    {"version": 1, "collections": {"persistent": [{"sha1": ..., ...}, ...]}}
"""

import json
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from zonestore.contracts.errors import StorageError
from zonestore.contracts.resources import Resource

MANIFEST_VERSION = 1


class ResourceManifest:
    """Resource repository persisted as a JSON document.

    A resource is identified within its collection by (sha1, publication
    path, filename); re-adding the same one is a no-op. With path=None the
    manifest lives in memory only.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._collections: dict[str, list[Resource]] = {}
        if path is not None and path.exists():
            self._collections = self._read(path)

    @property
    def path(self) -> Path | None:
        return self._path

    @staticmethod
    def _read(path: Path) -> dict[str, list[Resource]]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read manifest {path}: {e}") from e
        if data.get("version") != MANIFEST_VERSION:
            raise StorageError(
                f"Unsupported manifest version {data.get('version')!r} in {path}"
            )
        return {
            name: [Resource.from_dict(item) for item in items]
            for name, items in data.get("collections", {}).items()
        }

    def _write(self) -> None:
        if self._path is None:
            return
        doc: dict[str, Any] = {
            "version": MANIFEST_VERSION,
            "collections": {
                name: [r.to_dict() for r in resources]
                for name, resources in sorted(self._collections.items())
            },
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(doc, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self._path)

    @staticmethod
    def _identity(resource: Resource) -> tuple[str, str, str]:
        return (resource.sha1, resource.relative_publication_path, resource.filename)

    def add(self, resource: Resource) -> None:
        with self._lock:
            members = self._collections.setdefault(resource.collection_name, [])
            key = self._identity(resource)
            if any(self._identity(r) == key for r in members):
                return
            members.append(resource)
            self._write()

    def remove(self, resource: Resource) -> bool:
        """Remove a resource. Returns False if it was not recorded."""
        with self._lock:
            members = self._collections.get(resource.collection_name, [])
            key = self._identity(resource)
            kept = [r for r in members if self._identity(r) != key]
            if len(kept) == len(members):
                return False
            self._collections[resource.collection_name] = kept
            self._write()
            return True

    def find_by_collection_name(self, collection_name: str) -> list[Resource]:
        with self._lock:
            return list(self._collections.get(collection_name, []))

    def find_by_sha1(self, sha1: str, collection_name: str) -> Resource | None:
        """First resource with this hash in the collection, if any."""
        with self._lock:
            for resource in self._collections.get(collection_name, []):
                if resource.sha1 == sha1:
                    return resource
        return None

    def collection_names(self) -> Iterable[str]:
        with self._lock:
            return sorted(self._collections)

    def count_references(self, sha1: str) -> int:
        """How many recorded resources, in any collection, point at sha1."""
        with self._lock:
            return sum(
                1
                for resources in self._collections.values()
                for r in resources
                if r.sha1 == sha1
            )
