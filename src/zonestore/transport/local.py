"""Local directory transport.

Maps a zone onto <local_root>/<zone>. Used for web roots mounted on the
publishing host and for development; semantics match the FTP transport,
including removal of emptied nested directories on delete.
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO

from zonestore.contracts.errors import NotFoundError, TransportError
from zonestore.core.config import ZoneSettings


class LocalTransport:
    """Zone stored in a local directory tree."""

    scheme = "local"

    def __init__(self, settings: ZoneSettings) -> None:
        if settings.local_root is None:
            raise TransportError("local transport requires local_root")
        self._settings = settings
        self._root = (Path(settings.local_root) / settings.zone).resolve()
        self._connected = False

    @property
    def zone(self) -> str:
        return self._settings.zone

    @property
    def root(self) -> Path:
        return self._root

    @property
    def connected(self) -> bool:
        return self._connected

    def __enter__(self) -> "LocalTransport":
        self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"LocalTransport(root={str(self._root)!r}, connected={self._connected})"

    def connect(self) -> None:
        if self._connected:
            return
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise TransportError(f"Cannot create zone root {self._root}: {e}") from e
        self._connected = True

    def close(self) -> None:
        self._connected = False

    def _resolve(self, remote_path: str) -> Path:
        """Map a zone-relative path to a local path inside the zone root."""
        if not self._connected:
            self.connect()
        candidate = (self._root / remote_path.lstrip("/")).resolve()
        if candidate != self._root and self._root not in candidate.parents:
            raise TransportError(
                f"Path escapes zone '{self.zone}': {remote_path}",
                remote_path=remote_path,
            )
        return candidate

    def ensure_directory(self, path: str, recursive: bool = True) -> None:
        directory = self._resolve(path)
        try:
            directory.mkdir(parents=recursive, exist_ok=True)
        except OSError as e:
            raise TransportError(f"mkdir {path} failed: {e}", remote_path=path) from e

    def upload(self, content: bytes | BinaryIO, remote_path: str) -> None:
        """Write content atomically (temp file in the same directory, then rename)."""
        target = self._resolve(remote_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".upload-")
            try:
                with os.fdopen(fd, "wb") as f:
                    if isinstance(content, bytes):
                        f.write(content)
                    else:
                        shutil.copyfileobj(content, f)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise TransportError(
                f"upload {remote_path} failed: {e}", remote_path=remote_path
            ) from e

    def download_to(self, remote_path: str, fileobj: BinaryIO) -> int:
        source = self._resolve(remote_path)
        written = 0
        try:
            with open(source, "rb") as f:
                for chunk in iter(lambda: f.read(64 * 1024), b""):
                    fileobj.write(chunk)
                    written += len(chunk)
        except (FileNotFoundError, IsADirectoryError) as e:
            raise NotFoundError(
                f"download {remote_path}: not found", remote_path=remote_path
            ) from e
        except OSError as e:
            raise TransportError(
                f"download {remote_path} failed: {e}", remote_path=remote_path
            ) from e
        return written

    def download(self, remote_path: str) -> bytes:
        source = self._resolve(remote_path)
        try:
            return source.read_bytes()
        except (FileNotFoundError, IsADirectoryError) as e:
            raise NotFoundError(
                f"download {remote_path}: not found", remote_path=remote_path
            ) from e
        except OSError as e:
            raise TransportError(
                f"download {remote_path} failed: {e}", remote_path=remote_path
            ) from e

    def delete(self, remote_path: str) -> None:
        target = self._resolve(remote_path)
        try:
            target.unlink()
        except FileNotFoundError as e:
            raise NotFoundError(
                f"delete {remote_path}: not found", remote_path=remote_path
            ) from e
        except OSError as e:
            raise TransportError(
                f"delete {remote_path} failed: {e}", remote_path=remote_path
            ) from e

        directory = target.parent
        # Only directories below the zone root are removed
        if directory != self._root and not any(directory.iterdir()):
            try:
                directory.rmdir()
            except OSError as e:
                raise TransportError(
                    f"rmdir {directory} failed: {e}", remote_path=remote_path
                ) from e

    def exists(self, remote_path: str) -> bool:
        return self._resolve(remote_path).is_file()
