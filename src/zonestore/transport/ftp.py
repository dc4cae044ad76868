"""FTP transport.

Wraps one fsspec FTP filesystem scoped to a zone. The filesystem (and its
ftplib session) is opened by connect() (or on first use) and kept for the
transport's lifetime; close() releases it. A session is not safe for
concurrent use, so parallel transfers lease separate transports from a
TransportPool.

Error mapping:
- missing paths (fsspec FileNotFoundError, 550 replies) -> NotFoundError
- any other ftplib error -> TransportError
- connect/login failures and dropped sessions -> TransportConnectionError
"""

import ftplib
import shutil
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from io import BytesIO
from typing import BinaryIO

from fsspec.implementations.ftp import FTPFileSystem

from zonestore.contracts.errors import (
    NotFoundError,
    TransportConnectionError,
    TransportError,
)
from zonestore.core.config import ZoneSettings
from zonestore.core.logging import get_logger
from zonestore.core.paths import is_nested, parent_path, zone_path
from zonestore.core.scratch import copy_stream

logger = get_logger(__name__)


def open_filesystem(settings: ZoneSettings) -> FTPFileSystem:
    """Open a private fsspec FTP filesystem for settings.

    Instance caching is skipped so every transport owns its session, and
    directory listings are not cached because other sessions write to the
    same zone.
    """
    return FTPFileSystem(
        host=settings.host,
        port=settings.port,
        username=settings.user,
        password=settings.password,
        timeout=settings.timeout_seconds,
        skip_instance_cache=True,
        use_listings_cache=False,
    )


class FtpTransport:
    """Remote zone reached over FTP (passive mode by default)."""

    scheme = "ftp"

    def __init__(
        self,
        settings: ZoneSettings,
        fs_factory: Callable[[ZoneSettings], FTPFileSystem] = open_filesystem,
    ) -> None:
        self._settings = settings
        self._fs_factory = fs_factory
        self._fs: FTPFileSystem | None = None
        # Directories known to exist in this session
        self._known_dirs: set[str] = set()

    @property
    def zone(self) -> str:
        return self._settings.zone

    @property
    def connected(self) -> bool:
        return self._fs is not None

    def __enter__(self) -> "FtpTransport":
        self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"FtpTransport(host={self._settings.host!r}, zone={self.zone!r}, "
            f"connected={self.connected})"
        )

    # === Session lifecycle ===

    def connect(self) -> None:
        """Open and authenticate the session. No-op if already connected.

        Raises:
            TransportConnectionError: If the server is unreachable or rejects
                the credentials
        """
        if self._fs is not None:
            return

        s = self._settings
        try:
            fs = self._fs_factory(s)
            fs.ftp.set_pasv(s.passive)
        except ftplib.all_errors as e:
            raise TransportConnectionError(
                f"Could not connect to ftp://{s.user}@{s.host}:{s.port}: {e}"
            ) from e

        logger.debug("ftp session opened", host=s.host, zone=self.zone)
        self._fs = fs

    def close(self) -> None:
        """Close the session. No-op if not connected."""
        if self._fs is None:
            return
        fs, self._fs = self._fs, None
        self._known_dirs.clear()
        try:
            fs.ftp.quit()
        except ftplib.all_errors as e:
            # Server already gone; drop the socket without the goodbye
            logger.debug("ftp quit failed, closing socket", error=str(e))
            fs.ftp.close()

    def _drop_session(self) -> None:
        fs, self._fs = self._fs, None
        self._known_dirs.clear()
        if fs is not None:
            fs.ftp.close()

    def _session(self) -> FTPFileSystem:
        if self._fs is None:
            self.connect()
        assert self._fs is not None  # Set by connect()
        return self._fs

    def _absolute(self, remote_path: str) -> str:
        return zone_path(self.zone, remote_path).rstrip("/")

    @contextmanager
    def _errors(
        self, operation: str, remote_path: str, *, not_found: bool = True
    ) -> Iterator[None]:
        """Translate fsspec and ftplib failures into transport errors."""
        try:
            yield
        except FileNotFoundError as e:
            if not_found:
                raise NotFoundError(
                    f"{operation} {remote_path}: not found", remote_path=remote_path
                ) from e
            raise TransportError(
                f"{operation} {remote_path} failed: {e}", remote_path=remote_path
            ) from e
        except ftplib.error_perm as e:
            if not_found and str(e).startswith("550"):
                raise NotFoundError(
                    f"{operation} {remote_path}: not found ({e})",
                    remote_path=remote_path,
                ) from e
            raise TransportError(
                f"{operation} {remote_path} failed: {e}", remote_path=remote_path
            ) from e
        except (ftplib.error_temp, ftplib.error_reply, ftplib.error_proto) as e:
            raise TransportError(
                f"{operation} {remote_path} failed: {e}", remote_path=remote_path
            ) from e
        except (OSError, EOFError) as e:
            # Socket level failure, the session is unusable
            self._drop_session()
            raise TransportConnectionError(
                f"{operation} {remote_path}: connection lost ({e})",
                remote_path=remote_path,
            ) from e

    # === Operations ===

    def ensure_directory(self, path: str, recursive: bool = True) -> None:
        """Create a zone-relative directory (and its parents if recursive)."""
        fs = self._session()
        directory = self._absolute(path)
        if directory in self._known_dirs:
            return

        try:
            with self._errors("mkdir", directory, not_found=False):
                if recursive:
                    fs.makedirs(directory, exist_ok=True)
                else:
                    fs.mkdir(directory, create_parents=False)
        except TransportConnectionError:
            raise
        except TransportError:
            # Another session may have created it in the meantime
            if not self._is_directory(fs, directory):
                raise
        self._known_dirs.add(directory)

    def _is_directory(self, fs: FTPFileSystem, directory: str) -> bool:
        with self._errors("stat", directory, not_found=False):
            return bool(fs.isdir(directory))

    def upload(self, content: bytes | BinaryIO, remote_path: str) -> None:
        """Store content at remote_path, creating parent directories."""
        fs = self._session()
        parent = remote_path.rsplit("/", 1)[0] if "/" in remote_path else ""
        self.ensure_directory(parent)

        stream: BinaryIO = BytesIO(content) if isinstance(content, bytes) else content
        with self._errors("upload", remote_path, not_found=False):
            with fs.open(self._absolute(remote_path), "wb") as f:
                shutil.copyfileobj(stream, f)

    def download_to(self, remote_path: str, fileobj: BinaryIO) -> int:
        """Stream remote_path into fileobj. Returns bytes written."""
        fs = self._session()
        with self._errors("download", remote_path):
            with fs.open(self._absolute(remote_path), "rb") as f:
                return copy_stream(f, fileobj)

    def download(self, remote_path: str) -> bytes:
        buffer = BytesIO()
        self.download_to(remote_path, buffer)
        return buffer.getvalue()

    def delete(self, remote_path: str) -> None:
        """Delete remote_path, then its parent directory if nested and empty."""
        fs = self._session()
        absolute = self._absolute(remote_path)

        with self._errors("delete", remote_path):
            fs.rm_file(absolute)

        if is_nested(absolute):
            directory = parent_path(absolute)
            try:
                with self._errors("rmdir", directory, not_found=False):
                    fs.rmdir(directory)
            except TransportConnectionError:
                raise
            except TransportError:
                # Directory still holds other files
                return
            self._known_dirs.discard(directory)

    def exists(self, remote_path: str) -> bool:
        fs = self._session()
        try:
            with self._errors("exists", remote_path):
                info = fs.info(self._absolute(remote_path))
        except NotFoundError:
            return False
        return bool(info.get("type") == "file")
