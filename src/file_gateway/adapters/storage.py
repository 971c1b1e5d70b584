"""
Local filesystem storage for uploaded images.

Files live under ``{root}/{user_id}/{token}_{original_name}``. The user
directory listing is the only index; there is no sidecar metadata.
"""

import logging
import os
import secrets
import string
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import BinaryIO, List, Optional, Tuple
from urllib.parse import quote, unquote, urlsplit

from file_gateway.errors import (
    FileTooLargeError,
    InvalidImageUrlError,
    StorageError,
    UnsafePathError,
)

logger = logging.getLogger(__name__)

TOKEN_ALPHABET = string.ascii_letters + string.digits + "-_"
TOKEN_SIZE = 10
COPY_CHUNK_SIZE = 64 * 1024
FALLBACK_FILENAME = "file"


def generate_token(size: int = TOKEN_SIZE) -> str:
    """Return a random URL-safe token of ``size`` characters."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(size))


def client_basename(original_name: Optional[str]) -> str:
    """Reduce a client-supplied filename to its last path segment."""
    name = PurePosixPath((original_name or "").replace("\\", "/")).name
    name = name.replace("\x00", "")
    if name in ("", ".", ".."):
        return FALLBACK_FILENAME
    return name


@dataclass(frozen=True)
class StoredFile:
    """A file written to the user's directory."""
    user_id: str
    filename: str
    path: Path
    size_bytes: int


class LocalImageStorage:
    """Stores, lists and deletes image files under a per-user directory."""

    def __init__(self, root: Path, base_url: str, url_path: str, max_bytes: int):
        """
        Args:
            root: Upload root; :meth:`ensure_root` creates it.
            base_url: Prefix for built URLs, e.g. ``http://localhost:3000``.
            url_path: Path the root is served under, e.g. ``/uploads``.
            max_bytes: Largest file accepted by :meth:`save_upload`.
        """
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")
        self.url_path = "/" + url_path.strip("/")
        self.max_bytes = max_bytes

    def ensure_root(self) -> None:
        """Create the upload root (and parents) if it does not exist yet."""
        if not self.root.is_dir():
            self.root.mkdir(parents=True, exist_ok=True)
            logger.info("Created upload root at: %s", self.root)

    def user_dir(self, user_id: str) -> Path:
        return self.root / user_id

    def make_filename(self, original_name: Optional[str]) -> str:
        return f"{generate_token()}_{client_basename(original_name)}"

    def build_url(self, user_id: str, filename: str) -> str:
        """Externally visible URL of a stored file."""
        return f"{self.base_url}{quote(self.url_path)}/{quote(user_id)}/{quote(filename)}"

    def save_upload(self, user_id: str, original_name: Optional[str], stream: BinaryIO) -> StoredFile:
        """
        Copy ``stream`` into the user's directory under a freshly generated name.

        The target is created exclusively, so an existing file is never
        replaced. When the stream turns out to be larger than ``max_bytes``
        or the write fails, the partial file is removed before raising.

        Raises:
            FileTooLargeError: The stream exceeded ``max_bytes``.
            StorageError: The directory or file could not be written.
        """
        user_dir = self.user_dir(user_id)
        filename = self.make_filename(original_name)
        path = user_dir / filename

        try:
            user_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Could not create user directory %s: %s", user_dir, e)
            raise StorageError("Failed to save file") from e

        try:
            target = open(path, "xb")
        except OSError as e:
            logger.error("Could not create %s: %s", path, e)
            raise StorageError("Failed to save file") from e

        written = 0
        try:
            with target:
                while True:
                    chunk = stream.read(COPY_CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise FileTooLargeError(self.max_bytes)
                    target.write(chunk)
        except FileTooLargeError:
            self._discard(path)
            logger.info("Rejected upload %s for user %s: larger than %d bytes",
                        filename, user_id, self.max_bytes)
            raise
        except OSError as e:
            self._discard(path)
            logger.error("Error writing %s: %s", path, e)
            raise StorageError("Failed to save file") from e

        logger.info("Stored %s for user %s (%d bytes)", filename, user_id, written)
        return StoredFile(user_id=user_id, filename=filename, path=path, size_bytes=written)

    def list_files(self, user_id: str) -> List[str]:
        """
        Names of the regular files in the user's directory.

        Order is whatever the directory listing yields. Subdirectories are
        skipped. A missing directory counts as a read failure.
        """
        user_dir = self.user_dir(user_id)
        try:
            with os.scandir(user_dir) as entries:
                return [entry.name for entry in entries if entry.is_file(follow_symlinks=False)]
        except OSError as e:
            logger.error("Error reading directory %s: %s", user_dir, e)
            raise StorageError("Failed to read directory") from e

    def resolve_image_url(self, user_id: str, image_url: str) -> Path:
        """
        Map a served image URL back to a path inside the user's directory.

        Only the last path segment of the URL is used. It is joined to the
        user's directory and the canonical result must sit directly inside
        that directory. The returned path is the directory entry itself, so
        a symlink is returned as the link rather than its target.

        Raises:
            InvalidImageUrlError: The URL has no usable filename segment.
            UnsafePathError: The resolved path leaves the user's directory.
        """
        try:
            url_path = urlsplit(image_url).path
        except ValueError as e:
            raise InvalidImageUrlError() from e

        filename = unquote(url_path.rsplit("/", 1)[-1])
        if filename in ("", ".", "..") or "/" in filename or "\\" in filename or "\x00" in filename:
            logger.warning("Rejected image URL for user %s: %r", user_id, image_url)
            raise InvalidImageUrlError()

        user_dir = self.user_dir(user_id).resolve()
        entry = user_dir / filename
        canonical = entry.resolve()
        if canonical.parent != user_dir:
            logger.warning("Rejected path outside user directory for user %s: %s", user_id, canonical)
            raise UnsafePathError()
        return entry

    def delete_by_url(self, user_id: str, image_url: str) -> Path:
        """
        Delete the file an image URL points at.

        Raises:
            InvalidImageUrlError, UnsafePathError: See :meth:`resolve_image_url`.
            StorageError: The file could not be removed.
        """
        path = self.resolve_image_url(user_id, image_url)
        try:
            path.unlink()
        except OSError as e:
            logger.error("Error deleting %s: %s", path, e)
            raise StorageError("Failed to delete file") from e
        logger.info("Deleted %s for user %s", path.name, user_id)
        return path

    def check_ready(self) -> Tuple[bool, str]:
        """Whether the upload root is a writable directory."""
        if not self.root.is_dir():
            return False, f"upload root missing: {self.root}"
        if not os.access(self.root, os.W_OK | os.X_OK):
            return False, f"upload root not writable: {self.root}"
        return True, "ready"

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove partial file %s: %s", path, e)
