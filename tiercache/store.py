"""Filesystem-backed persistent tier.

Each record is stored as two artifacts in the base directory, both named
after the MD5 hex digest of the cache key:

- ``<hash>``: the raw payload bytes, no header
- ``<hash>.metadata``: JSON ``{"expiresAt": "<ISO-8601>"}``

Artifacts are written atomically (temporary file + ``os.replace``). Expired
and corrupt records are removed lazily when they are read.
"""

import hashlib
import os
import shutil
import tempfile
import threading
import time
from collections.abc import Callable
from contextlib import suppress
from logging import getLogger
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from tiercache.exceptions import CacheIOError
from tiercache.exceptions import CorruptRecordError
from tiercache.exceptions import StorageUnavailableError
from tiercache.types import METADATA_SUFFIX
from tiercache.types import ClearResult
from tiercache.types import RecordMetadata

logger = getLogger(__name__)


def hash_key(key: str) -> str:
    """Return the filesystem-safe identifier of a cache key."""
    return hashlib.md5(key.encode("utf-8")).hexdigest()  # noqa: S324


class PersistentStore:
    """Durable key -> (payload, expiry) storage in a single directory.

    Args:
        base_directory: Directory holding the artifacts, created if absent
        clock: Source of the current epoch time

    Raises:
        StorageUnavailableError: If the directory cannot be created or written
    """

    def __init__(
        self,
        base_directory: str | Path,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.directory = Path(base_directory)
        self.clock = clock
        self._lock = threading.Lock()

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Unable to create cache directory {self.directory}: {e}"
            raise StorageUnavailableError(msg) from e

        if not os.access(self.directory, os.W_OK | os.X_OK):
            msg = f"Cache directory {self.directory} is not writable"
            raise StorageUnavailableError(msg)

    def _paths(self, key: str) -> tuple[Path, Path]:
        hashed_key = hash_key(key)
        return (
            self.directory / hashed_key,
            self.directory / f"{hashed_key}{METADATA_SUFFIX}",
        )

    def _write_atomic(self, path: Path, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self.directory, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            with suppress(OSError):
                os.unlink(tmp_name)
            raise

    def _is_file(self, key: str, path: Path) -> bool:
        try:
            return path.is_file()
        except OSError as e:
            msg = f"Failed to stat {path.name} for key '{key}': {e}"
            raise CacheIOError(msg) from e

    def _unlink_record(self, key: str, *paths: Path) -> None:
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                msg = f"Failed to remove {path.name} for key '{key}': {e}"
                raise CacheIOError(msg) from e

    def put(self, key: str, payload: bytes, expires_at: float) -> None:
        """Write the payload and metadata artifacts of a record.

        Any existing record for the key is overwritten.

        Raises:
            CacheIOError: If either artifact cannot be written or the expiry
                cannot be represented as a timestamp
        """
        data_path, metadata_path = self._paths(key)

        with self._lock:
            try:
                metadata = RecordMetadata.from_timestamp(expires_at)
                self._write_atomic(data_path, bytes(payload))
                self._write_atomic(
                    metadata_path,
                    metadata.model_dump_json(by_alias=True).encode("utf-8"),
                )
            except (OSError, ValueError, OverflowError) as e:
                # Do not leave half a record, or the record being replaced, behind
                for path in (data_path, metadata_path):
                    with suppress(OSError):
                        path.unlink(missing_ok=True)
                msg = f"Failed to persist key '{key}': {e}"
                raise CacheIOError(msg) from e

    def get_record(self, key: str) -> Optional[tuple[bytes, float]]:
        """Return ``(payload, expiry)`` for a live record, or None.

        Orphaned and expired artifacts are removed as a side effect.

        Raises:
            CorruptRecordError: If the metadata cannot be parsed (the record is removed)
            CacheIOError: If an artifact cannot be read or removed
        """
        data_path, metadata_path = self._paths(key)

        with self._lock:
            has_data = self._is_file(key, data_path)
            has_metadata = self._is_file(key, metadata_path)
            if not has_data and not has_metadata:
                return None
            if has_data != has_metadata:
                logger.debug("Removing orphaned artifact for key '%s'", key)
                self._unlink_record(key, data_path, metadata_path)
                return None

            try:
                raw_metadata = metadata_path.read_bytes()
            except FileNotFoundError:
                return None
            except OSError as e:
                msg = f"Failed to read metadata for key '{key}': {e}"
                raise CacheIOError(msg) from e

            try:
                metadata = RecordMetadata.model_validate_json(raw_metadata)
            except ValidationError as e:
                self._unlink_record(key, data_path, metadata_path)
                msg = f"Unreadable metadata for key '{key}'"
                raise CorruptRecordError(msg) from e

            if metadata.is_expired(self.clock()):
                logger.debug("Disk record for key '%s' expired", key)
                self._unlink_record(key, data_path, metadata_path)
                return None

            try:
                payload = data_path.read_bytes()
            except FileNotFoundError:
                return None
            except OSError as e:
                msg = f"Failed to read payload for key '{key}': {e}"
                raise CacheIOError(msg) from e

        return payload, metadata.expiry

    def get(self, key: str) -> Optional[bytes]:
        """Return the payload of a live record, or None."""
        record = self.get_record(key)
        if record is None:
            return None
        return record[0]

    def contains(self, key: str) -> bool:
        """Return True if both artifacts of the key exist (expiry is not checked)."""
        data_path, metadata_path = self._paths(key)
        return self._is_file(key, data_path) and self._is_file(key, metadata_path)

    def remove(self, key: str) -> None:
        """Delete both artifacts of the key. Absent keys are ignored.

        Raises:
            CacheIOError: If an existing artifact cannot be deleted
        """
        data_path, metadata_path = self._paths(key)
        with self._lock:
            self._unlink_record(key, data_path, metadata_path)

    def key_hashes(self) -> list[str]:
        """Return the hashes of all records whose payload artifact exists."""
        try:
            return sorted(
                path.name
                for path in self.directory.iterdir()
                if path.is_file()
                and not path.name.startswith(".")
                and not path.name.endswith(METADATA_SUFFIX)
            )
        except OSError as e:
            msg = f"Failed to list cache directory {self.directory}: {e}"
            raise CacheIOError(msg) from e

    def clear(self) -> ClearResult:
        """Delete every artifact in the directory.

        Deletion failures are logged and collected; they never stop the
        remaining deletions.

        Raises:
            CacheIOError: If the directory cannot be listed
        """
        result = ClearResult()

        with self._lock:
            try:
                entries = list(self.directory.iterdir())
            except OSError as e:
                msg = f"Failed to list cache directory {self.directory}: {e}"
                raise CacheIOError(msg) from e

            for entry in entries:
                try:
                    if entry.is_dir() and not entry.is_symlink():
                        shutil.rmtree(entry)
                    else:
                        entry.unlink()
                except FileNotFoundError:
                    continue
                except OSError as e:
                    logger.warning(
                        "Failed to remove cache artifact %s: %s", entry.name, e
                    )
                    result.failed.append(entry.name)
                else:
                    result.removed += 1

        if result.failed:
            logger.warning(
                "Cache clear left %d artifact(s) behind in %s",
                len(result.failed),
                self.directory,
            )
        return result
