"""Data structures used by multiple file system components."""

from __future__ import annotations

import collections
from contextlib import contextmanager
from dataclasses import dataclass
import enum
import hashlib
import threading
from typing import Any, Dict, Iterator

import lz4.frame


class EntryKind(enum.IntEnum):
    """Kind of a file system entry, numbered like the editor host's file types."""

    FILE = 1
    DIRECTORY = 2


@dataclass
class FileStat:
    """Metadata of a file system entry as reported to the editor host."""

    type: int
    ctime: int
    mtime: int
    size: int


@dataclass
class FileContents:
    """
    Container for the full contents of a file.

    Method sources are small, but file-outs of whole classes can be large and compress
    very well since they are plain text. LZ4 keeps the overhead negligible either way.
    """

    compressed_data: bytes
    checksum: str
    size: int

    @staticmethod
    def from_data(data: bytes) -> FileContents:
        """Wrap raw file data into a FileContents object."""
        return FileContents(
            compressed_data=lz4.frame.compress(data),
            checksum=hashlib.sha256(data).hexdigest(),
            size=len(data),
        )

    @property
    def data(self) -> bytes:
        """Retrieve and decompress the original file data."""
        data = lz4.frame.decompress(self.compressed_data)

        if hashlib.sha256(data).hexdigest() != self.checksum:
            raise ValueError("file contents checksum mismatch")

        return data


class LockIndex:
    """
    Collection of mutexes to lock critical sections by arbitrary keys, like paths.

    Locks only exist while a thread holds or waits for them, so the index doesn't grow
    with the number of paths that have ever been locked.
    """

    def __init__(self) -> None:
        """Instantiate a LockIndex."""
        self._global_lock = threading.Lock()

        self._locks: Dict[Any, threading.Lock] = collections.defaultdict(threading.Lock)
        self._lock_users: Dict[Any, int] = collections.defaultdict(int)

    @contextmanager
    def lock(self, key: Any) -> Iterator[None]:
        """Lock a critical section based on the specified key."""
        with self._global_lock:
            self._lock_users[key] += 1
            lock = self._locks[key]

        try:
            with lock:
                yield
        finally:
            with self._global_lock:
                self._lock_users[key] -= 1

                if self._lock_users[key] == 0:
                    del self._lock_users[key]
                    del self._locks[key]

    @property
    def lock_count(self) -> int:
        """Return the number of locks currently in use."""
        with self._global_lock:
            return len(self._locks)
