"""Module that exposes the mounted file systems to the editor host as an RPC service."""

import threading
from typing import Dict, List, Tuple

from gemstonefs.config import LimitsConfig
from gemstonefs.filesystem import addressing
from gemstonefs.filesystem.common import FileContents, FileStat
from gemstonefs.filesystem.errors import EntryNotFound
from gemstonefs.filesystem.filesystem import GemStoneFileSystem
from gemstonefs.filesystem.mount import MountSynchronizer
from gemstonefs.logger import log
from gemstonefs.session import SessionRegistry


class BridgeService:
    """
    RPC service that routes file system calls to the session that owns the URI.

    Sessions are logged in and out through the service as well, so that the editor host
    can mount additional sessions while the bridge is running.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        synchronizer: MountSynchronizer,
        limits: LimitsConfig,
    ):
        """Instantiate a service without any mounted sessions."""
        self._registry = registry
        self._synchronizer = synchronizer
        self._limits = limits

        self._filesystems: Dict[str, GemStoneFileSystem] = {}
        self._lock = threading.Lock()

    def _filesystem(self, uri: str) -> GemStoneFileSystem:
        """Return the file system that owns the URI."""
        with self._lock:
            fs = self._filesystems.get(addressing.scheme_of(uri))

        if fs is None:
            raise EntryNotFound(uri)

        return fs

    #
    # Sessions
    #

    def login(self, endpoint: str) -> str:
        """Log in through the session gateway at the endpoint and mount the session."""
        session = self._registry.login(endpoint)
        fs = GemStoneFileSystem(session, self._limits)

        try:
            self._synchronizer.mount(fs)
        except Exception:
            fs.close()
            self._registry.logout(session)
            raise

        with self._lock:
            self._filesystems[fs.scheme] = fs

        return fs.scheme

    def logout(self, scheme: str) -> None:
        """Unmount the session with the scheme and log it out."""
        with self._lock:
            fs = self._filesystems.pop(scheme, None)

        if fs is None:
            raise EntryNotFound(addressing.scheme_prefix(scheme))

        try:
            self._synchronizer.unmount(scheme)
        finally:
            fs.close()
            self._registry.logout(fs.session)

    def logout_all(self) -> None:
        for scheme in self.schemes():
            try:
                self.logout(scheme)
            except Exception as e:
                log.error(f"failed to log out {scheme}: {e}")

    def schemes(self) -> List[str]:
        with self._lock:
            return sorted(self._filesystems)

    #
    # Metadata access
    #

    def stat(self, uri: str) -> FileStat:
        return self._filesystem(uri).stat(uri)

    def read_directory(self, uri: str) -> List[Tuple[str, int]]:
        return [
            (name, int(kind))
            for name, kind in self._filesystem(uri).read_directory(uri)
        ]

    def invalidate(self, uri: str) -> None:
        self._filesystem(uri).invalidate(uri)

    def watch(self, uri: str) -> None:
        """Watch a path. Sessions never report changes, so nothing is ever sent."""
        self._filesystem(uri).watch(uri).close()

    #
    # File contents
    #

    def read_file(self, uri: str) -> FileContents:
        return FileContents.from_data(self._filesystem(uri).read_file(uri))

    def write_file(
        self, uri: str, contents: FileContents, create: bool, overwrite: bool
    ) -> None:
        self._filesystem(uri).write_file(uri, contents.data, create, overwrite)

    #
    # File system structure
    #

    def rename(self, old_uri: str, new_uri: str, overwrite: bool) -> None:
        self._filesystem(old_uri).rename(old_uri, new_uri, overwrite)

    def delete(self, uri: str, recursive: bool) -> None:
        self._filesystem(uri).delete(uri, recursive)

    def create_directory(self, uri: str) -> None:
        self._filesystem(uri).create_directory(uri)

    #
    # Session tools
    #

    def evaluate(self, scheme: str, code: str) -> str:
        return self._filesystem(addressing.scheme_prefix(scheme)).evaluate(code)

    def class_names(self, scheme: str) -> List[str]:
        return self._filesystem(addressing.scheme_prefix(scheme)).class_names()
