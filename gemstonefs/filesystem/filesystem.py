"""Module with the virtual file system of a single GemStone session."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from gemstonefs.config import LimitsConfig
from gemstonefs.filesystem import addressing
from gemstonefs.filesystem.common import EntryKind, FileStat
from gemstonefs.filesystem.compiler import MethodCompiler
from gemstonefs.filesystem.entries import (
    ClassEntry,
    DictionaryEntry,
    DirectoryEntry,
    MethodEntry,
)
from gemstonefs.filesystem.errors import (
    EntryExists,
    EntryNotFound,
    GemStoneFSError,
    RemoteQueryFailed,
    UnsupportedEntryKind,
    UnsupportedOperation,
)
from gemstonefs.filesystem.expansion import EntryCache, ExpansionEngine
from gemstonefs.filesystem.fileout import SourceReader
from gemstonefs.filesystem.queries import RemoteHelper, SYMBOL_LIST_QUERY
from gemstonefs.filesystem.records import (
    DictionaryRecord,
    MethodRecord,
    parse_names,
    parse_records,
)
from gemstonefs.logger import log
from gemstonefs.session import display_it, Session


class Subscription:
    """Handle of a watched path. The remote session has no change notifications."""

    def close(self) -> None:
        pass


class GemStoneFileSystem:
    """
    File system that exposes the symbol dictionaries, classes and methods of a session.

    The file system is bound to one session for its entire lifetime and all of its paths
    use the scheme of that session. The entry cache is filled in three stages:

    * mount() queries the symbol list and caches a directory per dictionary.
    * read_directory() expands dictionaries and classes on first use.
    * read_file() files out the method's class on every read and caches nothing.

    Writes compile the method and commit, leaving the cache as it was.
    """

    def __init__(self, session: Session, limits: LimitsConfig):
        """Instantiate an (unmounted) file system for the session."""
        self.session = session
        self.scheme = addressing.scheme_for(session.session_id)

        self._limits = limits

        self._cache = EntryCache()
        self._helper = RemoteHelper(session, limits.query_limit)
        self._expander = ExpansionEngine(self._cache, self._helper)
        self._reader = SourceReader(self._helper, limits.fileout_limit)
        self._compiler = MethodCompiler(session)

        self._roots: List[DictionaryEntry] = []
        self._class_names: Optional[List[str]] = None

    @contextmanager
    def _surfaced(self, operation: str, path: str) -> Iterator[None]:
        """Log the errors of an operation before they are raised to the caller."""
        try:
            yield
        except (EntryNotFound, EntryExists):
            raise
        except (GemStoneFSError, OSError, ValueError) as e:
            log.error(f"{operation}({path}) failed: {e}")
            raise

    #
    # Mounting
    #

    def mount(self) -> List[DictionaryEntry]:
        """Query the symbol list and cache a root directory per symbol dictionary."""
        with self._surfaced("mount", self.scheme):
            answer = self._helper.query(
                SYMBOL_LIST_QUERY, self._limits.symbol_list_limit
            )

            roots: List[DictionaryEntry] = []

            for record in parse_records(answer, DictionaryRecord):
                root = DictionaryEntry.from_record(self.scheme, record)

                if any(r.path == root.path for r in roots):
                    log.warning(f"ignoring duplicate dictionary {record.name}")
                    continue

                roots.append(root)

            self._cache.insert_roots(roots)
            self._roots = roots

        log.info(f"mounted {len(roots)} dictionaries of {self.session.description}")

        return roots

    @property
    def roots(self) -> List[DictionaryEntry]:
        return list(self._roots)

    def close(self) -> None:
        """Forget all entries, e.g. after the session logged out."""
        self._cache.clear()
        self._roots = []

    #
    # Metadata access
    #

    def stat(self, path: str) -> FileStat:
        return self._cache.get(path).stat()

    def read_directory(self, path: str) -> List[Tuple[str, EntryKind]]:
        entry = self._cache.get(path)

        with self._surfaced("read_directory", path):
            if not isinstance(entry, DirectoryEntry):
                raise NotADirectoryError(path)

            return self._expander.expand(entry)

    def invalidate(self, path: str) -> None:
        """Forget the listing of a directory, so that it's queried again."""
        entry = self._cache.get(path)

        if isinstance(entry, DirectoryEntry):
            self._expander.invalidate(entry)

    #
    # File contents
    #

    def read_file(self, path: str) -> bytes:
        entry = self._cache.get(path)

        with self._surfaced("read_file", path):
            return self._reader.read_source(entry)

    def write_file(
        self, path: str, content: bytes, create: bool = False, overwrite: bool = True
    ) -> None:
        """
        Compile the content as the method at the path and commit.

        Creating a new method requires its class to have been listed already. It shows
        up in the listing of the class after the class is invalidated.
        """
        with self._surfaced("write_file", path):
            if path in self._cache:
                entry = self._cache.get(path)

                if not isinstance(entry, MethodEntry):
                    raise UnsupportedEntryKind(f"{path} is not a method")
                if create and not overwrite:
                    raise EntryExists(path)
            elif create:
                entry = self._new_method(path)
            else:
                raise EntryNotFound(path)

            self._compiler.write_source(entry, content)

    def _new_method(self, path: str) -> MethodEntry:
        """Synthesize an uncached entry for a method that doesn't exist yet."""
        prefix = addressing.scheme_prefix(self.scheme)
        if not path.startswith(prefix):
            raise EntryNotFound(path)

        # Dictionary and class names never contain a "/", but binary selectors may
        dictionary, _, rest = path[len(prefix) :].partition("/")
        class_name, _, selector = rest.partition("/")

        parent_path = addressing.child_path(
            addressing.root_path(self.scheme, dictionary), class_name
        )

        if parent_path not in self._cache or not selector:
            raise EntryNotFound(path)

        parent = self._cache.get(parent_path)

        if not isinstance(parent, ClassEntry):
            raise EntryNotFound(path)

        return parent.child_for(MethodRecord(key=selector))

    #
    # File system structure
    #

    def rename(self, old: str, new: str, overwrite: bool = False) -> None:
        with self._surfaced("rename", old):
            raise UnsupportedOperation(f"can't rename {old} to {new}")

    def delete(self, path: str, recursive: bool = False) -> None:
        with self._surfaced("delete", path):
            raise UnsupportedOperation(f"can't delete {path}")

    def create_directory(self, path: str) -> None:
        with self._surfaced("create_directory", path):
            raise UnsupportedOperation(f"can't create directory {path}")

    def watch(self, path: str) -> Subscription:
        return Subscription()

    #
    # Session tools
    #

    def class_names(self) -> List[str]:
        """Return the names of all classes in the symbol list of the session."""
        if self._class_names is None:
            with self._surfaced("class_names", self.scheme):
                answer = self._helper.perform("allClassNames", [])
                self._class_names = parse_names(answer)

        return self._class_names

    def evaluate(self, code: str) -> str:
        """Evaluate an expression in the session and return its printString."""
        with self._surfaced("evaluate", self.scheme):
            try:
                return display_it(self.session, code, self._limits.evaluate_limit)
            except ValueError:
                raise
            except Exception as e:
                raise RemoteQueryFailed(f"evaluation failed: {e}")
