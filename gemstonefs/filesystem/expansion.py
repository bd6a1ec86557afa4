"""
Module with the entry cache of a session and the engine that lazily expands it.

Only the symbol dictionaries are known when a session is mounted. Everything below them
is materialized the first time the editor lists a directory, with a single query for the
classes of a dictionary or the selectors of a class. The answer is latched: listing the
same directory again returns the cached children, since the remote side can't tell us
when a dictionary or class has changed. Callers that need fresh listings invalidate the
directory explicitly.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Tuple

from gemstonefs.filesystem import addressing
from gemstonefs.filesystem.common import EntryKind, LockIndex
from gemstonefs.filesystem.entries import DirectoryEntry, Entry
from gemstonefs.filesystem.errors import EntryNotFound
from gemstonefs.filesystem.queries import RemoteHelper
from gemstonefs.filesystem.records import parse_records
from gemstonefs.logger import log


class EntryCache:
    """
    Thread-safe map of paths to materialized entries.

    Children can only be inserted below a directory that is already cached, so every
    cached path is reachable from one of the roots.
    """

    def __init__(self) -> None:
        """Instantiate an empty cache."""
        self._entries: Dict[str, Entry] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> Entry:
        """Return the entry at the path or raise EntryNotFound."""
        with self._lock:
            entry = self._entries.get(path)

        if entry is None:
            raise EntryNotFound(path)

        return entry

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return path in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def insert_roots(self, roots: Iterable[Entry]) -> None:
        """Insert top-level entries."""
        with self._lock:
            for root in roots:
                self._entries[root.path] = root

    def insert_children(
        self, parent: DirectoryEntry, children: Iterable[Entry]
    ) -> None:
        """Insert the children of a cached directory."""
        with self._lock:
            if self._entries.get(parent.path) is not parent:
                raise EntryNotFound(parent.path)

            for child in children:
                self._entries[child.path] = child

    def remove_descendants(self, path: str) -> int:
        """Remove all entries below the path and return how many there were."""
        prefix = path + "/"

        with self._lock:
            descendants = [p for p in self._entries if p.startswith(prefix)]

            for p in descendants:
                del self._entries[p]

        return len(descendants)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class ExpansionEngine:
    """Materializes the children of directory entries with remote queries."""

    def __init__(self, cache: EntryCache, helper: RemoteHelper):
        """Instantiate an engine that populates the cache using the helper."""
        self._cache = cache
        self._helper = helper

        # Held while a directory is being expanded, so concurrent listings of the same
        # directory wait for the first one instead of querying again.
        self._in_flight = LockIndex()

    def expand(self, entry: DirectoryEntry) -> List[Tuple[str, EntryKind]]:
        """
        Return the names and kinds of the children of a directory.

        The children are queried and cached on the first call. If the query fails then
        the directory stays unexpanded, so a later call will try again.

        A parent that is invalidated while the query runs removes the directory itself
        from the cache. The answer is then discarded and EntryNotFound is raised, the
        same as for any other path that no longer exists.
        """
        with self._in_flight.lock(entry.path):
            if not entry.expanded:
                children = self._query_children(entry)

                self._cache.insert_children(entry, children)

                entry.children = [child.name for child in children]
                entry.expanded = True

            return [
                (name, self._cache.get(addressing.child_path(entry.path, name)).kind)
                for name in entry.children
            ]

    def _query_children(self, entry: DirectoryEntry) -> List[Entry]:
        """Run the expansion query of a directory and synthesize its children."""
        answer = self._helper.perform(entry.expansion_selector, [entry.oop])
        records = parse_records(answer, entry.record_type)

        children: List[Entry] = []
        seen = set()

        for record in records:
            if record.key in seen:
                log.warning(f"ignoring duplicate {record.key} in {entry.path}")
                continue

            seen.add(record.key)
            children.append(entry.child_for(record))

        log.debug(f"expanded {entry.path} with {len(children)} entries")

        return children

    def invalidate(self, entry: DirectoryEntry) -> None:
        """Forget the children of a directory so that it is queried again."""
        with self._in_flight.lock(entry.path):
            removed = self._cache.remove_descendants(entry.path)

            entry.children = []
            entry.expanded = False

        log.debug(f"invalidated {entry.path} ({removed} entries)")

