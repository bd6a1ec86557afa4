"""
Entries of the virtual tree of a session.

    DictionaryEntry    gs1:/UserGlobals             directory
    ClassEntry         gs1:/UserGlobals/Foo         directory
    MethodEntry        gs1:/UserGlobals/Foo/bar:    file

Directory entries know which helper query lists their children and how to turn the
records of its answer into child entries. They start out unexpanded and are expanded at
most once per cache lifetime by the expansion engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import time
from typing import ClassVar, List, Optional, Union

from gemstonefs.filesystem import addressing
from gemstonefs.filesystem.common import EntryKind, FileStat
from gemstonefs.filesystem.records import ClassRecord, DictionaryRecord, MethodRecord


@dataclass
class Entry:
    """Base class of all entries."""

    kind: ClassVar[EntryKind]

    path: str
    name: str
    dictionary: str

    created: float = field(default_factory=time.time, init=False)

    def stat(self) -> FileStat:
        # The size of a method is unknown until its class has been filed out.
        timestamp = int(self.created * 1000)
        return FileStat(type=self.kind, ctime=timestamp, mtime=timestamp, size=0)


@dataclass
class DirectoryEntry(Entry):
    """Base class of entries that list remote objects as their children."""

    kind = EntryKind.DIRECTORY

    # Selector of the helper query that lists the children, and its record type
    expansion_selector: ClassVar[str]
    record_type: ClassVar[type]

    oop: int

    expanded: bool = field(default=False, init=False)
    children: List[str] = field(default_factory=list, init=False)

    def child_for(self, record: Union[ClassRecord, MethodRecord]) -> Entry:
        """Synthesize the child entry for a record of the expansion query."""
        raise NotImplementedError()


@dataclass
class MethodEntry(Entry):
    """A compiled method, exposed as a file with its source as contents."""

    kind = EntryKind.FILE

    class_name: str
    class_oop: int

    # Compiled method, if the listing query reported it
    oop: Optional[int] = None

    # Category of the method in the last file-out that contained it
    category: Optional[str] = None

    @property
    def selector(self) -> str:
        return self.name


@dataclass
class ClassEntry(DirectoryEntry):
    """A class within a symbol dictionary."""

    expansion_selector = "selectorsIn:"
    record_type = MethodRecord

    def child_for(self, record: Union[ClassRecord, MethodRecord]) -> MethodEntry:
        return MethodEntry(
            path=addressing.child_path(self.path, record.key),
            name=record.key,
            dictionary=self.dictionary,
            class_name=self.name,
            class_oop=self.oop,
            oop=record.oop,
        )


@dataclass
class DictionaryEntry(DirectoryEntry):
    """A symbol dictionary of the session's symbol list, at the root of the tree."""

    expansion_selector = "classesIn:"
    record_type = ClassRecord

    # Number of elements when the symbol list was queried; informational only
    element_count: int = 0

    @staticmethod
    def from_record(scheme: str, record: DictionaryRecord) -> DictionaryEntry:
        return DictionaryEntry(
            path=addressing.root_path(scheme, record.name),
            name=record.name,
            dictionary=record.name,
            oop=record.oop,
            element_count=record.size,
        )

    def child_for(self, record: Union[ClassRecord, MethodRecord]) -> Entry:
        return ClassEntry(
            path=addressing.child_path(self.path, record.key),
            name=record.key,
            dictionary=self.name,
            oop=record.oop,
        )
