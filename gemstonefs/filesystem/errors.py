"""
Errors raised by the GemStone file system.

Not finding an entry is an everyday outcome (editors probe for files like .vscode/ and
.git/ constantly), so EntryNotFound derives from FileNotFoundError and is never logged.
All other errors are logged where they are surfaced to the editor host.
"""


class GemStoneFSError(Exception):
    """Base class of all file system errors."""


class EntryNotFound(GemStoneFSError, FileNotFoundError):
    """The path has not been materialized, or doesn't exist at all."""


class EntryExists(GemStoneFSError, FileExistsError):
    """A file was created at a path that already exists without allowing overwrites."""


class RemoteQueryFailed(GemStoneFSError):
    """An introspection query failed in transport or raised in the remote session."""


class MalformedRemoteResponse(RemoteQueryFailed):
    """A query answered something that doesn't follow the expected record format."""


class RemoteCompileFailed(GemStoneFSError):
    """The remote compiler rejected a method, or the compile request failed."""


class CommitFailed(GemStoneFSError):
    """A method was compiled but the transaction that installs it didn't commit."""


class UnsupportedEntryKind(GemStoneFSError):
    """Source was requested for an entry that isn't a method."""


class UnsupportedOperation(GemStoneFSError):
    """The operation has no counterpart in the remote session."""


class MountFailed(GemStoneFSError):
    """The dictionaries of a session could not be added to the workspace."""


# Exception types to register with RPC clients and servers
ALL_ERRORS = (
    GemStoneFSError,
    EntryNotFound,
    EntryExists,
    RemoteQueryFailed,
    MalformedRemoteResponse,
    RemoteCompileFailed,
    CommitFailed,
    UnsupportedEntryKind,
    UnsupportedOperation,
    MountFailed,
)
