"""
Modules that expose the object graph of GemStone sessions as a virtual file system.

Each logged in session is mounted as a separate file system with its own URI scheme,
which contains a directory per symbol dictionary, a directory per class and a file per
instance method:

    gs1:/UserGlobals/Foo/bar:

None of this exists as files anywhere. The tree is synthesized from introspection
queries that run in the remote session, and only as far as the editor has looked at it:
mounting lists the symbol dictionaries, and dictionaries and classes are only queried
for their contents when their directory is listed. Reading a method files out its whole
class and carves the method out of it, since that is the one way to get at the source
text that works on every GemStone version. Writing a method compiles it and commits.

The editor host reaches these file systems through BridgeService, an RPC service that
routes every call by the scheme of its URI.
"""

from .filesystem import GemStoneFileSystem, Subscription
from .mount import MountSynchronizer
from .service import BridgeService

__all__ = [
    "GemStoneFileSystem",
    "Subscription",
    "MountSynchronizer",
    "BridgeService",
]
