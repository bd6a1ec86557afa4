"""
Module that writes edited method sources back into the remote session.

Saving a method file compiles its text as a method of the owning class and commits:

    ((System myUserProfile symbolList objectNamed: #UserGlobals) at: #Foo)
        compileMethod: 'bar
        ^''bar'''
        dictionaries: System myUserProfile symbolList
        category: 'accessing'
        environmentId: 0

The class is looked up through its dictionary since the same class name may be bound in
several dictionaries of the symbol list. Methods whose category isn't known, because
they were never read or are new, are compiled with a plain compileMethod: and end up in
the default category of the session.
"""

from gemstonefs.filesystem.entries import MethodEntry
from gemstonefs.filesystem.errors import CommitFailed, RemoteCompileFailed
from gemstonefs.filesystem.queries import escape_string_literal
from gemstonefs.logger import log, summarize
from gemstonefs.session import Session


def compile_request(entry: MethodEntry, source: str) -> str:
    """Return the code that compiles the source as a method of the entry's class."""
    owner = (
        f"((System myUserProfile symbolList objectNamed: #{entry.dictionary})"
        f" at: #{entry.class_name})"
    )
    request = f"{owner} compileMethod: '{escape_string_literal(source)}'"

    if entry.category is None:
        return request

    return (
        f"{request}\n"
        f"    dictionaries: System myUserProfile symbolList\n"
        f"    category: '{escape_string_literal(entry.category)}'\n"
        f"    environmentId: 0"
    )


class MethodCompiler:
    """
    Compiles and commits method sources.

    The method entry isn't touched: the next read files out the class again and shows
    whatever the remote session has installed.
    """

    def __init__(self, session: Session):
        """Instantiate a compiler for methods in the session."""
        self._session = session

    def write_source(self, entry: MethodEntry, content: bytes) -> None:
        """
        Compile the content as the source of the method and commit.

        The commit is only attempted if the compilation succeeded. If the commit fails
        then the method may still be installed in the session's uncommitted transaction.
        """
        try:
            source = content.decode()
        except UnicodeDecodeError as e:
            raise RemoteCompileFailed(f"source of {entry.path} is not UTF-8: {e}")

        log.debug(f"compiling {entry.path}: {summarize(source)}")

        try:
            self._session.execute_string(compile_request(entry, source))
        except Exception as e:
            raise RemoteCompileFailed(f"failed to compile {entry.path}: {e}")

        try:
            committed = self._session.commit()
        except Exception as e:
            raise CommitFailed(f"failed to commit {entry.path}: {e}")

        if not committed:
            raise CommitFailed(f"transaction for {entry.path} was aborted")

        log.info(f"compiled and committed {entry.path}")
