"""
Smalltalk code that the file system runs in the remote session.

Listing the symbol list is a single expression, but listing the contents of a dictionary
or class needs the receiver to be the dictionary or class itself, which we only know by
oop. For those queries a small helper class is compiled into the session's temporary
globals (SessionTemps), so it never ends up in a commit, and its instance is sent
messages with the oops as arguments:

    helper classesIn: <dictionary oop>
    helper selectorsIn: <class oop>
    helper fileOutClass: <class oop>
    helper allClassNames

Answers are printed as JSON. Every name in an answer is escaped, since dictionary names
may contain quotes and binary selectors may contain backslashes, which would otherwise
produce invalid JSON.
"""

import threading
from typing import List, Optional

from gemstonefs.filesystem.errors import RemoteQueryFailed
from gemstonefs.logger import log
from gemstonefs.session import Session

SYMBOL_LIST_QUERY = """
| comma stream |
stream := WriteStream on: String new.
stream nextPutAll: '{"list":['.
comma := ''.
System myUserProfile symbolList do: [:each |
    stream
        nextPutAll: comma;
        nextPutAll: '{"oop":';
        print: each asOop;
        nextPutAll: ',"name":"'.
    each name do: [:char |
        (char = $" or: [char = $\\]) ifTrue: [stream nextPut: $\\].
        stream nextPut: char].
    stream
        nextPutAll: '","size":';
        print: each size;
        nextPutAll: '}'.
    comma := ','.
].
stream nextPutAll: ']}'; contents
"""

HELPER_CLASS_NAME = "GemStoneFSHelper"

HELPER_METHODS = [
    """json: aString on: aStream
    aStream nextPut: $".
    aString do: [:char |
        (char = $" or: [char = $\\]) ifTrue: [aStream nextPut: $\\].
        aStream nextPut: char].
    aStream nextPut: $"
""",
    """classesIn: aDictionary
    | stream comma |
    stream := WriteStream on: String new.
    stream nextPutAll: '{"list":['.
    comma := ''.
    (aDictionary keys asSortedCollection: [:a :b | a <= b]) do: [:key |
        | value |
        value := aDictionary at: key.
        value isBehavior ifTrue: [
            stream nextPutAll: comma; nextPutAll: '{"key":'.
            self json: key on: stream.
            stream nextPutAll: ',"oop":'; print: value asOop; nextPutAll: '}'.
            comma := ',']].
    stream nextPutAll: ']}'.
    ^stream contents
""",
    """selectorsIn: aClass
    | stream comma |
    stream := WriteStream on: String new.
    stream nextPutAll: '{"list":['.
    comma := ''.
    (aClass selectors asSortedCollection: [:a :b | a <= b]) do: [:selector |
        stream nextPutAll: comma; nextPutAll: '{"key":'.
        self json: selector on: stream.
        stream
            nextPutAll: ',"oop":';
            print: (aClass compiledMethodAt: selector) asOop;
            nextPutAll: '}'.
        comma := ','].
    stream nextPutAll: ']}'.
    ^stream contents
""",
    """fileOutClass: aClass
    ^aClass fileOutClass
""",
    """allClassNames
    | names stream comma |
    names := IdentitySet new.
    System myUserProfile symbolList do: [:dictionary |
        dictionary keysAndValuesDo: [:key :value |
            value isBehavior ifTrue: [names add: key]]].
    stream := WriteStream on: String new.
    stream nextPut: $[.
    comma := ''.
    (names asSortedCollection: [:a :b | a <= b]) do: [:each |
        stream nextPutAll: comma.
        self json: each on: stream.
        comma := ','].
    stream nextPut: $].
    ^stream contents
""",
]


def escape_string_literal(text: str) -> str:
    """Quote text for use inside a Smalltalk string literal."""
    return text.replace("'", "''")


def helper_source() -> str:
    """Return the code that installs the helper class and answers an instance."""
    compiles = "\n".join(
        f"    helperClass compileMethod: '{escape_string_literal(method)}'."
        for method in HELPER_METHODS
    )

    return f"""
| helperClass |
helperClass := SessionTemps current at: #{HELPER_CLASS_NAME} ifAbsent: [nil].
helperClass isNil ifTrue: [
    helperClass := Object
        subclass: '{HELPER_CLASS_NAME}'
        instVarNames: #()
        classVars: #()
        classInstVars: #()
        poolDictionaries: #()
        inDictionary: SessionTemps current
        options: #().
{compiles}
].
helperClass new
"""


class RemoteHelper:
    """
    Lazily installed helper object in one remote session.

    The helper is installed on the first query and its oop is reused for the lifetime of
    the session. Every failure of a query is raised as RemoteQueryFailed.
    """

    def __init__(self, session: Session, max_length: int):
        """Instantiate for the session, with the default response size ceiling."""
        self._session = session
        self._max_length = max_length

        self._oop: Optional[int] = None
        self._lock = threading.Lock()

    @property
    def oop(self) -> int:
        """Return the oop of the helper instance, installing it if necessary."""
        with self._lock:
            if self._oop is None:
                try:
                    self._oop = self._session.execute_string(helper_source())
                except Exception as e:
                    raise RemoteQueryFailed(f"failed to install query helper: {e}")

                log.debug(f"installed query helper {self._oop}")

            return self._oop

    def perform(
        self, selector: str, args: List[int], max_length: Optional[int] = None
    ) -> str:
        """Send a message to the helper and return the printed answer."""
        if max_length is None:
            max_length = self._max_length

        receiver = self.oop

        try:
            answer = self._session.string_from_perform(
                receiver, selector, args, max_length
            )
        except Exception as e:
            raise RemoteQueryFailed(f"{selector} {args} failed: {e}")

        if len(answer) >= max_length:
            log.warning(f"answer of {selector} {args} may be truncated at {max_length}")

        return answer

    def query(self, code: str, max_length: Optional[int] = None) -> str:
        """Evaluate an expression that doesn't need the helper and return its answer."""
        if max_length is None:
            max_length = self._max_length

        try:
            answer = self._session.string_from_execute_string(code, max_length)
        except Exception as e:
            raise RemoteQueryFailed(f"query failed: {e}")

        if len(answer) >= max_length:
            log.warning(f"answer of query may be truncated at {max_length}")

        return answer
