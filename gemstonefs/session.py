"""
Module with the sessions that the file system runs its queries in.

A session is a logged in connection to one GemStone image. The file system only needs a
handful of operations from it: evaluating code, sending a message to an object by oop,
and committing. Logging in (and the GCI library that does it) lives in a separate
gateway process that exposes exactly these operations over RPC, one gateway per session.
"""

from abc import ABC, abstractmethod
import itertools
import threading
from typing import Dict, List, Optional

import semver

from gemstonefs.constants import PROTOCOL_VERSION
from gemstonefs.logger import log
import gemstonefs.rpc as rpc


class Session(ABC):
    """Handle to a logged in remote session."""

    def __init__(self, session_id: int):
        """Instantiate with a process-local unique session id."""
        self.session_id = session_id

    @property
    def description(self) -> str:
        return f"session {self.session_id}"

    @abstractmethod
    def execute_string(self, code: str) -> int:
        """Evaluate code and return the oop of the result."""

    @abstractmethod
    def string_from_execute_string(self, code: str, max_length: int) -> str:
        """Evaluate code and return its String result, up to a length."""

    @abstractmethod
    def string_from_perform(
        self, receiver: int, selector: str, args: List[int], max_length: int
    ) -> str:
        """Send a message with oops as arguments and return the String result."""

    @abstractmethod
    def commit(self) -> bool:
        """Commit the current transaction, returning False if it was aborted."""

    @abstractmethod
    def logout(self) -> None:
        """End the session."""


class SessionGatewayService:
    """
    Calls exposed by a session gateway.

    The gateway process implements this interface; on this side it only describes the
    calls and their types to the RPC client.
    """

    def protocol_version(self) -> str:
        raise NotImplementedError()

    def description(self) -> str:
        raise NotImplementedError()

    def execute(self, code: str) -> int:
        raise NotImplementedError()

    def execute_string(self, code: str, max_length: int) -> str:
        raise NotImplementedError()

    def perform(
        self, receiver: int, selector: str, args: List[int], max_length: int
    ) -> str:
        raise NotImplementedError()

    def commit(self) -> bool:
        raise NotImplementedError()

    def logout(self) -> None:
        raise NotImplementedError()


class GatewaySession(Session):
    """Session that forwards all calls to a session gateway over RPC."""

    def __init__(
        self,
        session_id: int,
        endpoint: str,
        token: Optional[str] = None,
        timeout_ms: int = -1,
    ):
        """Instantiate a session for the gateway at the given endpoint."""
        super().__init__(session_id)

        self.endpoint = endpoint
        self._client = rpc.Client(SessionGatewayService, endpoint, token, timeout_ms)
        self._description: Optional[str] = None

    def connect(self) -> None:
        """Check that the gateway is reachable and speaks a compatible protocol."""
        self._client.ping()

        version = semver.VersionInfo.parse(self._client.protocol_version())
        expected = semver.VersionInfo.parse(PROTOCOL_VERSION)

        if version.major != expected.major:
            raise RuntimeError(
                f"incompatible gateway protocol ({version} != {PROTOCOL_VERSION})"
            )

        self._description = self._client.description()

    @property
    def description(self) -> str:
        return f"session {self.session_id} ({self._description or self.endpoint})"

    def execute_string(self, code: str) -> int:
        return self._client.execute(code)

    def string_from_execute_string(self, code: str, max_length: int) -> str:
        return self._client.execute_string(code, max_length)

    def string_from_perform(
        self, receiver: int, selector: str, args: List[int], max_length: int
    ) -> str:
        return self._client.perform(receiver, selector, args, max_length)

    def commit(self) -> bool:
        return self._client.commit()

    def logout(self) -> None:
        try:
            self._client.logout()
        finally:
            self.close()

    def close(self) -> None:
        """Release the connection to the gateway without logging out."""
        self._client.close()


class SessionRegistry:
    """
    Registry of the sessions that are currently logged in.

    Session ids are handed out in increasing order and never reused within the process,
    so a scheme like "gs2" can't be confused with an earlier session that logged out.
    """

    def __init__(self, token: Optional[str] = None, timeout_ms: int = -1):
        """Instantiate a registry for gateways using the given token and timeout."""
        self._token = token
        self._timeout_ms = timeout_ms

        self._ids = itertools.count(1)
        self._sessions: Dict[int, Session] = {}
        self._lock = threading.Lock()

    def login(self, endpoint: str) -> Session:
        """Connect to the session gateway at the endpoint and register the session."""
        with self._lock:
            session_id = next(self._ids)

        session = GatewaySession(session_id, endpoint, self._token, self._timeout_ms)
        try:
            session.connect()
        except Exception:
            session.close()
            raise

        with self._lock:
            self._sessions[session_id] = session

        log.info(f"login {session.description}")

        return session

    def logout(self, session: Session) -> None:
        """Log the session out and forget about it."""
        with self._lock:
            self._sessions.pop(session.session_id, None)

        log.info(f"logout {session.description}")

        session.logout()

    def get(self, session_id: int) -> Session:
        with self._lock:
            return self._sessions[session_id]

    @property
    def sessions(self) -> List[Session]:
        with self._lock:
            return list(self._sessions.values())


def display_it(session: Session, code: str, max_length: int) -> str:
    """
    Evaluate a Smalltalk expression and return its printString.

    Code with an odd number of quote characters contains an unterminated string, which
    would break the block that it is wrapped in, so it is rejected upfront.
    """
    if code.count("'") % 2 == 1:
        raise ValueError("Odd number of quote characters means an unterminated string!")

    return session.string_from_execute_string(f"[{code}] value printString", max_length)
