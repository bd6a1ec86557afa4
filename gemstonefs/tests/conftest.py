"""Module with fixtures shared by the tests, most notably an in-memory session."""

import logging
from typing import Dict, List, Optional, Tuple

import pytest

from gemstonefs.config import LimitsConfig
from gemstonefs.filesystem.queries import helper_source, SYMBOL_LIST_QUERY
from gemstonefs.logger import log
from gemstonefs.session import Session
from gemstonefs.workspace import Workspace, WorkspaceFolder


class FakeSession(Session):
    """
    Session that answers from canned responses and records every call.

    Helper queries are answered from `responses`, keyed by selector and the oop of the
    argument (or None for queries without arguments).
    """

    HELPER_OOP = 1000

    def __init__(self, session_id: int = 1):
        super().__init__(session_id)

        self.symbol_list = '{"list":[]}'
        self.responses: Dict[Tuple[str, Optional[int]], str] = {}
        self.printed = "nil"

        self.compile_error: Optional[Exception] = None
        self.commit_error: Optional[Exception] = None
        self.commit_result = True
        self.query_error: Optional[Exception] = None

        self.calls: List[tuple] = []
        self.logged_out = False

    def execute_string(self, code: str) -> int:
        if code == helper_source():
            self.calls.append(("install_helper",))
            return self.HELPER_OOP

        self.calls.append(("execute_string", code))

        if self.compile_error:
            raise self.compile_error

        return 42

    def string_from_execute_string(self, code: str, max_length: int) -> str:
        self.calls.append(("string_from_execute_string", code, max_length))

        if self.query_error:
            raise self.query_error

        if code == SYMBOL_LIST_QUERY:
            return self.symbol_list[:max_length]

        return self.printed[:max_length]

    def string_from_perform(
        self, receiver: int, selector: str, args: List[int], max_length: int
    ) -> str:
        assert receiver == self.HELPER_OOP

        self.calls.append(("perform", selector, tuple(args)))

        if self.query_error:
            raise self.query_error

        key = (selector, args[0] if args else None)
        return self.responses[key][:max_length]

    def commit(self) -> bool:
        self.calls.append(("commit",))

        if self.commit_error:
            raise self.commit_error

        return self.commit_result

    def logout(self) -> None:
        self.logged_out = True

    def calls_of(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]



class MemoryWorkspace(Workspace):
    """Workspace that keeps its folders in a list and can be made to reject updates."""

    def __init__(self, *uris: str):
        self._folders = [WorkspaceFolder(uri=uri, name=uri) for uri in uris]

        self.reject_updates = False
        self.updates: List[tuple] = []

    @property
    def folders(self) -> List[WorkspaceFolder]:
        return list(self._folders)

    @property
    def uris(self) -> List[str]:
        return [f.uri for f in self._folders]

    def update_folders(
        self, start: int, delete_count: int, *folders: WorkspaceFolder
    ) -> bool:
        self.updates.append((start, delete_count, folders))

        if self.reject_updates:
            return False

        self._folders[start : start + delete_count] = folders
        return True


@pytest.fixture(autouse=True)
def log_level():
    # main() changes the level of the package logger
    log.setLevel(logging.DEBUG)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def limits():
    return LimitsConfig()


@pytest.fixture
def workspace():
    return MemoryWorkspace()
