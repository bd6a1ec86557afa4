"""
Mapping between virtual paths and positions in a session's object graph.

Every mounted session gets a scheme of its own, derived from its session id, so that
paths of concurrently mounted sessions can never collide:

    gs1:/UserGlobals/Foo/bar:
    ^^^  ^^^^^^^^^^^ ^^^ ^^^^
    |    |           |   selector
    |    |           class
    |    symbol dictionary
    session 1

Paths are only ever built here and compared as strings. An entry is resolvable only
after it has been materialized by listing its parent. The one exception is creating a
method, where the class is found by splitting the path of the new method.
"""

import re

from gemstonefs.constants import SCHEME_PREFIX

SCHEME_PATTERN = re.compile(rf"^{SCHEME_PREFIX}[0-9]+:/")


def scheme_for(session_id: int) -> str:
    """Return the scheme of the session with the given id."""
    return f"{SCHEME_PREFIX}{session_id}"


def scheme_prefix(scheme: str) -> str:
    """Return the prefix shared by all paths within a scheme."""
    return f"{scheme}:/"


def root_path(scheme: str, dictionary_name: str) -> str:
    """Return the path of a symbol dictionary, a top-level directory."""
    return scheme_prefix(scheme) + dictionary_name


def child_path(parent_path: str, key: str) -> str:
    """Return the path of a child entry within the directory at the given path."""
    return f"{parent_path}/{key}"


def scheme_of(path: str) -> str:
    """Return the scheme part of a path, or an empty string if there is none."""
    scheme, sep, _ = path.partition(":")
    return scheme if sep else ""


def is_session_path(path: str) -> bool:
    """Check if the path belongs to any session scheme (e.g. gs3:/...)."""
    return SCHEME_PATTERN.match(path) is not None
