"""
Typed records parsed from the JSON answers of introspection queries.

The remote queries print JSON of the form {"list": [{...}, {...}]}. Nothing guarantees
that a record has the fields we need (a query may have been truncated, or a newer helper
may answer differently), so every answer passes through parse_records() which either
produces records of one of the types below or raises MalformedRemoteResponse.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any, Dict, List, Optional, Type, TypeVar

from gemstonefs.filesystem.errors import MalformedRemoteResponse


def _field(obj: Dict[str, Any], name: str, typ: type, optional: bool = False) -> Any:
    """Fetch a field from a JSON object and check its type."""
    if name not in obj or obj[name] is None:
        if optional:
            return None
        raise MalformedRemoteResponse(f"record is missing '{name}': {obj}")

    value = obj[name]

    # bool is a subclass of int, but never a valid oop or size
    if not isinstance(value, typ) or (typ is int and isinstance(value, bool)):
        raise MalformedRemoteResponse(
            f"record field '{name}' should be {typ.__name__}: {obj}"
        )

    return value


@dataclass(frozen=True)
class DictionaryRecord:
    """A symbol dictionary in the session's symbol list."""

    oop: int
    name: str
    size: int

    @staticmethod
    def from_json(obj: Dict[str, Any]) -> DictionaryRecord:
        return DictionaryRecord(
            oop=_field(obj, "oop", int),
            name=_field(obj, "name", str),
            size=_field(obj, "size", int, optional=True) or 0,
        )


@dataclass(frozen=True)
class ClassRecord:
    """A class within a symbol dictionary."""

    key: str
    oop: int

    @staticmethod
    def from_json(obj: Dict[str, Any]) -> ClassRecord:
        return ClassRecord(key=_field(obj, "key", str), oop=_field(obj, "oop", int))


@dataclass(frozen=True)
class MethodRecord:
    """An instance-side method of a class."""

    key: str
    oop: Optional[int] = None

    @staticmethod
    def from_json(obj: Dict[str, Any]) -> MethodRecord:
        return MethodRecord(
            key=_field(obj, "key", str), oop=_field(obj, "oop", int, optional=True)
        )


Record = TypeVar("Record", DictionaryRecord, ClassRecord, MethodRecord)


def parse_records(text: str, record_type: Type[Record]) -> List[Record]:
    """Parse the printed answer of a listing query into records of the given type."""
    try:
        answer = json.loads(text)
    except ValueError as e:
        raise MalformedRemoteResponse(f"answer is not valid JSON: {e}")

    if not isinstance(answer, dict) or not isinstance(answer.get("list"), list):
        raise MalformedRemoteResponse("answer has no 'list' of records")

    records = []

    for obj in answer["list"]:
        if not isinstance(obj, dict):
            raise MalformedRemoteResponse(f"record is not an object: {obj}")

        records.append(record_type.from_json(obj))

    return records


def parse_names(text: str) -> List[str]:
    """Parse the printed answer of a query that lists plain names."""
    try:
        answer = json.loads(text)
    except ValueError as e:
        raise MalformedRemoteResponse(f"answer is not valid JSON: {e}")

    if not isinstance(answer, list) or not all(isinstance(n, str) for n in answer):
        raise MalformedRemoteResponse("answer is not a list of names")

    return answer
