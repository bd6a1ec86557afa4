"""Modules with the main logic of the bridge process."""

from .bridge import BridgeOperations

__all__ = [
    "BridgeOperations",
]
