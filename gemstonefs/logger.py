"""Module with the package logger and helpers to keep its messages on one line."""

import logging
from typing import Any


def _get_logger(name: str) -> logging.Logger:
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    )

    logger = logging.getLogger(name)
    logger.addHandler(handler)

    return logger


def set_debug(debug: bool) -> None:
    """Log everything with --debug, and only errors otherwise."""
    log.setLevel(logging.DEBUG if debug else logging.ERROR)


def summarize(obj: Any, max_length: int = 255) -> str:
    """
    Return the object as a single line of text of at most max_length characters.

    Method source and fileouts span many lines, so runs of whitespace are collapsed
    before the text is cut off.
    """
    text = " ".join(str(obj).split())

    if len(text) <= max_length:
        return text

    return text[: max_length - 3] + "..."


log = _get_logger("gemstonefs")
