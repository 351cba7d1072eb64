"""Console output for Walkmap.

Each line starts with a plain-text tag so it stays readable without color.
Set WALKMAP_NO_COLOR to drop the ANSI codes and WALKMAP_VERBOSE to see debug lines.
"""

import os
from enum import Enum


class Color(Enum):
    BLUE = "\033[94m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    CYAN = "\033[96m"
    RESET = "\033[0m"


def colored(text: str, color: Color) -> str:
    if os.getenv("WALKMAP_NO_COLOR"):
        return text
    return f"{color.value}{text}{Color.RESET.value}"


def is_verbose() -> bool:
    return os.getenv("WALKMAP_VERBOSE", "").lower() in ("1", "true", "yes")


def _emit(tag: str, color: Color, message: str) -> None:
    print(colored(f"{tag} {message}", color))


def log_deterministic(message: str) -> None:
    """Computation over data already in memory."""
    _emit("[•]", Color.BLUE, message)


def log_io(message: str) -> None:
    """A request to a tile or feature source."""
    _emit("[io]", Color.YELLOW, message)


def log_error(message: str) -> None:
    _emit("[!]", Color.RED, message)


def log_success(message: str) -> None:
    _emit("[✓]", Color.GREEN, message)


def log_info(message: str) -> None:
    _emit("[i]", Color.CYAN, message)


def log_debug(message: str) -> None:
    if is_verbose():
        _emit("[•]", Color.CYAN, message)
