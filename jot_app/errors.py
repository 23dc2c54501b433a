"""Error types raised by the jot store and front-end."""

from __future__ import annotations


class JotError(RuntimeError):
    """Base class for every error jot surfaces to the user."""


class InitError(JotError):
    """Raised when the store cannot be opened or bootstrapped."""


class InvalidName(JotError, ValueError):
    """Raised when a group name fails the naming rules."""


class InvalidInput(JotError, ValueError):
    """Raised when a note body is empty."""


class WriteError(JotError):
    """Raised when the backend rejects an insert or schema change."""


class ReadError(JotError):
    """Raised when the backend rejects a read."""


class CloseError(JotError):
    """Raised when the database handle cannot be released."""


class UIError(JotError):
    """Raised when the terminal viewer fails to start or render."""


__all__ = [
    "JotError",
    "InitError",
    "InvalidName",
    "InvalidInput",
    "WriteError",
    "ReadError",
    "CloseError",
    "UIError",
]
