"""jot: quick grouped notes from the shell."""

__version__ = "0.0.1"
