"""Exceptions raised by the library model."""


class LibraryError(Exception):
    """Base class for notebox errors."""


class NodeNotFoundError(LibraryError, LookupError):
    """No node with the requested id exists."""


class BrokenParentError(LibraryError, LookupError):
    """A parent reference does not resolve to a stored directory.

    Signals corrupted store contents rather than a user error.
    """


class LibraryValidationError(LibraryError, ValueError):
    """The persisted library document failed structural validation."""
