"""Error types raised by the work session engine."""


class StitchMapError(Exception):
    """Base class for all engine errors."""


class NotFoundError(StitchMapError, LookupError):
    """A session or pattern does not exist (or is not visible to the user)."""


class UnauthorizedError(StitchMapError, PermissionError):
    """A session belongs to a different user than the requester."""


class InvalidInputError(StitchMapError, ValueError):
    """An illegal state transition or an untrackable pattern."""


class ConflictError(StitchMapError):
    """The session was modified by another request since it was loaded."""
