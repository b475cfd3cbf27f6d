# app/errors.py


class NetworkError(Exception):
    """Puzzle fetch failed. Recoverable: the player is offered a retry."""


class ReportingError(Exception):
    """Session or score persistence failed. Logged, never shown to the player."""


class InvalidInput(ValueError):
    """Submitted answer is empty, non-numeric or out of range."""
