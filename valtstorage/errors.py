"""Exception types raised by the ValtStorage client."""

from typing import Optional


class ValtStorageError(Exception):
    """Base class for every error the CLI reports to the user."""


class ValidationError(ValtStorageError):
    """Bad user input: malformed share reference, missing file or argument."""


class TransportError(ValtStorageError):
    """A request to the ValtStorage API failed or got no response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
