"""
Error taxonomy for ScreenDiary.

Validation errors block a single wizard transition.
Transport errors come from the network or a failing service.
Data errors describe malformed stored fields and never escape parsing.
"""

from typing import Optional


class ScreenDiaryError(Exception):
    """Base class for all ScreenDiary errors."""


class ValidationError(ScreenDiaryError):
    """A user-correctable input problem. The message is shown as-is."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class WizardStateError(ScreenDiaryError):
    """An action was invoked from a step that does not offer it."""


class TransportError(ScreenDiaryError):
    """Network or service failure."""


class APIError(TransportError):
    """Server answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code:
            return f"[{self.status_code}] {self.message}"
        return self.message


class DataError(ScreenDiaryError):
    """Malformed stored field."""
