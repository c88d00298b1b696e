"""
Typed errors raised by the office scoring engine.

The engine fails fast on bad input instead of clamping or skipping rows. Callers
(the API layer) translate these into user-facing messages; retrying is never
meaningful because the computation is pure.
"""

from typing import Any, Optional


class ScoringError(Exception):
    """
    Base class for scoring input errors.

    Attributes:
        message: Human-readable description of the problem
        field: Input field that failed validation, if known
        value: Offending value, if known
        office_id: Office the offending row belongs to, if known
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        office_id: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value
        self.office_id = office_id

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "field": self.field,
            "officeId": self.office_id,
        }


class MalformedInput(ScoringError):
    """
    Month string is not YYYY-MM, a (office, month) pair is duplicated, the
    catalog is empty or repeats an office, or a row names an unknown office.
    """


class InvalidReferralCount(ScoringError):
    """A patient count is negative or not an integer."""


__all__ = [
    "ScoringError",
    "MalformedInput",
    "InvalidReferralCount",
]
