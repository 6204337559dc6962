# core/exceptions.py

class FarmLedgerError(Exception):
    """Base class for errors raised by the managers and agents."""


class FarmAccessError(FarmLedgerError):
    """The farm does not exist or belongs to another user."""

    def __init__(self, message: str = "Farm not found or access denied"):
        super().__init__(message)


class RecordAccessError(FarmLedgerError):
    """A farm record does not exist or belongs to another user's farm."""

    def __init__(self, kind: str = "Record"):
        super().__init__(f"{kind} not found or access denied")
        self.kind = kind


class AIServiceError(FarmLedgerError):
    """The configured language model could not produce a response."""
