"""
Exceptions raised by the assessment core and the content boundary.
"""
from typing import Optional


class InputValidationError(ValueError):
    """Interaction data is malformed or incomplete for the requested operation.

    Raised when a task is finalized before its input preconditions hold
    (for example, a recall submitted before every slot is filled) or when an
    interaction arrives in an impossible order.
    """


class GenerationError(Exception):
    """Content generation failed or produced unusable data."""

    def __init__(self, message: str, *, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
