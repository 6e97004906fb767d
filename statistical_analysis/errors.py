from enum import Enum
from typing import Optional


class DegenerateReason(Enum):
    ZERO_STANDARD_ERROR = "zero_standard_error"
    ZERO_CONTROL_RATE = "zero_control_rate"


class InvalidInputError(ValueError):
    """Raised when calculator inputs are out of range or nonsensical"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class DegenerateComputationError(ArithmeticError):
    """Raised when an intermediate result is mathematically undefined"""

    def __init__(self, reason: DegenerateReason, message: Optional[str] = None):
        super().__init__(message or f"Degenerate computation: {reason.value}")
        self.reason = reason
