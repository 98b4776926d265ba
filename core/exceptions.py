"""
Error types for the loan engine.

Two tiers are kept apart: malformed input raises ``InvalidInputError``;
degenerate but valid input (zero principal, EMI that never amortizes,
no FOIR headroom) returns a zero or sentinel result instead of raising.
"""


class LoanCalculationError(Exception):
    """Base class for every error raised by the calculation engine."""

    pass


class InvalidInputError(LoanCalculationError, ValueError):
    """Raised when inputs are non-finite or outside the supported domain."""

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.field = field
