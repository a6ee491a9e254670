"""
Error taxonomy for recon-core.

Everything here is locally recoverable: the caller re-prompts the user or
rejects the one operation. Under/over funding is not an error; it is a
FundingState classification the caller branches on.
"""

from __future__ import annotations


class ReconError(Exception):
    """Base class for reconciliation errors."""


class InvalidRate(ReconError):
    """Rate is non-finite, zero, or negative where a positive rate is required."""

    def __init__(self, rate: object) -> None:
        self.rate = rate
        super().__init__(f"Cannot compute expected amount: invalid rate {rate!r}")


class NoChangesError(ReconError):
    """Amendment produces an empty diff."""

    def __init__(self) -> None:
        super().__init__("You must make at least one change to the order")


class UnreconciledAmendment(ReconError):
    """Proposed ledger totals do not match the proposed order amounts."""

    def __init__(self, leg: str, total: float, expected: float, currency: str) -> None:
        self.leg = leg
        self.total = total
        self.expected = expected
        self.currency = currency
        amount_label = "Amount Buy" if leg == "receipts" else "Amount Sell"
        super().__init__(
            f"Total {leg} ({total:.2f} {currency}) must equal "
            f"{amount_label} ({expected:.2f} {currency})"
        )


class ReasonRequiredError(ReconError):
    """Approval requests must carry a non-blank reason."""

    def __init__(self) -> None:
        super().__init__("Reason is required")


class ApprovalError(ReconError):
    """Illegal approval lifecycle transition or missing permission."""


class PermissionDenied(ReconError):
    """The acting user lacks the capability for this operation."""
