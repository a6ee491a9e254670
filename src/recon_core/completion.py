"""
Completion check: chains Direction -> Amounts -> Flex Rate -> Funding.

Single entry point deciding whether an order may move
pending|under_process -> completed. A blocked order always yields a
structured notice (missing amount, excess amount, ...) so the host can
prompt for more receipts/payments or warn about overpayment.

Stages:
    1. Status gate:        only pending / under_process orders complete
    2. Presence gate:      at least one confirmed receipt and payment
    3. Effective rate:     flex override or order rate; must be > 0
    4. Receipt funding:    confirmed receipts vs amount_buy (actual_amount_buy for flex)
    5. Expected payment:   flex resolver or amount calculator
    6. Payment funding:    confirmed payments vs expected payment
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence, Union

from recon_core.amounts import derive_other_leg
from recon_core.contracts import (
    BaseSide,
    FundingClass,
    FundingState,
    LedgerEntry,
    Order,
    OrderStatus,
)
from recon_core.direction import RateLookup
from recon_core.flex_rate import expected_flex_payment, resolve_order_rate
from recon_core.funding import FUNDING_TOLERANCE, reconcile, reconcile_payments, sum_confirmed
from recon_core.numeric import is_positive_rate

if TYPE_CHECKING:
    from config.recon_config import ReconConfig

logger = logging.getLogger("recon.completion")

COMPLETABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.UNDER_PROCESS})


# ---------------------------------------------------------------------------
# Notices
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IneligibleStatusNotice:
    status: OrderStatus

    def message(self) -> str:
        return f"Order with status '{self.status.value}' cannot be completed"


@dataclass(frozen=True)
class NoReceiptsNotice:
    def message(self) -> str:
        return "Please upload at least one receipt before completing the order."


@dataclass(frozen=True)
class NoPaymentsNotice:
    def message(self) -> str:
        return "Please upload at least one payment before completing the order."


@dataclass(frozen=True)
class InvalidRateNotice:
    rate: float

    def message(self) -> str:
        return f"Cannot compute expected amount: invalid rate {self.rate!r}"


@dataclass(frozen=True)
class MissingAmountNotice:
    leg: str            # "receipts" | "payments"
    expected: float
    actual: float
    missing: float
    currency: str

    def message(self) -> str:
        return f"Please upload {self.leg} for the remaining amount: {self.missing:.2f} {self.currency}"


@dataclass(frozen=True)
class ExcessAmountNotice:
    leg: str            # "receipts" | "payments"
    expected: float
    actual: float
    excess: float
    currency: str
    additional_receipts: float | None = None
    receipt_currency: str | None = None

    def message(self) -> str:
        if self.leg == "payments" and self.additional_receipts is not None:
            return (
                "Payment exceeds expected amount. Please upload additional receipts: "
                f"{self.additional_receipts:.2f} {self.receipt_currency}"
            )
        return f"Total {self.leg} exceed the expected amount by {self.excess:.2f} {self.currency}"


CompletionNotice = Union[
    IneligibleStatusNotice,
    NoReceiptsNotice,
    NoPaymentsNotice,
    InvalidRateNotice,
    MissingAmountNotice,
    ExcessAmountNotice,
]


@dataclass(frozen=True)
class CompletionResult:
    """Outcome of the completion check; every computed stage is preserved."""

    eligible: bool
    notice: CompletionNotice | None = None
    effective_rate: float | None = None
    receipts: FundingState | None = None
    expected_payment: float | None = None
    payments: FundingState | None = None


# ---------------------------------------------------------------------------
# Check
# ---------------------------------------------------------------------------


def _leg_notice(state: FundingState, leg: str, currency: str, receipt_currency: str) -> CompletionNotice | None:
    if state.classification == FundingClass.UNDER:
        return MissingAmountNotice(
            leg=leg, expected=state.expected, actual=state.actual,
            missing=state.shortfall, currency=currency,
        )
    if state.classification == FundingClass.OVER:
        return ExcessAmountNotice(
            leg=leg, expected=state.expected, actual=state.actual,
            excess=state.excess, currency=currency,
            additional_receipts=state.additional_receipts,
            receipt_currency=receipt_currency,
        )
    return None


def expected_payment_for(
    order: Order,
    lookup_rate: RateLookup,
    override_rate: str | None = None,
    config: ReconConfig | None = None,
) -> float:
    """Expected payment: flex resolver for flex orders, amount calculator otherwise.

    Raises InvalidRate when the effective rate is not > 0.
    """
    if order.is_flex_order:
        return expected_flex_payment(order, override_rate, lookup_rate, config)
    return derive_other_leg(
        order.amount_buy, order.rate, order.from_currency, order.to_currency,
        BaseSide.FROM, lookup_rate, config,
    )


def evaluate_completion(
    order: Order,
    receipts: Sequence[LedgerEntry],
    payments: Sequence[LedgerEntry],
    lookup_rate: RateLookup,
    override_rate: str | None = None,
    config: ReconConfig | None = None,
) -> CompletionResult:
    """Decide whether *order* may be completed.

    Parameters
    ----------
    order:
        Order snapshot.
    receipts, payments:
        Ledger entries; drafts are ignored.
    lookup_rate:
        Currency code -> reference rate.
    override_rate:
        Flex-order rate input as typed by the operator ("" clears, None = no override).
    config:
        ReconConfig supplying the funding tolerance.

    Returns
    -------
    CompletionResult
        ``eligible`` True, or False with a structured ``notice``.
    """
    tolerance = config.tolerances.funding if config else FUNDING_TOLERANCE

    if order.status not in COMPLETABLE_STATUSES:
        return CompletionResult(eligible=False, notice=IneligibleStatusNotice(order.status))

    if sum_confirmed(receipts) <= 0:
        return CompletionResult(eligible=False, notice=NoReceiptsNotice())
    if sum_confirmed(payments) <= 0:
        return CompletionResult(eligible=False, notice=NoPaymentsNotice())

    rate = resolve_order_rate(order, override_rate)
    if not is_positive_rate(rate):
        return CompletionResult(eligible=False, notice=InvalidRateNotice(rate), effective_rate=rate)

    receipt_state = reconcile(order.expected_receipt_amount(), receipts, tolerance)
    notice = _leg_notice(receipt_state, "receipts", order.from_currency, order.from_currency)
    if notice is not None:
        return CompletionResult(
            eligible=False, notice=notice, effective_rate=rate, receipts=receipt_state,
        )

    expected_payment = expected_payment_for(order, lookup_rate, override_rate, config)
    payment_state = reconcile_payments(
        expected_payment, payments, rate, order.from_currency, order.to_currency,
        lookup_rate, tolerance, config,
    )
    notice = _leg_notice(payment_state, "payments", order.to_currency, order.from_currency)
    if notice is not None:
        logger.info("Order %s blocked: %s", order.id, notice.message())

    return CompletionResult(
        eligible=notice is None,
        notice=notice,
        effective_rate=rate,
        receipts=receipt_state,
        expected_payment=expected_payment,
        payments=payment_state,
    )
