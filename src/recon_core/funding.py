"""
Funding Reconciler: expected amount + ledger entries -> FundingState.

    actual = sum of confirmed entry amounts (drafts are visible but excluded)
    delta  = actual - expected
    |delta| <= tolerance  -> EXACT
    delta   < -tolerance  -> UNDER  (shortfall = expected - actual)
    delta   >  tolerance  -> OVER   (excess = actual - expected)

Excess payment is only resolvable by more incoming funds, so the payment
leg also reports how many additional receipts (in the from-currency) the
excess corresponds to.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Iterable

from recon_core.amounts import require_positive_rate
from recon_core.contracts import FundingClass, FundingState, LedgerEntry
from recon_core.direction import RateLookup, base_is_from, resolve_base

if TYPE_CHECKING:
    from config.recon_config import ReconConfig

FUNDING_TOLERANCE = 0.50


def sum_confirmed(entries: Iterable[LedgerEntry]) -> float:
    """Total of confirmed entries only."""
    return sum((e.amount for e in entries if e.is_confirmed()), 0.0)


def _classify(delta: float, tolerance: float) -> FundingClass:
    if abs(delta) <= tolerance:
        return FundingClass.EXACT
    if delta < 0:
        return FundingClass.UNDER
    return FundingClass.OVER


def reconcile(
    expected_amount: float,
    entries: Iterable[LedgerEntry],
    tolerance: float = FUNDING_TOLERANCE,
) -> FundingState:
    """Classify one leg's funding against *expected_amount*.

    Parameters
    ----------
    expected_amount:
        Target total in the leg's currency.
    entries:
        Receipts or payments; only confirmed ones are summed.
    tolerance:
        Absolute tolerance for EXACT (0.50 for funding checks).
    """
    actual = sum_confirmed(entries)
    delta = actual - expected_amount
    return FundingState(
        expected=expected_amount,
        actual=actual,
        delta=delta,
        classification=_classify(delta, tolerance),
        tolerance=tolerance,
    )


def additional_receipts_for_excess(
    excess: float,
    rate: float,
    from_currency: str,
    to_currency: str,
    lookup_rate: RateLookup,
    config: ReconConfig | None = None,
) -> float:
    """Convert an excess payment (to-currency) back to from-currency receipts.

    Inverse of the buy -> sell conversion: base FROM (or ambiguous) divides,
    base TO multiplies.

    Raises
    ------
    InvalidRate
        If *rate* is not finite or <= 0.
    """
    checked_rate = require_positive_rate(rate)
    side = resolve_base(from_currency, to_currency, lookup_rate, config)
    if base_is_from(side):
        return excess / checked_rate
    return excess * checked_rate


def reconcile_payments(
    expected_payment: float,
    payments: Iterable[LedgerEntry],
    rate: float,
    from_currency: str,
    to_currency: str,
    lookup_rate: RateLookup,
    tolerance: float | None = None,
    config: ReconConfig | None = None,
) -> FundingState:
    """Reconcile the payment leg; OVER states carry ``additional_receipts``."""
    if tolerance is None:
        tolerance = config.tolerances.funding if config else FUNDING_TOLERANCE
    state = reconcile(expected_payment, payments, tolerance)
    if state.classification != FundingClass.OVER:
        return state

    additional = additional_receipts_for_excess(
        state.excess, rate, from_currency, to_currency, lookup_rate, config,
    )
    return replace(state, additional_receipts=additional)
