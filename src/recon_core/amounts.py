"""
Amount Calculator: one leg amount + rate + direction -> the other leg.

    base side == known side  -> other = known * rate   (base -> quote)
    base side is the other   -> other = known / rate   (quote -> base)
    AMBIGUOUS                -> FROM treated as base (buy -> sell multiplies)

Outputs are not rounded. Display code rounds; reconciliation compares
unrounded values with an explicit tolerance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from recon_core.contracts import BaseSide, Order
from recon_core.direction import RateLookup, base_is_from, resolve_base
from recon_core.errors import InvalidRate
from recon_core.numeric import AMOUNT_TOLERANCE, approx_equal, is_positive_rate

if TYPE_CHECKING:
    from config.recon_config import ReconConfig


def require_positive_rate(rate: object) -> float:
    """Return *rate* as float, or raise InvalidRate."""
    if not is_positive_rate(rate):
        raise InvalidRate(rate)
    return float(rate)  # type: ignore[arg-type]


def derive_other_leg(
    known_amount: float,
    rate: float,
    from_currency: str,
    to_currency: str,
    known_side: BaseSide,
    lookup_rate: RateLookup,
    config: ReconConfig | None = None,
) -> float:
    """Compute the unknown leg of a trade from the known one.

    Raises
    ------
    InvalidRate
        If *rate* is not finite or <= 0. Callers leave the other leg untouched.
    ValueError
        If *known_side* is not FROM or TO.
    """
    if known_side not in (BaseSide.FROM, BaseSide.TO):
        raise ValueError(f"known_side must be FROM or TO, got {known_side!r}")
    checked_rate = require_positive_rate(rate)

    side = resolve_base(from_currency, to_currency, lookup_rate, config)
    from_is_base = base_is_from(side)
    known_is_base = from_is_base == (known_side == BaseSide.FROM)

    if known_is_base:
        return known_amount * checked_rate
    return known_amount / checked_rate


def calculate_amount_sell(
    amount_buy: float,
    rate: float,
    from_currency: str,
    to_currency: str,
    lookup_rate: RateLookup,
    config: ReconConfig | None = None,
) -> float:
    """Sell leg from the buy leg; 0.0 when the rate is unusable (display helper)."""
    try:
        return derive_other_leg(
            amount_buy, rate, from_currency, to_currency, BaseSide.FROM, lookup_rate, config,
        )
    except InvalidRate:
        return 0.0


def calculate_amount_buy(
    amount_sell: float,
    rate: float,
    from_currency: str,
    to_currency: str,
    lookup_rate: RateLookup,
    config: ReconConfig | None = None,
) -> float:
    """Buy leg from the sell leg; 0.0 when the rate is unusable."""
    try:
        return derive_other_leg(
            amount_sell, rate, from_currency, to_currency, BaseSide.TO, lookup_rate, config,
        )
    except InvalidRate:
        return 0.0


def check_leg_consistency(
    order: Order,
    lookup_rate: RateLookup,
    config: ReconConfig | None = None,
) -> bool:
    """Non-flex invariant: amount_sell matches amount_buy at rate within the leg tolerance."""
    tolerance = config.tolerances.leg if config else AMOUNT_TOLERANCE
    try:
        derived = derive_other_leg(
            order.amount_buy, order.rate, order.from_currency, order.to_currency,
            BaseSide.FROM, lookup_rate, config,
        )
    except InvalidRate:
        return False
    return approx_equal(order.amount_sell, derived, tolerance)
