"""
Flex Rate Resolver: rate override string + order defaults -> effective rate.

Flex orders may have their exchange rate adjusted after creation, which
shifts the expected settlement amount.

    override == ""        -> 0.0 (explicit "clear rate", not "use default")
    override non-empty    -> float(override); 0.0 when unparsable or non-finite
    override is None      -> order.actual_rate, else order.rate; 0.0 when missing or non-finite

A 0.0 rate is never used for division: expected_flex_payment raises
InvalidRate for it.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from recon_core.amounts import derive_other_leg, require_positive_rate
from recon_core.contracts import BaseSide, Order
from recon_core.direction import RateLookup

if TYPE_CHECKING:
    from config.recon_config import ReconConfig


def resolve_effective_rate(
    override_rate: str | None,
    actual_rate: float | None,
    rate: float | None,
) -> float:
    """Effective flex rate from a possibly-overridden rate string."""
    if override_rate is None:
        fallback = actual_rate if actual_rate is not None else rate
        if fallback is None or not math.isfinite(fallback):
            return 0.0
        return float(fallback)

    text = override_rate.strip()
    if text == "":
        return 0.0
    try:
        value = float(text)
    except ValueError:
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def resolve_order_rate(order: Order, override_rate: str | None = None) -> float:
    """Effective rate for *order*: flex orders honour the override, fixed orders use ``rate``."""
    if order.is_flex_order:
        return resolve_effective_rate(override_rate, order.actual_rate, order.rate)
    return order.rate


def expected_flex_payment(
    order: Order,
    override_rate: str | None,
    lookup_rate: RateLookup,
    config: ReconConfig | None = None,
) -> float:
    """Expected payment of a flex order at its effective rate.

    Raises
    ------
    InvalidRate
        If the effective rate is not > 0 (e.g. the override was cleared).
    """
    effective = require_positive_rate(
        resolve_effective_rate(override_rate, order.actual_rate, order.rate)
    )
    amount_buy = order.actual_amount_buy if order.actual_amount_buy is not None else order.amount_buy
    return derive_other_leg(
        amount_buy, effective, order.from_currency, order.to_currency,
        BaseSide.FROM, lookup_rate, config,
    )
