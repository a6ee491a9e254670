"""
Currency Direction Resolver: currency pair + rate lookup -> BaseSide.

The base currency of a pair is the one multiplied by the exchange rate to
reach the other side's amount.

Heuristic:
    - A currency is "stable" (USDT-like) when its reference rate is <= 1,
      or, with no known rate, when its code is the configured stable code.
    - Exactly one stable side -> that side is base.
    - Neither stable, both rates known -> the smaller reference rate is base.
    - Both stable, or a rate missing -> AMBIGUOUS. Callers multiply.

Pure and total: never raises.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from recon_core.contracts import BaseSide
from recon_core.numeric import is_finite_number

if TYPE_CHECKING:
    from config.recon_config import ReconConfig

logger = logging.getLogger("recon.direction")

RateLookup = Callable[[str], "float | None"]

DEFAULT_STABLE_CODE = "USDT"
DEFAULT_STABLE_RATE_MAX = 1.0


def _safe_rate(lookup_rate: RateLookup, code: str) -> float | None:
    """Reference rate for *code*, or None when unknown or unusable."""
    try:
        rate = lookup_rate(code)
    except LookupError:
        return None
    if not is_finite_number(rate):
        return None
    return float(rate)  # type: ignore[arg-type]


def _is_stable(code: str, rate: float | None, stable_code: str, stable_rate_max: float) -> bool:
    if rate is not None:
        return rate <= stable_rate_max
    return code == stable_code


def resolve_base(
    from_currency: str,
    to_currency: str,
    lookup_rate: RateLookup,
    config: ReconConfig | None = None,
) -> BaseSide:
    """Decide which side of the pair is the base currency.

    Parameters
    ----------
    from_currency, to_currency:
        Currency codes of the order legs.
    lookup_rate:
        Code -> reference rate (or None when unknown).
    config:
        Optional ReconConfig supplying the stable code and threshold.

    Returns
    -------
    BaseSide
        FROM, TO, or AMBIGUOUS.
    """
    stable_code = config.direction.stable_code if config else DEFAULT_STABLE_CODE
    stable_max = config.direction.stable_rate_max if config else DEFAULT_STABLE_RATE_MAX

    from_rate = _safe_rate(lookup_rate, from_currency)
    to_rate = _safe_rate(lookup_rate, to_currency)

    from_stable = _is_stable(from_currency, from_rate, stable_code, stable_max)
    to_stable = _is_stable(to_currency, to_rate, stable_code, stable_max)

    if from_stable != to_stable:
        return BaseSide.FROM if from_stable else BaseSide.TO

    if from_stable and to_stable:
        logger.debug(
            "Both %s and %s look stable; direction ambiguous (multiply fallback)",
            from_currency, to_currency,
        )
        return BaseSide.AMBIGUOUS

    if from_rate is not None and to_rate is not None:
        return BaseSide.FROM if from_rate < to_rate else BaseSide.TO

    logger.debug(
        "Missing reference rate for %s/%s; direction ambiguous (multiply fallback)",
        from_currency, to_currency,
    )
    return BaseSide.AMBIGUOUS


def base_is_from(side: BaseSide) -> bool:
    """Collapse AMBIGUOUS onto the documented default: treat FROM as base."""
    return side != BaseSide.TO
