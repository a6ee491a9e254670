"""Currency records -> reference-rate lookup callable."""

from __future__ import annotations

from typing import Iterable, Mapping

from recon_core.contracts import Currency
from recon_core.direction import RateLookup


def index_currencies(currencies: Iterable[Currency]) -> dict[str, Currency]:
    """Index by code; later records win on duplicate codes."""
    return {c.code: c for c in currencies}


def rate_lookup(currencies: Iterable[Currency] | Mapping[str, Currency]) -> RateLookup:
    """Build ``code -> reference rate | None`` over a currency snapshot.

    Unknown codes resolve to None, which the direction resolver treats as
    "rate unknown".
    """
    if isinstance(currencies, Mapping):
        by_code = dict(currencies)
    else:
        by_code = index_currencies(currencies)

    def lookup(code: str) -> float | None:
        currency = by_code.get(code)
        if currency is None:
            return None
        return currency.reference_rate()

    return lookup
