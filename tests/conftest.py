"""Pytest fixtures: currency snapshots, orders and ledgers for deterministic tests."""

import pytest

from recon_core.contracts import Currency, EntryStatus, LedgerEntry, Order, OrderStatus
from recon_core.currency_lookup import rate_lookup


def entry(amount: float, account_id: int | None = 1, *, draft: bool = False, **kwargs) -> LedgerEntry:
    status = EntryStatus.DRAFT if draft else EntryStatus.CONFIRMED
    return LedgerEntry(amount=amount, account_id=account_id, status=status, **kwargs)


@pytest.fixture
def currencies() -> list[Currency]:
    return [
        Currency("USDT", conversion_rate_buy=1.0, conversion_rate_sell=1.0),
        Currency("USDC", base_rate_buy=0.999),
        Currency("AED", base_rate_buy=3.6725, base_rate_sell=3.6725),
        Currency("SAR", base_rate_buy=3.75),
        Currency("INR", conversion_rate_buy=83.2, base_rate_buy=83.0),
        Currency("PKR", base_rate_sell=278.5),
    ]


@pytest.fixture
def lookup(currencies):
    return rate_lookup(currencies)


@pytest.fixture
def usdt_aed_order() -> Order:
    """1000 USDT -> 3672.50 AED at 3.6725; USDT is the base."""
    return Order(
        from_currency="USDT",
        to_currency="AED",
        amount_buy=1000.0,
        amount_sell=3672.5,
        rate=3.6725,
        id=1042,
        status=OrderStatus.UNDER_PROCESS,
        handler_id=7,
        created_by=3,
    )


@pytest.fixture
def inr_aed_order() -> Order:
    """83,200 INR -> AED at 22.655 INR per AED; AED (smaller rate) is the base."""
    return Order(
        from_currency="INR",
        to_currency="AED",
        amount_buy=83_200.0,
        amount_sell=83_200.0 / 22.655,
        rate=22.655,
        id=2001,
        status=OrderStatus.PENDING,
    )


@pytest.fixture
def flex_order() -> Order:
    return Order(
        from_currency="USDT",
        to_currency="AED",
        amount_buy=1000.0,
        amount_sell=3672.5,
        rate=3.6725,
        id=3001,
        status=OrderStatus.UNDER_PROCESS,
        is_flex_order=True,
        actual_amount_buy=1200.0,
        actual_rate=3.67,
    )
