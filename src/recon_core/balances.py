"""
Account balance warning for outgoing payments.

Warns, never blocks: the operator may still record a payment that takes
an account negative.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BalanceWarning:
    account_id: int | None
    balance: float
    amount: float

    @property
    def resulting_balance(self) -> float:
        return self.balance - self.amount

    def message(self) -> str:
        return (
            f"Insufficient balance: account {self.account_id} has {self.balance:.2f}, "
            f"payment of {self.amount:.2f} leaves {self.resulting_balance:.2f}"
        )


def negative_balance_warning(
    balance: float,
    amount: float,
    account_id: int | None = None,
) -> BalanceWarning | None:
    """BalanceWarning when paying *amount* would leave *balance* negative."""
    if balance < amount:
        return BalanceWarning(account_id=account_id, balance=balance, amount=amount)
    return None
