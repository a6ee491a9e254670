"""
Human-readable reconciliation output for the terminal.

Every CLI command uses these formatters so an operator can see why an
order is blocked or what an amendment changes. Journal receives the same data.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from recon_core.contracts import BaseSide, ChangeSet, FundingState, LedgerDiff, Order

if TYPE_CHECKING:
    from config.recon_config import DisplayConfig
    from recon_core.completion import CompletionResult
    from recon_core.errors import ReconError


def _amt(value: float | None, decimals: int = 2) -> str:
    if value is None:
        return "-"
    return f"{value:,.{decimals}f}"


def _value(value: Any) -> str:
    if value is None:
        return "(cleared)"
    if isinstance(value, float):
        return f"{value:,.2f}"
    return str(value)


def format_direction(from_currency: str, to_currency: str, side: BaseSide) -> str:
    if side == BaseSide.AMBIGUOUS:
        return f"{from_currency}/{to_currency}: base is ambiguous (treated as {from_currency}, multiply buy -> sell)"
    base = from_currency if side == BaseSide.FROM else to_currency
    return f"{from_currency}/{to_currency}: base currency {base} ({side.value} side)"


def format_conversion(
    amount: float,
    result: float,
    rate: float,
    known_currency: str,
    other_currency: str,
    display: DisplayConfig | None = None,
) -> str:
    decimals = display.amount_decimals if display else 2
    rate_decimals = display.rate_decimals if display else 4
    return (
        f"{_amt(amount, decimals)} {known_currency} @ {rate:.{rate_decimals}f} "
        f"-> {_amt(result, decimals)} {other_currency}"
    )


def _funding_line(label: str, state: FundingState | None, currency: str) -> str:
    if state is None:
        return f"{label:<12} : not evaluated"
    return (
        f"{label:<12} : {_amt(state.actual)} / {_amt(state.expected)} {currency} "
        f"-> {state.classification.value} (delta {state.delta:+.2f}, tol {state.tolerance:.2f})"
    )


def format_completion(order: Order, result: CompletionResult) -> str:
    """Completion check summary: every stage that ran, then the verdict."""
    kind = "flex order" if order.is_flex_order else "order"
    lines = [
        f"=== Completion check: {kind} #{order.id} {order.from_currency}->{order.to_currency} ===",
        f"Status       : {order.status.value}",
        f"Amounts      : buy {_amt(order.amount_buy)} {order.from_currency} | sell {_amt(order.amount_sell)} {order.to_currency}",
    ]
    if result.effective_rate is not None:
        lines.append(f"Rate         : {result.effective_rate:.4f}")
    if result.receipts is not None:
        lines.append(_funding_line("Receipts", result.receipts, order.from_currency))
    if result.payments is not None:
        lines.append(_funding_line("Payments", result.payments, order.to_currency))
    if result.eligible:
        lines.append("Verdict      : READY to complete")
    else:
        lines.append("Verdict      : BLOCKED")
        if result.notice is not None:
            lines.append(f"  {result.notice.message()}")
    lines.append("===")
    return "\n".join(lines)


def _ledger_lines(label: str, ledger: LedgerDiff) -> list[str]:
    lines: list[str] = []
    for e in ledger.removed:
        lines.append(f"  - {label}: {_amt(e.amount)} (account {e.account_id})")
    for e in ledger.added:
        lines.append(f"  + {label}: {_amt(e.amount)} (account {e.account_id})")
    for img in ledger.image_replaced:
        lines.append(f"  ~ {label} #{img.index + 1}: image {img.old_image_path or '-'} -> {img.new_image_path or '-'}")
    return lines


def format_change_set(change_set: ChangeSet, errors: list[ReconError] | None = None) -> str:
    """Amendment diff with field changes, ledger changes and blocking errors."""
    lines = ["=== Amendment changes ==="]
    if not change_set.has_changes:
        lines.append("  No changes.")
    for change in change_set.field_changes:
        lines.append(f"  {change.field:<26}: {_value(change.old)} -> {_value(change.new)}")
    lines.extend(_ledger_lines("receipt", change_set.receipts))
    lines.extend(_ledger_lines("payment", change_set.payments))
    if errors:
        lines.append("")
        lines.append("Cannot submit:")
        for err in errors:
            lines.append(f"  ✗ {err}")
    lines.append("===")
    return "\n".join(lines)
