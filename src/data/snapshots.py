"""
Load currency/order/ledger/amendment snapshots from JSON documents.

Accepts the camelCase keys produced by the order API as well as
snake_case. Numeric fields may arrive as strings and are coerced.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from recon_core.contracts import (
    ORDER_FIELD_NAMES,
    AmendmentRequest,
    ApprovalStatus,
    Currency,
    EntryStatus,
    LedgerEntry,
    Order,
    OrderPatch,
    OrderStatus,
    RequestType,
)

logger = logging.getLogger("recon.data")

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

# Keys of an amendment payload that are not order fields.
_NON_PATCH_KEYS = frozenset({"receipts", "payments", "receipt_files", "payment_files", "tag_ids"})

_FLOAT_FIELDS = frozenset({
    "amount_buy", "amount_sell", "rate", "actual_amount_buy", "actual_amount_sell",
    "actual_rate", "profit_amount", "service_charge_amount",
})
_INT_FIELDS = frozenset({
    "id", "profit_account_id", "service_charge_account_id", "customer_id",
    "handler_id", "created_by",
})
_REQUIRED_ORDER_FIELDS = ("from_currency", "to_currency", "amount_buy", "amount_sell", "rate")


class SnapshotError(ValueError):
    """Raised when a snapshot document cannot be turned into contracts."""


def snake_case(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def _normalize(raw: Mapping[str, Any]) -> dict[str, Any]:
    if not isinstance(raw, Mapping):
        raise SnapshotError(f"Expected a JSON object, got {type(raw).__name__}")
    return {snake_case(k): v for k, v in raw.items()}


def _float(value: Any, name: str) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise SnapshotError(f"Field {name!r} is not numeric: {value!r}") from exc


def _int(value: Any, name: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise SnapshotError(f"Field {name!r} is not an integer: {value!r}") from exc


def _coerce_field(name: str, value: Any) -> Any:
    if name in _FLOAT_FIELDS:
        return _float(value, name)
    if name in _INT_FIELDS:
        return _int(value, name)
    return value


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def parse_currency(raw: Mapping[str, Any]) -> Currency:
    data = _normalize(raw)
    if not data.get("code"):
        raise SnapshotError("Currency record is missing 'code'")
    return Currency(
        code=str(data["code"]),
        base_rate_buy=_float(data.get("base_rate_buy"), "baseRateBuy"),
        base_rate_sell=_float(data.get("base_rate_sell"), "baseRateSell"),
        conversion_rate_buy=_float(data.get("conversion_rate_buy"), "conversionRateBuy"),
        conversion_rate_sell=_float(data.get("conversion_rate_sell"), "conversionRateSell"),
        active=bool(data.get("active", True)),
    )


def parse_entry(raw: Mapping[str, Any]) -> LedgerEntry:
    """Receipt/payment line; image path prefers new, then current, then stored path."""
    data = _normalize(raw)
    amount = _float(data.get("amount"), "amount")
    image_path = data.get("new_image_path") or data.get("current_image_path") or data.get("image_path")
    try:
        status = EntryStatus(data.get("status", EntryStatus.CONFIRMED.value))
    except ValueError as exc:
        raise SnapshotError(f"Unknown entry status: {data.get('status')!r}") from exc
    return LedgerEntry(
        amount=amount if amount is not None else 0.0,
        account_id=_int(data.get("account_id"), "accountId"),
        status=status,
        image_path=image_path or None,
        has_new_image=bool(data.get("has_new_image", False)),
        id=_int(data.get("id"), "id"),
    )


def parse_order(raw: Mapping[str, Any]) -> Order:
    data = _normalize(raw)
    kwargs: dict[str, Any] = {}
    for name, value in data.items():
        if name not in ORDER_FIELD_NAMES:
            continue
        kwargs[name] = _coerce_field(name, value)

    missing = [k for k in _REQUIRED_ORDER_FIELDS if kwargs.get(k) in (None, "")]
    if missing:
        raise SnapshotError(f"Order is missing required fields: {missing}")

    try:
        kwargs["status"] = OrderStatus(data.get("status", OrderStatus.PENDING.value))
    except ValueError as exc:
        raise SnapshotError(f"Unknown order status: {data.get('status')!r}") from exc
    kwargs["is_flex_order"] = bool(data.get("is_flex_order", False))
    return Order(**kwargs)


def parse_patch(raw: Mapping[str, Any]) -> OrderPatch:
    """Amended order data -> OrderPatch, keeping explicit nulls."""
    data = _normalize(raw)
    values: dict[str, Any] = {}
    for name, value in data.items():
        if name in _NON_PATCH_KEYS:
            continue
        if name not in ORDER_FIELD_NAMES:
            logger.debug("Ignoring non-order key in amendment: %s", name)
            continue
        values[name] = _coerce_field(name, value)
    return OrderPatch(values)


def parse_entries(raw: Iterable[Mapping[str, Any]] | None) -> list[LedgerEntry]:
    return [parse_entry(r) for r in (raw or [])]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OrderSnapshot:
    """An order with its ledger, as loaded for a completion check."""

    order: Order
    receipts: list[LedgerEntry] = field(default_factory=list)
    payments: list[LedgerEntry] = field(default_factory=list)
    override_rate: str | None = None


def parse_order_snapshot(raw: Mapping[str, Any]) -> OrderSnapshot:
    data = _normalize(raw)
    if "order" not in data:
        raise SnapshotError("Order snapshot is missing 'order'")
    override = data.get("flex_order_rate")
    return OrderSnapshot(
        order=parse_order(data["order"]),
        receipts=parse_entries(data.get("receipts")),
        payments=parse_entries(data.get("payments")),
        override_rate=None if override is None else str(override),
    )


def parse_amendment(raw: Mapping[str, Any]) -> AmendmentRequest:
    """Approval request document: original order + ledger and the amended data."""
    data = _normalize(raw)
    if "order" not in data:
        raise SnapshotError("Amendment is missing 'order'")
    amended = _normalize(data.get("amended_data") or {})
    try:
        request_type = RequestType(data.get("request_type", RequestType.EDIT.value))
        status = ApprovalStatus(data.get("status", ApprovalStatus.PENDING.value))
    except ValueError as exc:
        raise SnapshotError(f"Invalid amendment request: {exc}") from exc

    return AmendmentRequest(
        original_order=parse_order(data["order"]),
        reason=str(data.get("reason") or ""),
        request_type=request_type,
        original_receipts=parse_entries(data.get("original_receipts")),
        original_payments=parse_entries(data.get("original_payments")),
        proposed_order=parse_patch(amended),
        proposed_receipts=parse_entries(amended.get("receipts")),
        proposed_payments=parse_entries(amended.get("payments")),
        status=status,
        requested_by=_int(data.get("requested_by"), "requestedBy"),
        id=_int(data.get("id"), "id"),
    )


def _read_json(path: str | Path) -> Any:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Snapshot file not found: {p}")
    try:
        with open(p) as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"{p.name} is not valid JSON: {exc}") from exc


def load_currencies(path: str | Path) -> list[Currency]:
    raw = _read_json(path)
    if isinstance(raw, Mapping):
        raw = raw.get("currencies", [])
    return [parse_currency(r) for r in raw]


def load_order_snapshot(path: str | Path) -> OrderSnapshot:
    return parse_order_snapshot(_read_json(path))


def load_amendment(path: str | Path) -> AmendmentRequest:
    return parse_amendment(_read_json(path))
