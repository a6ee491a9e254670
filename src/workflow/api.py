"""
Order mutation API surface used by the workflow services.

The backend owns persistence; the workflow only needs to update orders,
move their status, and create, delete and confirm ledger entries. Payload
builders turn contracts into the camelCase bodies the backend expects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from recon_core.contracts import EntryKind, LedgerEntry, OrderPatch, OrderStatus


class OrderMutationApi(Protocol):
    """Protocol for the order backend. Implement per deployment."""

    def update_order(self, order_id: int, data: dict[str, Any]) -> Any:
        ...

    def update_status(self, order_id: int, status: OrderStatus) -> Any:
        ...

    def delete_order(self, order_id: int) -> Any:
        ...

    def create_entry(self, order_id: int, kind: EntryKind, entry: dict[str, Any]) -> Any:
        ...

    def delete_entry(self, entry_id: int, kind: EntryKind) -> Any:
        ...

    def confirm_entry(self, entry_id: int, kind: EntryKind) -> Any:
        ...


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def order_update_payload(patch: OrderPatch) -> dict[str, Any]:
    """Patch -> backend body. Explicit None is sent so the field is cleared."""
    out: dict[str, Any] = {}
    for name, value in patch.values.items():
        if isinstance(value, Enum):
            value = value.value
        out[camel_case(name)] = value
    return out


def entry_payload(entry: LedgerEntry) -> dict[str, Any]:
    out: dict[str, Any] = {
        "amount": entry.amount,
        "accountId": entry.account_id,
        "status": entry.status.value,
    }
    if entry.image_path:
        out["imagePath"] = entry.image_path
    return out


@dataclass
class ApiCall:
    method: str
    args: tuple[Any, ...]


@dataclass
class RecordingOrderApi:
    """Records every call instead of reaching a backend; for tests and dry runs."""

    calls: list[ApiCall] = field(default_factory=list)
    fail_with: Exception | None = None
    next_entry_id: int = 1000

    def _record(self, method: str, *args: Any) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.calls.append(ApiCall(method, args))

    def methods(self) -> list[str]:
        return [c.method for c in self.calls]

    def update_order(self, order_id: int, data: dict[str, Any]) -> Any:
        self._record("update_order", order_id, data)

    def update_status(self, order_id: int, status: OrderStatus) -> Any:
        self._record("update_status", order_id, status)

    def delete_order(self, order_id: int) -> Any:
        self._record("delete_order", order_id)

    def create_entry(self, order_id: int, kind: EntryKind, entry: dict[str, Any]) -> Any:
        self._record("create_entry", order_id, kind, entry)
        self.next_entry_id += 1
        return {"id": self.next_entry_id}

    def delete_entry(self, entry_id: int, kind: EntryKind) -> Any:
        self._record("delete_entry", entry_id, kind)

    def confirm_entry(self, entry_id: int, kind: EntryKind) -> Any:
        self._record("confirm_entry", entry_id, kind)
