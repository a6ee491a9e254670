"""
Data contracts for recon-core: Currency, Order, LedgerEntry, FundingState,
OrderPatch, ChangeSet, AmendmentRequest.

recon-core consumes Currency/Order/LedgerEntry snapshots and produces
FundingState/ChangeSet. No I/O; these are plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class OrderStatus(str, Enum):
    """Lifecycle status of an order."""

    PENDING = "pending"
    UNDER_PROCESS = "under_process"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    PENDING_AMEND = "pending_amend"
    PENDING_DELETE = "pending_delete"


class EntryStatus(str, Enum):
    """Receipts and payments start as drafts; only confirmed ones count."""

    DRAFT = "draft"
    CONFIRMED = "confirmed"


class EntryKind(str, Enum):
    """Which leg a ledger entry belongs to."""

    RECEIPT = "receipt"
    PAYMENT = "payment"


class BaseSide(str, Enum):
    """Which side of a currency pair is multiplied by the rate."""

    FROM = "from"
    TO = "to"
    AMBIGUOUS = "ambiguous"


class FundingClass(str, Enum):
    """Funding classification of one leg against its expected amount."""

    UNDER = "under"
    EXACT = "exact"
    OVER = "over"


class RequestType(str, Enum):
    EDIT = "edit"
    DELETE = "delete"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ---------------------------------------------------------------------------
# Absent-vs-null marker
# ---------------------------------------------------------------------------


class _Unset:
    """Marker for 'key not mentioned', distinct from an explicit None."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Currency:
    """Currency record as served by the currency lookup."""

    code: str
    base_rate_buy: float | None = None
    base_rate_sell: float | None = None
    conversion_rate_buy: float | None = None
    conversion_rate_sell: float | None = None
    active: bool = True

    def reference_rate(self) -> float | None:
        """First numeric value of conversion_rate_buy, base_rate_buy,
        base_rate_sell, conversion_rate_sell (in that order)."""
        for candidate in (
            self.conversion_rate_buy,
            self.base_rate_buy,
            self.base_rate_sell,
            self.conversion_rate_sell,
        ):
            if isinstance(candidate, (int, float)) and not isinstance(candidate, bool):
                return float(candidate)
        return None


# ---------------------------------------------------------------------------
# Orders and ledger entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerEntry:
    """A receipt (incoming funds) or payment (outgoing funds) line."""

    amount: float
    account_id: int | None = None
    status: EntryStatus = EntryStatus.CONFIRMED
    image_path: str | None = None
    has_new_image: bool = False
    id: int | None = None

    def is_confirmed(self) -> bool:
        return self.status == EntryStatus.CONFIRMED


@dataclass(frozen=True)
class Order:
    """Immutable financial record of one currency exchange.

    ``amount_buy`` is denominated in ``from_currency`` (what we receive),
    ``amount_sell`` in ``to_currency`` (what we pay out).
    """

    from_currency: str
    to_currency: str
    amount_buy: float
    amount_sell: float
    rate: float
    id: int | None = None
    status: OrderStatus = OrderStatus.PENDING
    is_flex_order: bool = False
    actual_amount_buy: float | None = None
    actual_amount_sell: float | None = None
    actual_rate: float | None = None
    remarks: str | None = None
    profit_amount: float | None = None
    profit_currency: str | None = None
    profit_account_id: int | None = None
    service_charge_amount: float | None = None
    service_charge_currency: str | None = None
    service_charge_account_id: int | None = None
    customer_id: int | None = None
    handler_id: int | None = None
    created_by: int | None = None

    def expected_receipt_amount(self) -> float:
        """Receipt target: actual_amount_buy for flex orders when set."""
        if self.is_flex_order and self.actual_amount_buy is not None:
            return self.actual_amount_buy
        return self.amount_buy


ORDER_FIELD_NAMES = frozenset(f.name for f in fields(Order))

# Scalar fields an amendment may touch, in display order.
AMENDABLE_FIELDS: tuple[str, ...] = (
    "amount_buy",
    "amount_sell",
    "rate",
    "remarks",
    "profit_amount",
    "profit_currency",
    "profit_account_id",
    "service_charge_amount",
    "service_charge_currency",
    "service_charge_account_id",
)


@dataclass(frozen=True)
class OrderPatch:
    """Partial order: absent key = not mentioned, explicit None = clear."""

    values: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        unknown = set(self.values) - ORDER_FIELD_NAMES
        if unknown:
            raise ValueError(f"Unknown order fields in patch: {sorted(unknown)}")
        object.__setattr__(self, "values", dict(self.values))

    def __contains__(self, name: object) -> bool:
        return name in self.values

    def get(self, name: str, default: Any = UNSET) -> Any:
        return self.values.get(name, default)

    def resolve(self, name: str, order: Order) -> Any:
        """Value after applying the patch: patched value if mentioned, else the order's."""
        if name in self.values:
            return self.values[name]
        return getattr(order, name)

    def is_cleared(self, name: str) -> bool:
        return name in self.values and self.values[name] is None


# ---------------------------------------------------------------------------
# Derived results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FundingState:
    """Reconciliation of one leg. Derived on every totals change; never persisted."""

    expected: float
    actual: float
    delta: float
    classification: FundingClass
    tolerance: float
    additional_receipts: float | None = None

    @property
    def shortfall(self) -> float:
        if self.classification == FundingClass.UNDER:
            return self.expected - self.actual
        return 0.0

    @property
    def excess(self) -> float:
        if self.classification == FundingClass.OVER:
            return self.actual - self.expected
        return 0.0

    def is_exact(self) -> bool:
        return self.classification == FundingClass.EXACT


@dataclass(frozen=True)
class FieldChange:
    """One scalar field whose proposed value differs from the original."""

    field: str
    old: Any
    new: Any

    @property
    def cleared(self) -> bool:
        return self.new is None and self.old is not None


@dataclass(frozen=True)
class ImageReplacement:
    """Same-index entry whose image reference changed."""

    index: int
    old_image_path: str | None
    new_image_path: str | None
    has_new_image: bool


@dataclass(frozen=True)
class LedgerDiff:
    """Multiset difference between an original and a proposed entry list."""

    added: list[LedgerEntry] = field(default_factory=list)
    removed: list[LedgerEntry] = field(default_factory=list)
    image_replaced: list[ImageReplacement] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """Amount/account membership changed (image swaps tracked separately)."""
        return bool(self.added or self.removed)


@dataclass(frozen=True)
class ChangeSet:
    """Structured diff between an order and a proposed amendment."""

    field_changes: list[FieldChange] = field(default_factory=list)
    receipts: LedgerDiff = field(default_factory=LedgerDiff)
    payments: LedgerDiff = field(default_factory=LedgerDiff)

    @property
    def receipts_changed(self) -> bool:
        return self.receipts.changed

    @property
    def payments_changed(self) -> bool:
        return self.payments.changed

    @property
    def images_replaced(self) -> bool:
        return bool(self.receipts.image_replaced or self.payments.image_replaced)

    @property
    def has_changes(self) -> bool:
        return bool(
            self.field_changes
            or self.receipts_changed
            or self.payments_changed
            or self.images_replaced
        )

    def changed_fields(self) -> list[str]:
        return [c.field for c in self.field_changes]


@dataclass(frozen=True)
class AmendmentRequest:
    """Proposed edit or delete of an order, awaiting approval.

    Never mutated after creation except for ``status`` (via dataclasses.replace).
    """

    original_order: Order
    reason: str
    request_type: RequestType = RequestType.EDIT
    original_receipts: list[LedgerEntry] = field(default_factory=list)
    original_payments: list[LedgerEntry] = field(default_factory=list)
    proposed_order: OrderPatch = field(default_factory=OrderPatch)
    proposed_receipts: list[LedgerEntry] = field(default_factory=list)
    proposed_payments: list[LedgerEntry] = field(default_factory=list)
    status: ApprovalStatus = ApprovalStatus.PENDING
    requested_by: int | None = None
    previous_order_status: OrderStatus | None = None
    id: int | None = None
    decided_by: int | None = None
    decision_reason: str | None = None
