"""
recon-core: pure order financial reconciliation engine.

No I/O, no network, no side effects. Consumes currency/order/ledger
snapshots, produces funding states, completion decisions and amendment
change-sets. Fully deterministic and unit-testable.
"""

from recon_core.amendment_diff import diff, diff_request, validate_amendment
from recon_core.amounts import calculate_amount_sell, derive_other_leg
from recon_core.completion import CompletionResult, evaluate_completion
from recon_core.contracts import (
    UNSET,
    AmendmentRequest,
    BaseSide,
    ChangeSet,
    Currency,
    EntryStatus,
    FundingClass,
    FundingState,
    LedgerEntry,
    Order,
    OrderPatch,
    OrderStatus,
)
from recon_core.currency_lookup import rate_lookup
from recon_core.direction import resolve_base
from recon_core.errors import (
    InvalidRate,
    NoChangesError,
    ReconError,
    UnreconciledAmendment,
)
from recon_core.flex_rate import resolve_effective_rate
from recon_core.funding import reconcile, reconcile_payments

__all__ = [
    "AmendmentRequest",
    "BaseSide",
    "calculate_amount_sell",
    "ChangeSet",
    "CompletionResult",
    "Currency",
    "derive_other_leg",
    "diff",
    "diff_request",
    "EntryStatus",
    "evaluate_completion",
    "FundingClass",
    "FundingState",
    "InvalidRate",
    "LedgerEntry",
    "NoChangesError",
    "Order",
    "OrderPatch",
    "OrderStatus",
    "rate_lookup",
    "reconcile",
    "reconcile_payments",
    "ReconError",
    "resolve_base",
    "resolve_effective_rate",
    "UnreconciledAmendment",
    "UNSET",
    "validate_amendment",
]
