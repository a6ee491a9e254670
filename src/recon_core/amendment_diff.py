"""
Amendment Diff Engine: original order + ledger vs proposed amendment -> ChangeSet.

Scalar fields:
    changed iff the key is present in the patch and the value differs:
    numbers beyond the amount tolerance, strings/codes/ids exactly,
    None vs a value always. An explicit None in the patch clears the field.

Ledger lists (receipts, payments):
    multiset match on (amount within tolerance, account_id exact).
    Unmatched proposed entries are "added", unmatched originals "removed".
    Same-index entries whose image changed are reported as image
    replacements independently of amount/account changes.

Validation (before submission):
    - an empty diff raises NoChangesError
    - proposed receipt total must equal proposed amount_buy and payment
      total proposed amount_sell, else UnreconciledAmendment
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from recon_core.contracts import (
    AMENDABLE_FIELDS,
    AmendmentRequest,
    ChangeSet,
    FieldChange,
    ImageReplacement,
    LedgerDiff,
    LedgerEntry,
    Order,
    OrderPatch,
    RequestType,
)
from recon_core.errors import NoChangesError, ReconError, UnreconciledAmendment
from recon_core.numeric import AMOUNT_TOLERANCE, approx_equal, differs

if TYPE_CHECKING:
    from config.recon_config import ReconConfig


def _tolerance(config: ReconConfig | None) -> float:
    return config.tolerances.amendment_amount if config else AMOUNT_TOLERANCE


# Free-text fields the edit form seeds with "" when unset.
_BLANK_IS_NULL = frozenset({"remarks"})


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Entry filters
# ---------------------------------------------------------------------------


def original_ledger(entries: Sequence[LedgerEntry]) -> list[LedgerEntry]:
    """Entries an amendment starts from: confirmed and assigned to an account."""
    return [e for e in entries if e.is_confirmed() and e.account_id is not None]


def proposed_ledger(entries: Sequence[LedgerEntry]) -> list[LedgerEntry]:
    """Entries that count in a proposal: positive amount and an account."""
    return [e for e in entries if e.amount > 0 and e.account_id is not None]


# ---------------------------------------------------------------------------
# Scalar fields
# ---------------------------------------------------------------------------


def scalar_changed(old: Any, new: Any, tolerance: float = AMOUNT_TOLERANCE) -> bool:
    """Field-level comparison used for every amendable scalar."""
    if new is None:
        return old is not None
    if old is None:
        return True
    if _is_number(old) and _is_number(new):
        return differs(float(old), float(new), tolerance)
    return old != new


def diff_fields(
    order: Order,
    patch: OrderPatch,
    tolerance: float = AMOUNT_TOLERANCE,
) -> list[FieldChange]:
    changes: list[FieldChange] = []
    for name in AMENDABLE_FIELDS:
        if name not in patch:
            continue
        old = getattr(order, name)
        new = patch.get(name)
        if name in _BLANK_IS_NULL and not old and not new:
            continue
        if scalar_changed(old, new, tolerance):
            changes.append(FieldChange(field=name, old=old, new=new))
    return changes


# ---------------------------------------------------------------------------
# Ledger lists
# ---------------------------------------------------------------------------


def _same_line(a: LedgerEntry, b: LedgerEntry, tolerance: float) -> bool:
    return a.account_id == b.account_id and approx_equal(a.amount, b.amount, tolerance)


def diff_ledger(
    original: Sequence[LedgerEntry],
    proposed: Sequence[LedgerEntry],
    tolerance: float = AMOUNT_TOLERANCE,
) -> LedgerDiff:
    """Multiset difference plus same-index image replacements."""
    unmatched = list(original)
    added: list[LedgerEntry] = []
    for entry in proposed:
        for idx, candidate in enumerate(unmatched):
            if _same_line(entry, candidate, tolerance):
                del unmatched[idx]
                break
        else:
            added.append(entry)

    replaced: list[ImageReplacement] = []
    for idx, (orig, prop) in enumerate(zip(original, proposed)):
        if prop.has_new_image or prop.image_path != orig.image_path:
            replaced.append(
                ImageReplacement(
                    index=idx,
                    old_image_path=orig.image_path,
                    new_image_path=prop.image_path,
                    has_new_image=prop.has_new_image,
                )
            )

    return LedgerDiff(added=added, removed=unmatched, image_replaced=replaced)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def diff(
    original_order: Order,
    patch: OrderPatch,
    original_receipts: Sequence[LedgerEntry] = (),
    proposed_receipts: Sequence[LedgerEntry] = (),
    original_payments: Sequence[LedgerEntry] = (),
    proposed_payments: Sequence[LedgerEntry] = (),
    config: ReconConfig | None = None,
) -> ChangeSet:
    """Compute the ChangeSet an approver reviews.

    Original entries are narrowed to confirmed lines with an account;
    proposed entries to lines with a positive amount and an account.
    """
    tolerance = _tolerance(config)
    return ChangeSet(
        field_changes=diff_fields(original_order, patch, tolerance),
        receipts=diff_ledger(
            original_ledger(original_receipts), proposed_ledger(proposed_receipts), tolerance,
        ),
        payments=diff_ledger(
            original_ledger(original_payments), proposed_ledger(proposed_payments), tolerance,
        ),
    )


def diff_request(request: AmendmentRequest, config: ReconConfig | None = None) -> ChangeSet:
    return diff(
        request.original_order,
        request.proposed_order,
        request.original_receipts,
        request.proposed_receipts,
        request.original_payments,
        request.proposed_payments,
        config,
    )


def _leg_error(
    leg: str,
    entries: Sequence[LedgerEntry],
    expected: float,
    currency: str,
    tolerance: float,
) -> UnreconciledAmendment | None:
    valid = proposed_ledger(entries)
    if not valid:
        return None
    total = sum((e.amount for e in valid), 0.0)
    if differs(total, expected, tolerance):
        return UnreconciledAmendment(leg, total, expected, currency)
    return None


def amendment_errors(
    request: AmendmentRequest,
    change_set: ChangeSet | None = None,
    config: ReconConfig | None = None,
) -> list[ReconError]:
    """Every reason an edit request cannot be submitted, in display order."""
    if request.request_type != RequestType.EDIT:
        return []
    tolerance = _tolerance(config)
    if change_set is None:
        change_set = diff_request(request, config)

    errors: list[ReconError] = []
    if not change_set.has_changes:
        errors.append(NoChangesError())

    order = request.original_order
    patch = request.proposed_order
    for leg, entries, amount_field, currency in (
        ("receipts", request.proposed_receipts, "amount_buy", order.from_currency),
        ("payments", request.proposed_payments, "amount_sell", order.to_currency),
    ):
        expected = patch.resolve(amount_field, order)
        if expected is None:
            expected = getattr(order, amount_field)
        err = _leg_error(leg, entries, float(expected), currency, tolerance)
        if err is not None:
            errors.append(err)
    return errors


def validate_amendment(
    request: AmendmentRequest,
    config: ReconConfig | None = None,
) -> ChangeSet:
    """Return the ChangeSet of a submittable edit request.

    Raises
    ------
    NoChangesError
        If the diff is empty.
    UnreconciledAmendment
        If proposed totals do not match the proposed order amounts.
    """
    change_set = diff_request(request, config)
    errors = amendment_errors(request, change_set, config)
    if errors:
        raise errors[0]
    return change_set
