"""
Approval lifecycle for edit/delete requests on orders.

    completed --request edit--> pending_amend --approve--> completed (patched)
                                              --reject---> completed
    completed --request delete-> pending_delete --approve--> removed
                                                --reject---> completed

Only one pending request may exist per order. The pure functions here
compute the next request/order state; ApprovalService pushes the result
through the order API once, journals it and emits events.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from recon_core.amendment_diff import (
    diff_request,
    original_ledger,
    proposed_ledger,
    validate_amendment,
)
from recon_core.contracts import (
    AmendmentRequest,
    ApprovalStatus,
    ChangeSet,
    EntryKind,
    EntryStatus,
    Order,
    OrderPatch,
    OrderStatus,
    RequestType,
)
from recon_core.errors import ApprovalError, PermissionDenied, ReasonRequiredError
from workflow.api import OrderMutationApi, entry_payload, order_update_payload
from workflow.permissions import (
    User,
    can_approve_delete,
    can_approve_edit,
    can_request_delete,
    can_request_edit,
)
from workflow.single_flight import SingleFlight

if TYPE_CHECKING:
    from cli.structured_log import StructuredEventLogger
    from config.recon_config import ReconConfig
    from journal.writer import JournalWriter

logger = logging.getLogger("recon.approvals")

PENDING_ORDER_STATUS = {
    RequestType.EDIT: OrderStatus.PENDING_AMEND,
    RequestType.DELETE: OrderStatus.PENDING_DELETE,
}
_AWAITING = frozenset(PENDING_ORDER_STATUS.values())


@dataclass(frozen=True)
class Submission:
    """A created request and the order as it looks after the status change."""

    request: AmendmentRequest
    order: Order
    change_set: ChangeSet = field(default_factory=ChangeSet)


@dataclass(frozen=True)
class Decision:
    """An approved/rejected request; ``order`` is None once a delete is approved."""

    request: AmendmentRequest
    order: Order | None


# ---------------------------------------------------------------------------
# Pure transitions
# ---------------------------------------------------------------------------


def apply_patch(order: Order, patch: OrderPatch) -> Order:
    """Order with every mentioned field replaced; explicit None clears."""
    values = {k: v for k, v in patch.values.items() if k != "id"}
    return replace(order, **values)


def _restore_status(order: Order, request: AmendmentRequest) -> Order:
    if order.status in _AWAITING:
        return replace(order, status=request.previous_order_status or OrderStatus.COMPLETED)
    return order


def create_request(
    request: AmendmentRequest,
    *,
    user: User | None = None,
    pending: Iterable[AmendmentRequest] = (),
    config: ReconConfig | None = None,
) -> Submission:
    """Validate a draft request and move a completed order to pending_amend/pending_delete.

    Raises
    ------
    ReasonRequiredError
        If the reason is blank.
    PermissionDenied
        If *user* may not request this change.
    ApprovalError
        If the order already has a pending request.
    NoChangesError, UnreconciledAmendment
        If an edit request does not pass amendment validation.
    """
    if not request.reason.strip():
        raise ReasonRequiredError()

    order = request.original_order
    if user is not None:
        allowed = (
            can_request_edit(order, user)
            if request.request_type == RequestType.EDIT
            else can_request_delete(order, user)
        )
        if not allowed:
            raise PermissionDenied(f"User {user.id} cannot request {request.request_type.value} of order {order.id}")

    if order.status in _AWAITING or any(
        p.status == ApprovalStatus.PENDING and p.original_order.id == order.id for p in pending
    ):
        raise ApprovalError(f"Order {order.id} already has a pending request")

    change_set = ChangeSet()
    if request.request_type == RequestType.EDIT:
        change_set = validate_amendment(request, config)

    updated = order
    if order.status == OrderStatus.COMPLETED:
        updated = replace(order, status=PENDING_ORDER_STATUS[request.request_type])

    created = replace(
        request,
        reason=request.reason.strip(),
        status=ApprovalStatus.PENDING,
        previous_order_status=order.status,
        requested_by=request.requested_by if request.requested_by is not None else (user.id if user else None),
    )
    return Submission(request=created, order=updated, change_set=change_set)


def _check_decidable(request: AmendmentRequest, approver: User | None) -> None:
    if request.status != ApprovalStatus.PENDING:
        raise ApprovalError(f"Request is already {request.status.value}")
    if approver is None:
        return
    allowed = (
        can_approve_edit(approver)
        if request.request_type == RequestType.EDIT
        else can_approve_delete(approver)
    )
    if not allowed:
        raise PermissionDenied(f"User {approver.id} cannot approve {request.request_type.value} requests")


def approve(request: AmendmentRequest, order: Order, approver: User | None = None) -> Decision:
    """Apply the request: patch the order (edit) or drop it (delete)."""
    _check_decidable(request, approver)
    decided = replace(
        request,
        status=ApprovalStatus.APPROVED,
        decided_by=approver.id if approver else None,
    )
    if request.request_type == RequestType.DELETE:
        return Decision(request=decided, order=None)
    patched = apply_patch(order, request.proposed_order)
    return Decision(request=decided, order=_restore_status(patched, request))


def reject(
    request: AmendmentRequest,
    order: Order,
    approver: User | None = None,
    reason: str | None = None,
) -> Decision:
    """Leave the order untouched apart from restoring its status."""
    _check_decidable(request, approver)
    decision_reason = reason.strip() if reason and reason.strip() else f"{request.reason} (Rejected)"
    decided = replace(
        request,
        status=ApprovalStatus.REJECTED,
        decided_by=approver.id if approver else None,
        decision_reason=decision_reason,
    )
    return Decision(request=decided, order=_restore_status(order, request))


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


def _require_id(order: Order) -> int:
    if order.id is None:
        raise ValueError("Order has no id; it must be persisted before it can be changed")
    return order.id


def _created_id(created: Any, kind: EntryKind) -> int:
    """Id of a newly created entry, from the backend response."""
    entry_id = created.get("id") if isinstance(created, Mapping) else created
    if not isinstance(entry_id, int) or isinstance(entry_id, bool):
        raise ApprovalError(f"Backend returned no id for the new {kind.value}; it cannot be confirmed")
    return entry_id


class ApprovalService:
    """Submit and decide requests against the order API, once per action."""

    def __init__(
        self,
        api: OrderMutationApi,
        *,
        journal: JournalWriter | None = None,
        events: StructuredEventLogger | None = None,
        config: ReconConfig | None = None,
    ) -> None:
        self._api = api
        self._journal = journal
        self._events = events
        self._config = config
        self._submit_guard = SingleFlight("amendment-submit")
        self._decide_guard = SingleFlight("amendment-decision")

    def submit(
        self,
        request: AmendmentRequest,
        user: User | None = None,
        pending: Iterable[AmendmentRequest] = (),
    ) -> Submission | None:
        """Create the request; None when a submission is already in flight."""
        result = self._submit_guard.run(self._submit, request, user, pending)
        return result.value if result.submitted else None

    def _submit(self, request: AmendmentRequest, user: User | None, pending: Iterable[AmendmentRequest]) -> Submission:
        submission = create_request(request, user=user, pending=pending, config=self._config)
        order = request.original_order
        if submission.order.status != order.status:
            self._api.update_status(_require_id(order), submission.order.status)

        changed = submission.change_set.changed_fields()
        logger.info("Order %s: %s request submitted", order.id, request.request_type.value)
        if self._journal:
            self._journal.amendment(
                order.id,
                request.request_type.value,
                submission.request.reason,
                changed,
                receipts_changed=submission.change_set.receipts_changed,
                payments_changed=submission.change_set.payments_changed,
            )
        if self._events:
            self._events.amendment_submitted(order.id, request.request_type.value, changed)
        return submission

    def approve(self, request: AmendmentRequest, order: Order, approver: User | None = None) -> Decision | None:
        result = self._decide_guard.run(self._approve, request, order, approver)
        return result.value if result.submitted else None

    def _approve(self, request: AmendmentRequest, order: Order, approver: User | None) -> Decision:
        decision = approve(request, order, approver)
        order_id = _require_id(order)

        if decision.order is None:
            self._api.delete_order(order_id)
        else:
            data = order_update_payload(request.proposed_order)
            if data:
                self._api.update_order(order_id, data)
            self._sync_ledger(order_id, request)
            if decision.order.status != order.status:
                self._api.update_status(order_id, decision.order.status)

        self._record_decision(decision, "approved")
        if self._events:
            self._events.amendment_approved(order.id, request.request_type.value, decision.request.decided_by)
        return decision

    def _sync_ledger(self, order_id: int, request: AmendmentRequest) -> None:
        change_set = diff_request(request, self._config)
        for kind, ledger_diff, original, proposed in (
            (EntryKind.RECEIPT, change_set.receipts, request.original_receipts, request.proposed_receipts),
            (EntryKind.PAYMENT, change_set.payments, request.original_payments, request.proposed_payments),
        ):
            removed = list(ledger_diff.removed)
            added = list(ledger_diff.added)
            # Image swaps on otherwise unchanged lines: replace the stored entry.
            original = original_ledger(original)
            proposed = proposed_ledger(proposed)
            for swap in ledger_diff.image_replaced:
                old, new = original[swap.index], proposed[swap.index]
                if any(e is old for e in removed) or any(e is new for e in added):
                    continue
                removed.append(old)
                added.append(new)

            for entry in removed:
                if entry.id is not None:
                    self._api.delete_entry(entry.id, kind)
            for entry in added:
                created = self._api.create_entry(order_id, kind, entry_payload(replace(entry, status=EntryStatus.DRAFT)))
                self._api.confirm_entry(_created_id(created, kind), kind)

    def reject(
        self,
        request: AmendmentRequest,
        order: Order,
        approver: User | None = None,
        reason: str | None = None,
    ) -> Decision | None:
        result = self._decide_guard.run(self._reject, request, order, approver, reason)
        return result.value if result.submitted else None

    def _reject(self, request: AmendmentRequest, order: Order, approver: User | None, reason: str | None) -> Decision:
        decision = reject(request, order, approver, reason)
        if decision.order is not None and decision.order.status != order.status:
            self._api.update_status(_require_id(order), decision.order.status)

        self._record_decision(decision, "rejected")
        if self._events:
            self._events.amendment_rejected(order.id, decision.request.decision_reason or "")
        return decision

    def _record_decision(self, decision: Decision, outcome: str) -> None:
        request = decision.request
        logger.info("Order %s: %s request %s", request.original_order.id, request.request_type.value, outcome)
        if self._journal:
            self._journal.approval_decision(
                request.original_order.id,
                request.request_type.value,
                outcome,
                request.decided_by,
                request.decision_reason,
            )
