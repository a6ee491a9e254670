"""
Order completion service: runs the completion check, asks the operator to
confirm, and moves the order to completed through the order API.

A completion that is blocked never reaches the API. Repeat clicks while the
status update is in flight are ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable, Sequence

from recon_core.completion import CompletionResult, evaluate_completion
from recon_core.contracts import LedgerEntry, Order, OrderStatus
from recon_core.direction import RateLookup
from recon_core.errors import PermissionDenied
from workflow.api import OrderMutationApi
from workflow.permissions import User, can_perform_order_actions
from workflow.single_flight import SingleFlight

if TYPE_CHECKING:
    from cli.structured_log import StructuredEventLogger
    from config.recon_config import ReconConfig
    from journal.writer import JournalWriter

logger = logging.getLogger("recon.workflow")


def confirm_message(order: Order) -> str:
    if order.is_flex_order:
        return "Are you sure you want to complete this flex order?"
    return "Are you sure you want to complete this order?"


@dataclass(frozen=True)
class CompletionOutcome:
    result: CompletionResult
    completed: bool = False
    cancelled: bool = False
    order: Order | None = None


class OrderCompletionService:
    """Complete orders whose receipts and payments reconcile.

    Parameters
    ----------
    api:
        Order backend.
    lookup_rate:
        Currency code -> reference rate, used for direction inference.
    confirm:
        Called with the confirmation prompt; returning False cancels.
        Defaults to always confirming.
    """

    def __init__(
        self,
        api: OrderMutationApi,
        lookup_rate: RateLookup,
        *,
        confirm: Callable[[str], bool] | None = None,
        config: ReconConfig | None = None,
        journal: JournalWriter | None = None,
        events: StructuredEventLogger | None = None,
    ) -> None:
        self._api = api
        self._lookup_rate = lookup_rate
        self._confirm = confirm or (lambda _message: True)
        self._config = config
        self._journal = journal
        self._events = events
        self._guard = SingleFlight("complete-order")

    @property
    def in_flight(self) -> bool:
        return self._guard.in_flight

    def check(
        self,
        order: Order,
        receipts: Sequence[LedgerEntry],
        payments: Sequence[LedgerEntry],
        override_rate: str | None = None,
    ) -> CompletionResult:
        """Run the completion check without touching the API."""
        return evaluate_completion(order, receipts, payments, self._lookup_rate, override_rate, self._config)

    def complete(
        self,
        order: Order,
        receipts: Sequence[LedgerEntry],
        payments: Sequence[LedgerEntry],
        override_rate: str | None = None,
        user: User | None = None,
    ) -> CompletionOutcome | None:
        """Complete *order* if eligible and confirmed.

        Returns None when a completion for this service is already in flight.

        Raises
        ------
        PermissionDenied
            If *user* is neither an admin nor the order's creator/handler.
        """
        if user is not None and not can_perform_order_actions(order, user):
            raise PermissionDenied(f"User {user.id} cannot complete order {order.id}")
        flight = self._guard.run(self._complete, order, receipts, payments, override_rate)
        return flight.value if flight.submitted else None

    def _complete(
        self,
        order: Order,
        receipts: Sequence[LedgerEntry],
        payments: Sequence[LedgerEntry],
        override_rate: str | None,
    ) -> CompletionOutcome:
        result = self.check(order, receipts, payments, override_rate)
        notice = result.notice.message() if result.notice else ""
        if self._events:
            self._events.completion_checked(order.id, result.eligible, notice)

        if not result.eligible:
            logger.info("Completion of order %s blocked: %s", order.id, notice)
            if self._events:
                self._events.completion_blocked(order.id, notice)
            if self._journal:
                self._journal.completion(order.id, False, notice)
            return CompletionOutcome(result=result)

        if not self._confirm(confirm_message(order)):
            logger.info("Completion of order %s cancelled by operator", order.id)
            return CompletionOutcome(result=result, cancelled=True)

        if order.id is None:
            raise ValueError("Order has no id; it must be persisted before it can be completed")
        self._api.update_status(order.id, OrderStatus.COMPLETED)

        if self._journal:
            self._journal.completion(
                order.id,
                True,
                effective_rate=result.effective_rate,
                expected_payment=result.expected_payment,
            )
        if self._events:
            self._events.order_completed(order.id, result.effective_rate)
        return CompletionOutcome(
            result=result,
            completed=True,
            order=replace(order, status=OrderStatus.COMPLETED),
        )
