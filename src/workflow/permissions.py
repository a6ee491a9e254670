"""
Capability predicates for order actions and approvals.

Users carry a set of action names granted by their role. Creators and
the current handler may modify an order; approvers act on requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable

from recon_core.contracts import Order
from recon_core.errors import PermissionDenied

DELETE_ORDER = "deleteOrder"
REQUEST_ORDER_EDIT = "requestOrderEdit"
REQUEST_ORDER_DELETE = "requestOrderDelete"
APPROVE_ORDER_EDIT = "approveOrderEdit"
APPROVE_ORDER_DELETE = "approveOrderDelete"


@dataclass(frozen=True)
class User:
    id: int
    actions: frozenset[str] = field(default_factory=frozenset)
    name: str = ""

    def can(self, action: str) -> bool:
        return action in self.actions


def is_admin(user: User | None) -> bool:
    """Only admins hold the deleteOrder action."""
    return user is not None and user.can(DELETE_ORDER)


def can_modify_order(order: Order, user: User | None) -> bool:
    """Creator or current handler."""
    if user is None:
        return False
    return order.created_by == user.id or order.handler_id == user.id


def can_perform_order_actions(order: Order, user: User | None) -> bool:
    """Add receipts/payments/profit/service charges and complete the order."""
    return is_admin(user) or can_modify_order(order, user)


def can_request_edit(order: Order, user: User | None) -> bool:
    if user is None or not user.can(REQUEST_ORDER_EDIT):
        return False
    return is_admin(user) or can_modify_order(order, user)


def can_request_delete(order: Order, user: User | None) -> bool:
    if user is None or not user.can(REQUEST_ORDER_DELETE):
        return False
    return is_admin(user) or can_modify_order(order, user)


def can_approve_edit(user: User | None) -> bool:
    return user is not None and user.can(APPROVE_ORDER_EDIT)


def can_approve_delete(user: User | None) -> bool:
    return user is not None and user.can(APPROVE_ORDER_DELETE)


def reassign_handler(
    order: Order,
    new_handler_id: int,
    user: User | None,
    confirm: Callable[[str], bool],
) -> Order | None:
    """Move *order* to a new handler.

    Privileged: only admins may reassign. When a different handler is being
    replaced, *confirm* must accept a warning that their edit rights are
    revoked. Returns the updated order, or None when the user declines.

    Raises
    ------
    PermissionDenied
        If *user* is not an admin.
    """
    if not is_admin(user):
        raise PermissionDenied("Only administrators can reassign the order handler")
    if order.handler_id == new_handler_id:
        return order
    if order.handler_id is not None:
        message = (
            f"Reassigning order #{order.id} from handler {order.handler_id} to "
            f"{new_handler_id} revokes handler {order.handler_id}'s edit rights. Continue?"
        )
        if not confirm(message):
            return None
    return replace(order, handler_id=new_handler_id)
