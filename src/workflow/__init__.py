"""
Order workflow on top of recon-core: completion, approval requests,
permissions and per-user preferences. Talks to the backend only through
the OrderMutationApi protocol.
"""

from workflow.api import OrderMutationApi, RecordingOrderApi
from workflow.approvals import (
    ApprovalService,
    Decision,
    Submission,
    apply_patch,
    approve,
    create_request,
    reject,
)
from workflow.completion import CompletionOutcome, OrderCompletionService
from workflow.permissions import User
from workflow.preferences import (
    InMemoryPreferenceStore,
    PreferenceStore,
    SqlitePreferenceStore,
)
from workflow.single_flight import FlightResult, SingleFlight

__all__ = [
    "apply_patch",
    "ApprovalService",
    "approve",
    "CompletionOutcome",
    "create_request",
    "Decision",
    "FlightResult",
    "InMemoryPreferenceStore",
    "OrderCompletionService",
    "OrderMutationApi",
    "PreferenceStore",
    "RecordingOrderApi",
    "reject",
    "SingleFlight",
    "SqlitePreferenceStore",
    "Submission",
    "User",
]
