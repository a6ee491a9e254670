"""
Snapshot loading: JSON documents from the order API -> recon_core contracts.

Depends on recon_core.contracts; no dependency from recon_core back to data.
"""

from data.snapshots import (
    OrderSnapshot,
    SnapshotError,
    load_amendment,
    load_currencies,
    load_order_snapshot,
    parse_amendment,
    parse_order_snapshot,
)

__all__ = [
    "load_amendment",
    "load_currencies",
    "load_order_snapshot",
    "OrderSnapshot",
    "parse_amendment",
    "parse_order_snapshot",
    "SnapshotError",
]
