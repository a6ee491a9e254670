"""
Single-flight guard for order mutations.

Completing an order or submitting an amendment must reach the order API at
most once per user action: a double-clicked "Complete" or "Save" is ignored
while the first call is still in flight. The flag is released when the call
returns or raises.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger("recon.workflow")


@dataclass
class FlightResult:
    submitted: bool
    value: Any = None
    reason: str = ""


class SingleFlight:
    """At-most-one concurrent invocation per guard.

    Parameters
    ----------
    name:
        Label used in log lines (e.g. "complete-order").
    """

    def __init__(self, name: str = "") -> None:
        self._name = name
        self._lock = threading.Lock()
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def _acquire(self) -> bool:
        with self._lock:
            if self._in_flight:
                return False
            self._in_flight = True
            return True

    def _release(self) -> None:
        with self._lock:
            self._in_flight = False

    def run(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> FlightResult:
        """Invoke *fn* unless another invocation is in flight.

        Returns FlightResult(submitted=False) for an ignored repeat; exceptions
        from *fn* propagate after the flag is released.
        """
        if not self._acquire():
            logger.info("Ignoring repeat %s while a call is in flight", self._name or "submission")
            return FlightResult(submitted=False, reason="Already in flight")
        try:
            value = fn(*args, **kwargs)
        finally:
            self._release()
        return FlightResult(submitted=True, value=value)
