"""
Structured JSON event logger for the reconciliation workflow.

Emits one JSON object per line to stderr so log aggregators can pick up
completions, blocked completions and approval activity.

Optional webhook: when configured, approval-level events (amendment_submitted,
amendment_approved, amendment_rejected, error) are POSTed to the URL.
"""

from __future__ import annotations

import json
import logging
import sys
import urllib.request
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("recon.events")


class StructuredEventLogger:
    """Emit structured JSON events to stderr and optional webhook."""

    def __init__(
        self,
        source: str = "fxrecon",
        *,
        enabled: bool = True,
        webhook_url: str = "",
        stream: Any = None,
    ) -> None:
        self._source = source
        self._enabled = enabled
        self._webhook_url = webhook_url.strip()
        self._stream = stream or sys.stderr
        self._ALERT_EVENTS = {
            "amendment_submitted",
            "amendment_approved",
            "amendment_rejected",
            "error",
        }

    def _emit(self, event_type: str, **fields: Any) -> dict:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event_type,
            "source": self._source,
            **fields,
        }
        if self._enabled:
            self._stream.write(json.dumps(record) + "\n")
            self._stream.flush()

        if self._webhook_url and event_type in self._ALERT_EVENTS:
            self._post_webhook(record)

        return record

    def _post_webhook(self, record: dict) -> None:
        try:
            data = json.dumps(record).encode("utf-8")
            req = urllib.request.Request(
                self._webhook_url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )
            urllib.request.urlopen(req, timeout=5)
        except Exception as exc:
            logger.warning("Webhook POST failed: %s", exc)

    def completion_checked(self, order_id: int | None, eligible: bool, notice: str = "") -> dict:
        return self._emit(
            "completion_checked",
            order_id=order_id,
            eligible=eligible,
            notice=notice,
        )

    def order_completed(self, order_id: int | None, effective_rate: float | None) -> dict:
        return self._emit(
            "order_completed",
            order_id=order_id,
            effective_rate=effective_rate,
        )

    def completion_blocked(self, order_id: int | None, reason: str) -> dict:
        return self._emit("completion_blocked", order_id=order_id, reason=reason)

    def amendment_submitted(
        self,
        order_id: int | None,
        request_type: str,
        changed_fields: list[str],
    ) -> dict:
        return self._emit(
            "amendment_submitted",
            order_id=order_id,
            request_type=request_type,
            changed_fields=changed_fields,
        )

    def amendment_approved(self, order_id: int | None, request_type: str, approver: int | None) -> dict:
        return self._emit(
            "amendment_approved",
            order_id=order_id,
            request_type=request_type,
            approver=approver,
        )

    def amendment_rejected(self, order_id: int | None, reason: str) -> dict:
        return self._emit("amendment_rejected", order_id=order_id, reason=reason)

    def error(self, message: str, detail: str = "") -> dict:
        return self._emit("error", message=message, detail=detail)
