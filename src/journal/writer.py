"""
Structured journal: append-only JSON lines. Every order mutation the workflow
performs (completion, amendment request, approval decision) is recorded with
the order id and the reason the user gave.
"""

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any


def _serialize(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if is_dataclass(obj) and not isinstance(obj, type):
        return {k: _serialize(v) for k, v in asdict(obj).items() if not k.startswith("_")}
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [_serialize(x) for x in obj]
    return obj


class JournalWriter:
    """Append-only journal. Each line is a JSON object with event type and payload."""

    def __init__(self, path: str | Path, *, echo_stdout: bool = False) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._echo = echo_stdout

    @property
    def path(self) -> Path:
        return self._path

    def _write(self, event_type: str, payload: dict) -> None:
        record = {"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event_type, **payload}
        line = json.dumps(_serialize(record)) + "\n"
        with open(self._path, "a") as f:
            f.write(line)
        if self._echo:
            print(line.rstrip())

    def completion(self, order_id: int | None, eligible: bool, notice: str | None = None, **extra: Any) -> None:
        self._write("completion", {"order_id": order_id, "eligible": eligible, "notice": notice, **extra})

    def amendment(self, order_id: int | None, request_type: str, reason: str, changed_fields: list[str], **extra: Any) -> None:
        self._write(
            "amendment",
            {"order_id": order_id, "request_type": request_type, "reason": reason, "changed_fields": changed_fields, **extra},
        )

    def approval_decision(self, order_id: int | None, request_type: str, decision: str, decided_by: int | None, reason: str | None = None, **extra: Any) -> None:
        self._write(
            "approval_decision",
            {"order_id": order_id, "request_type": request_type, "decision": decision, "decided_by": decided_by, "reason": reason, **extra},
        )

    def read_all(self) -> list[dict]:
        if not self._path.exists():
            return []
        with open(self._path) as f:
            return [json.loads(line) for line in f if line.strip()]
