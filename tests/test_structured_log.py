"""Tests for structured JSON event logger."""

import io
import json

import pytest

from cli.structured_log import StructuredEventLogger


@pytest.fixture
def buf() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(buf: io.StringIO) -> StructuredEventLogger:
    return StructuredEventLogger("fxrecon-test", enabled=True, stream=buf)


class TestEmit:
    def test_completion_checked(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.completion_checked(order_id=1042, eligible=False, notice="Please upload receipts")
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "completion_checked"
        assert record["source"] == "fxrecon-test"
        assert record["order_id"] == 1042
        assert record["eligible"] is False
        assert "ts" in record

    def test_order_completed(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.order_completed(order_id=7, effective_rate=3.6725)
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "order_completed"
        assert record["effective_rate"] == 3.6725

    def test_amendment_submitted(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.amendment_submitted(order_id=7, request_type="edit", changed_fields=["rate"])
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "amendment_submitted"
        assert record["changed_fields"] == ["rate"]

    def test_amendment_rejected(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.amendment_rejected(order_id=7, reason="typo (Rejected)")
        record = json.loads(buf.getvalue().strip())
        assert record["reason"] == "typo (Rejected)"

    def test_error_event(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.error(message="API down", detail="ConnectionError")
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "error"
        assert record["detail"] == "ConnectionError"


class TestDisabled:
    def test_no_output_when_disabled(self, buf: io.StringIO) -> None:
        logger = StructuredEventLogger(enabled=False, stream=buf)
        logger.completion_checked(order_id=1, eligible=True)
        logger.order_completed(order_id=1, effective_rate=1.0)
        assert buf.getvalue() == ""


class TestWebhook:
    def test_alert_events_posted(self, buf: io.StringIO, monkeypatch: pytest.MonkeyPatch) -> None:
        posted: list[dict] = []
        logger = StructuredEventLogger(stream=buf, webhook_url="http://hook.example")
        monkeypatch.setattr(logger, "_post_webhook", posted.append)
        logger.completion_checked(order_id=1, eligible=True)
        logger.amendment_approved(order_id=1, request_type="edit", approver=2)
        assert [r["event"] for r in posted] == ["amendment_approved"]

    def test_webhook_failure_is_logged_not_raised(
        self, buf: io.StringIO, caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def refuse(*args, **kwargs):
            raise OSError("connection refused")

        monkeypatch.setattr("urllib.request.urlopen", refuse)
        logger = StructuredEventLogger(stream=buf, webhook_url="http://hook.example")
        logger.error(message="boom")
        assert any("Webhook POST failed" in r.message for r in caplog.records)


class TestReturnValue:
    def test_returns_record(self, logger: StructuredEventLogger) -> None:
        record = logger.completion_blocked(order_id=3, reason="Missing payments")
        assert isinstance(record, dict)
        assert record["event"] == "completion_blocked"
        assert record["reason"] == "Missing payments"
