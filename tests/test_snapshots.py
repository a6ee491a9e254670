"""Tests for snapshot loading: camelCase documents -> contracts."""

import json
from pathlib import Path

import pytest

from data.snapshots import (
    SnapshotError,
    load_amendment,
    load_currencies,
    load_order_snapshot,
    parse_entry,
    parse_order,
    parse_patch,
    snake_case,
)
from recon_core.contracts import UNSET, EntryStatus, OrderStatus, RequestType

EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


def test_snake_case() -> None:
    assert snake_case("amountBuy") == "amount_buy"
    assert snake_case("serviceChargeAccountId") == "service_charge_account_id"
    assert snake_case("rate") == "rate"


class TestParseOrder:
    def test_camel_case_and_string_numbers(self) -> None:
        order = parse_order(
            {"id": "12", "fromCurrency": "USDT", "toCurrency": "AED", "amountBuy": "100",
             "amountSell": 367.25, "rate": "3.6725", "status": "under_process", "isFlexOrder": True}
        )
        assert order.id == 12
        assert order.amount_buy == 100.0
        assert order.rate == pytest.approx(3.6725)
        assert order.status == OrderStatus.UNDER_PROCESS
        assert order.is_flex_order is True

    def test_unknown_keys_ignored(self) -> None:
        order = parse_order({"fromCurrency": "A", "toCurrency": "B", "amountBuy": 1, "amountSell": 1, "rate": 1, "tags": [1]})
        assert order.status == OrderStatus.PENDING

    def test_missing_required(self) -> None:
        with pytest.raises(SnapshotError, match="missing required"):
            parse_order({"fromCurrency": "USDT"})

    @pytest.mark.parametrize("key", ["amountBuy", "rate", "toCurrency"])
    def test_blank_required_value(self, key: str) -> None:
        raw = {"fromCurrency": "USDT", "toCurrency": "AED", "amountBuy": 100, "amountSell": 367.25, "rate": 3.6725}
        raw[key] = ""
        with pytest.raises(SnapshotError, match="missing required"):
            parse_order(raw)

    def test_bad_number(self) -> None:
        with pytest.raises(SnapshotError, match="not numeric"):
            parse_order({"fromCurrency": "A", "toCurrency": "B", "amountBuy": "lots", "amountSell": 1, "rate": 1})

    def test_bad_status(self) -> None:
        with pytest.raises(SnapshotError, match="Unknown order status"):
            parse_order({"fromCurrency": "A", "toCurrency": "B", "amountBuy": 1, "amountSell": 1, "rate": 1, "status": "done"})


class TestParseEntry:
    def test_image_preference(self) -> None:
        e = parse_entry({"amount": 5, "accountId": 2, "imagePath": "old.jpg", "newImagePath": "new.jpg", "hasNewImage": True})
        assert e.image_path == "new.jpg"
        assert e.has_new_image is True

    def test_defaults_to_confirmed(self) -> None:
        assert parse_entry({"amount": 5}).status == EntryStatus.CONFIRMED

    def test_draft(self) -> None:
        assert parse_entry({"amount": 5, "status": "draft"}).status == EntryStatus.DRAFT


class TestParsePatch:
    def test_explicit_null_kept(self) -> None:
        patch = parse_patch({"remarks": None, "rate": "3.7", "receipts": []})
        assert patch.is_cleared("remarks")
        assert patch.get("rate") == pytest.approx(3.7)
        assert patch.get("amount_buy") is UNSET
        assert "receipts" not in patch


class TestLoaders:
    def test_example_currencies(self) -> None:
        codes = [c.code for c in load_currencies(EXAMPLES / "currencies.json")]
        assert codes[:2] == ["USDT", "AED"]

    def test_currency_list_document(self, tmp_path: Path) -> None:
        p = tmp_path / "c.json"
        p.write_text(json.dumps([{"code": "USDT", "conversionRateBuy": 1}]))
        assert load_currencies(p)[0].reference_rate() == 1.0

    def test_example_order(self) -> None:
        snap = load_order_snapshot(EXAMPLES / "order.json")
        assert snap.order.id == 1042
        assert len(snap.receipts) == 2
        assert snap.payments[1].status == EntryStatus.DRAFT
        assert snap.override_rate is None

    def test_example_amendment(self) -> None:
        req = load_amendment(EXAMPLES / "amendment.json")
        assert req.request_type == RequestType.EDIT
        assert req.requested_by == 7
        assert req.original_order.status == OrderStatus.COMPLETED
        assert req.proposed_order.get("amount_buy") == 1200.0
        assert len(req.proposed_receipts) == 2

    def test_override_rate_read_as_text(self, tmp_path: Path) -> None:
        p = tmp_path / "o.json"
        p.write_text(json.dumps({
            "order": {"fromCurrency": "USDT", "toCurrency": "AED", "amountBuy": 1, "amountSell": 1, "rate": 1},
            "flexOrderRate": 3.7,
        }))
        assert load_order_snapshot(p).override_rate == "3.7"

    def test_missing_file(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_order_snapshot("/nonexistent/order.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        p = tmp_path / "bad.json"
        p.write_text("{nope")
        with pytest.raises(SnapshotError, match="not valid JSON"):
            load_amendment(p)
