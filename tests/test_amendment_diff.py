"""Tests for the amendment diff engine: scalar fields, ledger multisets, images, validation."""

from dataclasses import replace

import pytest

from conftest import entry
from data.snapshots import parse_amendment
from recon_core.amendment_diff import (
    amendment_errors,
    diff,
    diff_request,
    scalar_changed,
    validate_amendment,
)
from recon_core.contracts import AmendmentRequest, Order, OrderPatch, OrderStatus, RequestType
from recon_core.errors import NoChangesError, UnreconciledAmendment


@pytest.fixture
def completed_order() -> Order:
    return Order(
        from_currency="USDT",
        to_currency="AED",
        amount_buy=80.0,
        amount_sell=293.8,
        rate=3.6725,
        id=5,
        status=OrderStatus.COMPLETED,
        remarks="first",
        profit_amount=2.0,
        profit_currency="AED",
        profit_account_id=9,
    )


class TestScalarChanged:
    def test_amount_within_tolerance(self):
        assert scalar_changed(100.0, 100.005) is False

    def test_amount_beyond_tolerance(self):
        assert scalar_changed(100.0, 100.02) is True

    def test_strings_exact(self):
        assert scalar_changed("AED", "AED") is False
        assert scalar_changed("AED", "aed") is True

    def test_null_vs_present(self):
        assert scalar_changed(None, 0) is True
        assert scalar_changed(0, None) is True
        assert scalar_changed(None, "") is True

    def test_null_vs_null(self):
        assert scalar_changed(None, None) is False


class TestFieldDiff:
    def test_absent_key_is_not_a_change(self, completed_order):
        cs = diff(completed_order, OrderPatch({}))
        assert cs.field_changes == []
        assert cs.has_changes is False

    def test_same_value_is_not_a_change(self, completed_order):
        cs = diff(completed_order, OrderPatch({"rate": 3.6725, "remarks": "first"}))
        assert cs.has_changes is False

    def test_explicit_null_clears(self, completed_order):
        cs = diff(completed_order, OrderPatch({"profit_amount": None}))
        assert cs.changed_fields() == ["profit_amount"]
        assert cs.field_changes[0].cleared is True

    def test_changes_follow_field_order(self, completed_order):
        patch = OrderPatch({"remarks": "second", "amount_buy": 90.0, "profit_account_id": 10})
        cs = diff(completed_order, patch)
        assert cs.changed_fields() == ["amount_buy", "remarks", "profit_account_id"]
        change = cs.field_changes[0]
        assert (change.old, change.new) == (80.0, 90.0)

    def test_blank_remarks_match_unset_remarks(self, completed_order):
        order = replace(completed_order, remarks=None)
        assert diff(order, OrderPatch({"remarks": ""})).has_changes is False
        assert diff(replace(completed_order, remarks=""), OrderPatch({"remarks": None})).has_changes is False

    def test_blank_vs_unset_still_counts_for_amounts(self, completed_order):
        order = replace(completed_order, profit_amount=None)
        assert diff(order, OrderPatch({"profit_amount": 0.0})).changed_fields() == ["profit_amount"]

    def test_non_amendable_fields_ignored(self, completed_order):
        cs = diff(completed_order, OrderPatch({"handler_id": 99}))
        assert cs.has_changes is False

    def test_unknown_patch_field_rejected(self):
        with pytest.raises(ValueError, match="Unknown order fields"):
            OrderPatch({"colour": "red"})


class TestLedgerDiff:
    def test_added_receipt(self, completed_order):
        cs = diff(
            completed_order,
            OrderPatch({}),
            original_receipts=[entry(50, 1)],
            proposed_receipts=[entry(50, 1), entry(30, 2)],
        )
        assert cs.receipts_changed is True
        assert len(cs.receipts.added) == 1
        assert cs.receipts.added[0].amount == 30
        assert cs.receipts.added[0].account_id == 2
        assert cs.receipts.removed == []
        assert cs.has_changes is True

    def test_removed_payment(self, completed_order):
        cs = diff(
            completed_order,
            OrderPatch({}),
            original_payments=[entry(100, 3), entry(193.8, 4)],
            proposed_payments=[entry(193.8, 4)],
        )
        assert cs.payments_changed is True
        assert [e.amount for e in cs.payments.removed] == [100]

    def test_reorder_is_not_a_change(self, completed_order):
        cs = diff(
            completed_order,
            OrderPatch({}),
            original_receipts=[entry(50, 1), entry(30, 2)],
            proposed_receipts=[entry(30, 2), entry(50, 1)],
        )
        assert cs.receipts_changed is False

    def test_duplicates_match_as_multiset(self, completed_order):
        cs = diff(
            completed_order,
            OrderPatch({}),
            original_receipts=[entry(40, 1), entry(40, 1)],
            proposed_receipts=[entry(40, 1)],
        )
        assert len(cs.receipts.removed) == 1

    def test_amount_within_tolerance_matches(self, completed_order):
        cs = diff(
            completed_order,
            OrderPatch({}),
            original_receipts=[entry(50.0, 1)],
            proposed_receipts=[entry(50.005, 1)],
        )
        assert cs.receipts_changed is False

    def test_account_must_match_exactly(self, completed_order):
        cs = diff(
            completed_order,
            OrderPatch({}),
            original_receipts=[entry(50, 1)],
            proposed_receipts=[entry(50, 2)],
        )
        assert cs.receipts_changed is True

    def test_filters_drafts_and_blank_lines(self, completed_order):
        cs = diff(
            completed_order,
            OrderPatch({}),
            original_receipts=[entry(50, 1), entry(20, 1, draft=True), entry(5, None)],
            proposed_receipts=[entry(50, 1), entry(0, 3), entry(7, None)],
        )
        assert cs.has_changes is False

    def test_image_replacement_without_amount_change(self, completed_order):
        cs = diff(
            completed_order,
            OrderPatch({}),
            original_receipts=[entry(50, 1, image_path="r/1.jpg")],
            proposed_receipts=[entry(50, 1, image_path="r/1-clear.jpg")],
        )
        assert cs.receipts_changed is False
        assert cs.images_replaced is True
        assert cs.has_changes is True
        img = cs.receipts.image_replaced[0]
        assert (img.index, img.old_image_path, img.new_image_path) == (0, "r/1.jpg", "r/1-clear.jpg")

    def test_new_image_flag(self, completed_order):
        cs = diff(
            completed_order,
            OrderPatch({}),
            original_payments=[entry(293.8, 4, image_path="p/1.jpg")],
            proposed_payments=[entry(293.8, 4, image_path="p/1.jpg", has_new_image=True)],
        )
        assert cs.payments.image_replaced[0].has_new_image is True


def _request(order: Order, **kwargs) -> AmendmentRequest:
    base = dict(
        original_order=order,
        reason="fix",
        original_receipts=[entry(80, 1)],
        original_payments=[entry(293.8, 4)],
        proposed_receipts=[entry(80, 1)],
        proposed_payments=[entry(293.8, 4)],
    )
    base.update(kwargs)
    return AmendmentRequest(**base)


class TestValidation:
    def test_identical_rejected_with_no_changes(self, completed_order):
        req = _request(completed_order)
        assert diff_request(req).has_changes is False
        with pytest.raises(NoChangesError, match="at least one change"):
            validate_amendment(req)

    def test_untouched_edit_form_rejected(self):
        req = parse_amendment({
            "order": {
                "id": 5, "fromCurrency": "USDT", "toCurrency": "AED",
                "amountBuy": 80, "amountSell": 293.8, "rate": 3.6725,
                "status": "completed", "remarks": None,
            },
            "reason": "checking",
            "originalReceipts": [{"amount": 80, "accountId": 1, "status": "confirmed"}],
            "originalPayments": [{"amount": 293.8, "accountId": 4, "status": "confirmed"}],
            "amendedData": {
                "amountBuy": "80", "amountSell": "293.8", "rate": "3.6725", "remarks": "",
                "receipts": [{"amount": "80", "accountId": 1}],
                "payments": [{"amount": "293.8", "accountId": 4}],
            },
        })
        assert diff_request(req).changed_fields() == []
        with pytest.raises(NoChangesError):
            validate_amendment(req)

    def test_valid_amendment_returns_change_set(self, completed_order):
        req = _request(
            completed_order,
            proposed_order=OrderPatch({"amount_buy": 100.0, "amount_sell": 367.25}),
            proposed_receipts=[entry(80, 1), entry(20, 2)],
            proposed_payments=[entry(367.25, 4)],
        )
        cs = validate_amendment(req)
        assert cs.changed_fields() == ["amount_buy", "amount_sell"]
        assert cs.receipts_changed and cs.payments_changed

    def test_unreconciled_receipts(self, completed_order):
        req = _request(
            completed_order,
            proposed_order=OrderPatch({"amount_buy": 100.0}),
        )
        with pytest.raises(UnreconciledAmendment) as exc:
            validate_amendment(req)
        assert exc.value.leg == "receipts"
        assert exc.value.currency == "USDT"
        assert "Total receipts (80.00 USDT) must equal Amount Buy (100.00 USDT)" in str(exc.value)

    def test_unreconciled_payments(self, completed_order):
        req = _request(completed_order, proposed_payments=[entry(290, 4)])
        with pytest.raises(UnreconciledAmendment) as exc:
            validate_amendment(req)
        assert exc.value.leg == "payments"
        assert "Amount Sell (293.80 AED)" in str(exc.value)

    def test_totals_within_tolerance(self, completed_order):
        req = _request(completed_order, proposed_payments=[entry(293.805, 5)])
        cs = validate_amendment(req)
        assert cs.payments_changed is True

    def test_leg_without_valid_entries_skips_totals(self, completed_order):
        req = _request(
            completed_order,
            proposed_order=OrderPatch({"remarks": "note"}),
            proposed_payments=[],
        )
        errors = amendment_errors(req)
        assert not any(isinstance(e, UnreconciledAmendment) and e.leg == "payments" for e in errors)

    def test_errors_collected_in_order(self, completed_order):
        req = _request(
            completed_order,
            proposed_receipts=[entry(70, 1)],
            proposed_payments=[entry(290, 4)],
            original_receipts=[entry(70, 1)],
            original_payments=[entry(290, 4)],
        )
        errors = amendment_errors(req)
        assert isinstance(errors[0], NoChangesError)
        assert [e.leg for e in errors[1:]] == ["receipts", "payments"]

    def test_delete_requests_are_not_validated(self, completed_order):
        req = _request(completed_order, request_type=RequestType.DELETE)
        assert amendment_errors(req) == []
