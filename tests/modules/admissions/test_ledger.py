"""
Unit tests for fee totals, payment totals and installment plans.
"""

from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from admission_portal.modules.admissions.ledger import (
    completed_total,
    derive_plan,
    encode_method_label,
    fee_total,
    generate_transaction_id,
    parse_method_label,
)
from admission_portal.modules.admissions.models import PaymentMethod, PaymentStatus


def _fee(trade_id, amount, is_active=True):
    return SimpleNamespace(trade_id=trade_id, amount=Decimal(amount), is_active=is_active)


# ============================================
# Fee total
# ============================================


def test_fee_total_ignores_inactive_items():
    trade_id = uuid4()
    items = [
        _fee(trade_id, "2000"),
        _fee(trade_id, "500"),
        _fee(trade_id, "9999", is_active=False),
    ]
    assert fee_total(items, trade_id) == Decimal("2500")


def test_fee_total_only_counts_the_trade():
    trade_id = uuid4()
    items = [_fee(trade_id, "1200"), _fee(uuid4(), "800")]
    assert fee_total(items, trade_id) == Decimal("1200")


def test_fee_total_without_trade_is_zero():
    assert fee_total([_fee(uuid4(), "100")], None) == Decimal("0")


def test_fee_total_no_items():
    assert fee_total([], uuid4()) == Decimal("0")


# ============================================
# Completed total
# ============================================


def test_completed_total_skips_pending_and_failed(payment_factory):
    payments = [
        payment_factory("1000"),
        payment_factory("250.50"),
        payment_factory("4000", status=PaymentStatus.PENDING),
        payment_factory("700", status=PaymentStatus.FAILED),
    ]
    assert completed_total(payments) == Decimal("1250.50")


def test_completed_total_empty():
    assert completed_total([]) == Decimal("0")


# ============================================
# Method labels
# ============================================


def test_encode_cash_label_with_receiver():
    assert encode_method_label(PaymentMethod.CASH, "Jane Doe") == "cash (Jane Doe)"


def test_encode_label_without_receiver():
    assert encode_method_label(PaymentMethod.ONLINE) == "online"
    assert encode_method_label(PaymentMethod.CASH, "   ") == "cash"


def test_parse_cash_label():
    assert parse_method_label("cash (Jane Doe)") == ("cash", "Jane Doe")


def test_parse_plain_label():
    assert parse_method_label("online") == ("online", None)


def test_parse_missing_label_defaults_to_online():
    assert parse_method_label(None) == ("online", None)
    assert parse_method_label("") == ("online", None)


def test_label_round_trip():
    label = encode_method_label(PaymentMethod.INSTALLMENT, "Front Desk")
    assert parse_method_label(label) == ("installment", "Front Desk")


def test_generate_transaction_id_prefix():
    assert generate_transaction_id().startswith("TXN")
    assert generate_transaction_id("CASH").startswith("CASH")


# ============================================
# Installment plan
# ============================================


def test_plan_none_without_installments(payment_factory):
    payments = [payment_factory("9000", method="online")]
    assert derive_plan(payments, Decimal("9000")) is None


def test_plan_ignores_pending_installments(payment_factory):
    payments = [
        payment_factory("3000", status=PaymentStatus.PENDING, method="installment", total_installments=3)
    ]
    assert derive_plan(payments, Decimal("9000")) is None


def test_plan_after_first_installment(payment_factory):
    payments = [
        payment_factory("3000", method="installment", installment_number=1, total_installments=3)
    ]

    plan = derive_plan(payments, Decimal("9000"))

    assert plan.active is True
    assert plan.can_pay_remaining is True
    assert plan.total_installments == 3
    assert plan.paid_installments == 1
    assert plan.next_installment_number == 2
    assert plan.installment_amount == Decimal("3000")
    assert plan.remaining_installments == 2


def test_plan_fully_paid_is_inactive(payment_factory):
    payments = [
        payment_factory("3000", method="installment", installment_number=n, total_installments=3)
        for n in (1, 2, 3)
    ]

    plan = derive_plan(payments, Decimal("9000"))

    assert plan.active is False
    assert plan.paid_installments == 3
    assert plan.remaining_installments == 0
    assert plan.installment_amount == Decimal("0")


def test_plan_inactive_when_balance_cleared_early(payment_factory):
    payments = [
        payment_factory("3000", method="installment", installment_number=1, total_installments=3),
        payment_factory("6000", method="cash (Jane Doe)"),
    ]

    plan = derive_plan(payments, Decimal("9000"))

    assert plan.active is False
    assert plan.remaining_installments == 2


def test_plan_next_amount_capped_at_balance(payment_factory):
    payments = [
        payment_factory("4000", method="installment", installment_number=1, total_installments=3),
        payment_factory("4000", method="installment", installment_number=2, total_installments=3),
    ]

    plan = derive_plan(payments, Decimal("9000"))

    assert plan.active is True
    assert plan.installment_amount == Decimal("1000")


@pytest.mark.parametrize("label", ["installment", "installment (Front Desk)"])
def test_plan_recognises_labelled_installments(payment_factory, label):
    payments = [payment_factory("3000", method=label, installment_number=1, total_installments=3)]
    assert derive_plan(payments, Decimal("9000")) is not None
