"""
Fees, payment totals and installment plans.

Pure functions over already-loaded rows. Amounts are Decimal throughout;
currency is assumed uniform (INR) and is not converted.
"""

import re
import time
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import UUID

from admission_portal.modules.admissions.models import Payment, PaymentMethod, PaymentStatus

ZERO = Decimal("0")

_CASH_LABEL = re.compile(r"^\s*(?P<method>[a-z_]+)\s*\((?P<receiver>.*)\)\s*$", re.IGNORECASE)


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def fee_total(items: Iterable[Any], trade_id: UUID | None) -> Decimal:
    """
    Total payable for a trade: sum of its active fee items.

    Returns 0 when no trade is assigned.
    """
    if trade_id is None:
        return ZERO
    return sum(
        (_to_decimal(item.amount) for item in items if item.trade_id == trade_id and item.is_active),
        ZERO,
    )


def completed_total(payments: Iterable[Payment]) -> Decimal:
    """Sum of amounts over completed payments. Pending and failed entries are ignored."""
    return sum(
        (_to_decimal(p.amount) for p in payments if p.status == PaymentStatus.COMPLETED),
        ZERO,
    )


def generate_transaction_id(prefix: str = "TXN") -> str:
    return f"{prefix}{int(time.time() * 1000)}"


def encode_method_label(method: PaymentMethod | str, received_by: str | None = None) -> str:
    """
    Build the stored payment method label.

    Cash collected by staff carries the receiver's name: "cash (Jane Doe)".
    """
    value = method.value if isinstance(method, PaymentMethod) else str(method)
    if received_by and received_by.strip():
        return f"{value} ({received_by.strip()})"
    return value


def parse_method_label(label: str | None) -> tuple[str, str | None]:
    """
    Split a stored label into (method, receiver).

    "cash (Jane Doe)" -> ("cash", "Jane Doe"); "online" -> ("online", None)
    """
    if not label:
        return PaymentMethod.ONLINE.value, None
    match = _CASH_LABEL.match(label)
    if match:
        receiver = match.group("receiver").strip() or None
        return match.group("method").lower(), receiver
    return label.strip().lower(), None


def is_installment(payment: Payment) -> bool:
    return parse_method_label(payment.payment_method)[0] == PaymentMethod.INSTALLMENT.value


@dataclass
class InstallmentPlan:
    """Derived view over completed installment payments."""

    active: bool
    total_installments: int
    paid_installments: int
    next_installment_number: int
    installment_amount: Decimal
    remaining_installments: int

    @property
    def can_pay_remaining(self) -> bool:
        return self.active


def derive_plan(payments: list[Payment], total_payable: Decimal) -> InstallmentPlan | None:
    """
    Derive the installment plan from payment history.

    The most recent installment is the one with the highest installment
    number; its amount is the default size of the next installment, capped
    at what is still owed. A plan with nothing left to pay is inactive.

    Returns:
        None when no installment payment has been completed
    """
    installments = [
        p for p in payments if p.status == PaymentStatus.COMPLETED and is_installment(p)
    ]
    if not installments:
        return None

    last = max(installments, key=lambda p: p.installment_number or 0)
    total_installments = last.total_installments or len(installments)
    paid_installments = len(installments)

    remaining = _to_decimal(total_payable) - completed_total(payments)
    next_amount = max(min(_to_decimal(last.amount), remaining), ZERO)

    return InstallmentPlan(
        active=paid_installments < total_installments and remaining > ZERO,
        total_installments=total_installments,
        paid_installments=paid_installments,
        next_installment_number=paid_installments + 1,
        installment_amount=next_amount,
        remaining_installments=max(total_installments - paid_installments, 0),
    )
