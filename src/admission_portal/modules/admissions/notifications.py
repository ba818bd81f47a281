"""
Admissions Notifications

Mutating service calls return a list of pending ``Notification`` values
instead of sending email inline. Routers hand the list to
``dispatch_notifications`` as a background task so delivery happens after
the response and can never undo a committed change.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from html import escape

from admission_portal.core.config import settings
from admission_portal.core.email import render_layout, send_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    to_email: str
    subject: str
    html: str


def _admin(subject: str, heading: str, body: str) -> Notification:
    return Notification(settings.admin_email, subject, render_layout(heading, body))


def _money(amount: Decimal, currency: str = "INR") -> str:
    return f"{currency} {Decimal(amount):,.2f}"


def application_submitted(
    *, student_email: str, student_name: str, application_number: str
) -> list[Notification]:
    name = escape(student_name)
    number = escape(application_number)
    return [
        Notification(
            student_email,
            "Application Submitted Successfully",
            render_layout(
                "Application Submitted",
                f"""
            <p>Dear {name},</p>
            <p>Your application <strong>{number}</strong> has been submitted and is now under review.</p>
            <p>We will notify you by email once a decision has been made.</p>
            """,
            ),
        ),
        _admin(
            f"New Application Submitted - {number}",
            "New Application Submitted",
            f"""
            <div class="box">
                <p><strong>Applicant:</strong> {name} ({escape(student_email)})</p>
                <p><strong>Application number:</strong> {number}</p>
            </div>
            """,
        ),
    ]


def application_approved(
    *, student_email: str, student_name: str, application_number: str
) -> list[Notification]:
    name = escape(student_name)
    number = escape(application_number)
    return [
        Notification(
            student_email,
            "Congratulations! Your Application Has Been Approved",
            render_layout(
                "Application Approved",
                f"""
            <p>Dear {name},</p>
            <p>We are pleased to inform you that application <strong>{number}</strong> has been approved.</p>
            <a href="{settings.frontend_url}/dashboard" class="button">Go to Dashboard</a>
            """,
            ),
        ),
        _admin(
            f"Application Approved - {number}",
            "Application Approved",
            f"<p>Application <strong>{number}</strong> for {name} was approved.</p>",
        ),
    ]


def application_rejected(
    *, student_email: str, student_name: str, application_number: str, reason: str
) -> list[Notification]:
    name = escape(student_name)
    number = escape(application_number)
    safe_reason = escape(reason)
    return [
        Notification(
            student_email,
            "Application Status Update",
            render_layout(
                "Application Update",
                f"""
            <p>Dear {name},</p>
            <p>After careful review, we are unable to approve application <strong>{number}</strong> at this time.</p>
            <div class="box"><p><strong>Reason:</strong> {safe_reason}</p></div>
            <p>If you have questions, please contact the admissions office.</p>
            """,
            ),
        ),
        _admin(
            f"Application Rejected - {number}",
            "Application Rejected",
            f"<p>Application <strong>{number}</strong> for {name} was rejected.</p>"
            f"<p><strong>Reason:</strong> {safe_reason}</p>",
        ),
    ]


def document_uploaded(
    *,
    student_email: str,
    student_name: str,
    application_number: str,
    document_type: str,
    original_name: str,
    replaced: bool = False,
) -> list[Notification]:
    action = "Replaced" if replaced else "Uploaded"
    return [
        _admin(
            f"New Document {action} - {escape(application_number)}",
            f"Document {action}",
            f"""
            <div class="box">
                <p><strong>Applicant:</strong> {escape(student_name)} ({escape(student_email)})</p>
                <p><strong>Application number:</strong> {escape(application_number)}</p>
                <p><strong>Document type:</strong> {escape(document_type)}</p>
                <p><strong>File:</strong> {escape(original_name)}</p>
            </div>
            """,
        )
    ]


def payment_received(
    *,
    student_email: str,
    student_name: str,
    application_number: str,
    amount: Decimal,
    currency: str,
    transaction_id: str | None,
) -> list[Notification]:
    return [
        Notification(
            student_email,
            "Payment Received",
            render_layout(
                "Payment Received",
                f"""
            <p>Dear {escape(student_name)},</p>
            <p>We have received your payment for application <strong>{escape(application_number)}</strong>.</p>
            <div class="box">
                <p><strong>Amount:</strong> {_money(amount, currency)}</p>
                <p><strong>Transaction ID:</strong> {escape(transaction_id or "-")}</p>
            </div>
            """,
            ),
        )
    ]


def verification_code(*, email: str, first_name: str, code: str) -> Notification:
    return Notification(
        email,
        "Verify your email address",
        render_layout(
            "Verify Your Email",
            f"""
            <p>Hello {escape(first_name)},</p>
            <p>Your verification code is:</p>
            <div class="box"><p style="font-size: 28px; letter-spacing: 6px;"><strong>{code}</strong></p></div>
            <p><strong>This code expires in 10 minutes.</strong></p>
            """,
        ),
    )


def student_registered(*, email: str, name: str) -> Notification:
    return _admin(
        "New Student Registration",
        "New Student Registration",
        f"<p>{escape(name)} ({escape(email)}) created an account.</p>",
    )


def password_changed(*, email: str, first_name: str) -> Notification:
    return Notification(
        email,
        "Password Changed",
        render_layout(
            "Password Changed Successfully",
            f"""
            <p>Hello {escape(first_name)},</p>
            <p>Your password has been changed successfully.</p>
            <p>If you did not make this change, please contact the admissions office immediately.</p>
            """,
        ),
    )


async def dispatch_notifications(notifications: list[Notification]) -> int:
    """
    Send pending notifications one by one.

    Failures are logged and skipped.

    Returns:
        Number of notifications delivered
    """
    sent = 0
    for notification in notifications:
        try:
            if await send_email(notification.to_email, notification.subject, notification.html):
                sent += 1
            else:
                logger.error(
                    f"Notification not delivered to {notification.to_email}: {notification.subject}"
                )
        except Exception as e:
            logger.error(
                f"Exception sending notification to {notification.to_email}: {e}",
                exc_info=True,
            )
    return sent
