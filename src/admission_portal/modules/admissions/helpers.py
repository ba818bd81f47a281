"""
Helper functions for the admissions routers.

Error translation and ORM-to-schema conversion shared by the student and
admin endpoints.
"""

import logging
from typing import NoReturn

from fastapi import HTTPException, status

from admission_portal.modules.admissions.ledger import parse_method_label
from admission_portal.modules.admissions.models import Document, Payment, StudentApplication
from admission_portal.modules.admissions.schemas import (
    ApplicationResponse,
    DocumentResponse,
    PaymentResponse,
    StudentInfo,
    SummaryResponse,
)
from admission_portal.modules.admissions.service import AdmissionServiceError
from admission_portal.modules.users.models import User

logger = logging.getLogger(__name__)


def handle_service_error(e: AdmissionServiceError) -> NoReturn:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


def internal_error(e: Exception, action: str) -> HTTPException:
    logger.exception(f"Error {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


def student_info(user: User) -> StudentInfo:
    return StudentInfo(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        phone=user.phone,
    )


def application_response(application: StudentApplication) -> ApplicationResponse:
    return ApplicationResponse.model_validate(application)


def document_response(document: Document, document_type_name: str | None = None) -> DocumentResponse:
    response = DocumentResponse.model_validate(document)
    response.document_type_name = document_type_name
    return response


def payment_response(payment: Payment) -> PaymentResponse:
    """Split the stored method label into method and receiving staff member."""
    method, received_by = parse_method_label(payment.payment_method)
    return PaymentResponse(
        id=payment.id,
        application_id=payment.application_id,
        amount=payment.amount,
        currency=payment.currency,
        payment_method=method,
        received_by=received_by,
        transaction_id=payment.transaction_id,
        status=payment.status,
        paid_at=payment.paid_at,
        installment_number=payment.installment_number,
        total_installments=payment.total_installments,
        created_at=payment.created_at,
    )


def summary_fields(summary: dict) -> dict:
    """Keyword arguments for SummaryResponse built from a service summary dict."""
    return {
        "student": student_info(summary["user"]),
        "application": application_response(summary["application"]),
        "country_name": summary.get("country_name"),
        "state_name": summary.get("state_name"),
        "city_name": summary.get("city_name"),
        "college_name": summary.get("college_name"),
        "branch_name": summary.get("branch_name"),
        "trade_name": summary.get("trade_name"),
        "total_amount": summary["total_amount"],
        "paid_amount": summary["paid_amount"],
        "remaining_amount": summary["remaining_amount"],
        "payments": [payment_response(p) for p in summary["payments"]],
    }


def summary_response(summary: dict) -> SummaryResponse:
    return SummaryResponse(**summary_fields(summary))
