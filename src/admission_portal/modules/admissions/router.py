"""
Student Admissions Router

Endpoints for an authenticated applicant to build and submit an application.

Endpoints:
- GET  /student/profile - Get (or start) the application
- PUT  /student/profile - Update personal, address and academic details
- GET  /student/documents - List uploaded documents
- POST /student/documents - Upload a document
- PUT  /student/documents/{id}/replace - Replace a document's file
- POST /student/submit - Submit the application
- GET  /student/payment-plan - Fee total, amount paid and installment plan
- GET  /student/payments - Payment history
- POST /student/payments - Record a payment
- POST /student/payments/initiate - Open a Razorpay order
- POST /student/payments/verify - Verify a Razorpay checkout and settle the payment
- GET  /student/summary - Full application summary

Emails are sent as background tasks after the response.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.auth import CurrentUser, get_current_student
from admission_portal.core.database import get_db
from admission_portal.core.payment_gateway import RazorpayGateway, get_payment_gateway
from admission_portal.core.storage import BlobStorage, get_storage
from admission_portal.modules.admissions import service
from admission_portal.modules.admissions.helpers import (
    application_response,
    document_response,
    handle_service_error,
    internal_error,
    payment_response,
    student_info,
    summary_response,
)
from admission_portal.modules.admissions.notifications import dispatch_notifications
from admission_portal.modules.admissions.schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    DocumentResponse,
    PaymentCreateRequest,
    PaymentPlanResponse,
    PaymentResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    SubmitResponse,
    SummaryResponse,
    VerifyPaymentRequest,
)
from admission_portal.modules.admissions.service import AdmissionServiceError, UploadedFile

logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_upload(file: UploadFile) -> UploadedFile:
    """Read at most one byte past the hard cap so oversize files are detected."""
    data = await file.read(service.MAX_UPLOAD_BYTES + 1)
    return UploadedFile(
        filename=file.filename or "",
        content_type=file.content_type or "application/octet-stream",
        data=data,
    )


# ============================================
# Profile
# ============================================


@router.get("/profile", response_model=ProfileResponse, summary="Get Profile")
async def get_profile(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_student),
) -> ProfileResponse:
    """Return the student's application. A draft is created on first access."""
    try:
        application, account = await service.get_or_create_profile(db, user.id)
        return ProfileResponse(
            student=student_info(account),
            application=application_response(application),
        )
    except AdmissionServiceError as e:
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "getting profile") from e


@router.put("/profile", response_model=ProfileResponse, summary="Update Profile")
async def update_profile(
    data: ProfileUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_student),
) -> ProfileResponse:
    try:
        application, account = await service.update_profile(db, user.id, data)
        return ProfileResponse(
            student=student_info(account),
            application=application_response(application),
        )
    except AdmissionServiceError as e:
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "updating profile") from e


# ============================================
# Documents
# ============================================


@router.get("/documents", response_model=list[DocumentResponse], summary="List Documents")
async def list_documents(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_student),
) -> list[DocumentResponse]:
    try:
        rows = await service.list_documents(db, user.id)
        return [document_response(document, type_name) for document, type_name in rows]
    except AdmissionServiceError as e:
        handle_service_error(e)


@router.post(
    "/documents",
    response_model=DocumentResponse,
    status_code=201,
    summary="Upload Document",
    description="""
Upload a document for one document type.

The file must match the document type's allowed MIME types and size limit
(never more than 10 MB). The document starts in `pending` review status.
""",
)
async def upload_document(
    background_tasks: BackgroundTasks,
    document_type_id: UUID = Form(...),
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_student),
) -> DocumentResponse:
    upload = await _read_upload(file)
    try:
        document, pending = await service.upload_document(
            db, storage, user.id, document_type_id, upload
        )
    except AdmissionServiceError as e:
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "uploading document") from e

    background_tasks.add_task(dispatch_notifications, pending)
    return document_response(document)


@router.put(
    "/documents/{document_id}/replace",
    response_model=DocumentResponse,
    summary="Replace Document",
)
async def replace_document(
    document_id: UUID,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
    user: CurrentUser = Depends(get_current_student),
) -> DocumentResponse:
    """Upload a new file for an existing document. Review status resets to pending."""
    upload = await _read_upload(file)
    try:
        document, pending = await service.replace_document(
            db, storage, user.id, document_id, upload
        )
    except AdmissionServiceError as e:
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "replacing document") from e

    background_tasks.add_task(dispatch_notifications, pending)
    return document_response(document)


# ============================================
# Submission
# ============================================


@router.post("/submit", response_model=SubmitResponse, summary="Submit Application")
async def submit_application(
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_student),
) -> SubmitResponse:
    try:
        application, pending = await service.submit_application(db, user.id)
    except AdmissionServiceError as e:
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "submitting application") from e

    background_tasks.add_task(dispatch_notifications, pending)
    return SubmitResponse(
        id=application.id,
        application_number=application.application_number,
        status=application.status,
        submitted_at=application.submitted_at,
        message="Application submitted successfully.",
    )


# ============================================
# Payments
# ============================================


@router.get("/payment-plan", response_model=PaymentPlanResponse, summary="Get Payment Plan")
async def get_payment_plan(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_student),
) -> PaymentPlanResponse:
    try:
        plan = await service.get_payment_plan(db, user.id)
        return PaymentPlanResponse.model_validate(plan, from_attributes=True)
    except AdmissionServiceError as e:
        handle_service_error(e)


@router.get("/payments", response_model=list[PaymentResponse], summary="List Payments")
async def list_payments(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_student),
) -> list[PaymentResponse]:
    try:
        payments = await service.list_payments(db, user.id)
        return [payment_response(p) for p in payments]
    except AdmissionServiceError as e:
        handle_service_error(e)


@router.post(
    "/payments",
    response_model=PaymentResponse,
    status_code=201,
    summary="Record Payment",
    description="""
Record a payment against the student's application.

A `completed` payment submits a draft application. Payments on an
application that is already submitted never change its status.
""",
)
async def record_payment(
    data: PaymentCreateRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_student),
) -> PaymentResponse:
    try:
        payment, pending = await service.record_student_payment(db, user.id, data)
    except AdmissionServiceError as e:
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "recording payment") from e

    background_tasks.add_task(dispatch_notifications, pending)
    return payment_response(payment)


@router.post(
    "/payments/initiate",
    response_model=CreateOrderResponse,
    summary="Start Online Payment",
)
async def initiate_payment(
    data: CreateOrderRequest,
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayGateway | None = Depends(get_payment_gateway),
    user: CurrentUser = Depends(get_current_student),
) -> CreateOrderResponse:
    try:
        payment, order = await service.create_payment_order(db, gateway, user.id, data)
    except AdmissionServiceError as e:
        handle_service_error(e)

    return CreateOrderResponse(
        payment_id=payment.id,
        order_id=order["id"],
        amount=order["amount"],
        currency=order.get("currency", "INR"),
        key_id=gateway.key_id,
    )


@router.post("/payments/verify", response_model=PaymentResponse, summary="Verify Online Payment")
async def verify_payment(
    data: VerifyPaymentRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayGateway | None = Depends(get_payment_gateway),
    user: CurrentUser = Depends(get_current_student),
) -> PaymentResponse:
    try:
        payment, pending = await service.verify_payment(
            db,
            gateway,
            user.id,
            order_id=data.razorpay_order_id,
            payment_id=data.razorpay_payment_id,
            signature=data.razorpay_signature,
        )
    except AdmissionServiceError as e:
        handle_service_error(e)

    background_tasks.add_task(dispatch_notifications, pending)
    return payment_response(payment)


# ============================================
# Summary
# ============================================


@router.get("/summary", response_model=SummaryResponse, summary="Application Summary")
async def get_summary(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_student),
) -> SummaryResponse:
    try:
        summary = await service.get_summary(db, user.id)
        return summary_response(summary)
    except AdmissionServiceError as e:
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "building summary") from e
