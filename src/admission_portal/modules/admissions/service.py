"""
Admissions Service Layer

Business logic for the student admission workflow. Orchestrates the
repository, the status state machines (workflow.py), fee and installment
calculations (ledger.py), the blob store and the payment gateway.

This module implements:
1. Profile: lazily created draft application, incremental profile edits
2. Documents: validated upload, owner-only replacement, admin review
3. Submission: draft -> submitted
4. Payments: ledger entries, payment plan, gateway orders and verification.
   A completed payment submits a draft application.
5. Admin review: dashboard, listings, approve/reject

Mutating operations return ``(entity, notifications)``; the caller is
responsible for dispatching the notifications once the request is done.
"""

import logging
import mimetypes
import random
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import PurePath
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.payment_gateway import PaymentGatewayError, RazorpayGateway
from admission_portal.core.storage import BlobStorage, StorageError
from admission_portal.modules.admissions import notifications, repository, workflow
from admission_portal.modules.admissions.ledger import (
    completed_total,
    derive_plan,
    encode_method_label,
    fee_total,
    generate_transaction_id,
)
from admission_portal.modules.admissions.models import (
    ApplicationStatus,
    Document,
    DocumentStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
    StudentApplication,
)
from admission_portal.modules.admissions.notifications import Notification
from admission_portal.modules.admissions.schemas import (
    CashPaymentRequest,
    CreateOrderRequest,
    PaymentCreateRequest,
    ProfileUpdateRequest,
)
from admission_portal.modules.master_data import repository as master_repository
from admission_portal.modules.users.models import User
from admission_portal.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

# Hard cap on any upload, regardless of document type
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

APPLICATION_NUMBER_ATTEMPTS = 5


class AdmissionServiceError(Exception):
    """Base exception for admission service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(AdmissionServiceError):
    """Raised when an application, document, payment or user does not exist."""

    def __init__(self, entity: str, entity_id: UUID | str | None = None):
        message = f"{entity} {entity_id} not found" if entity_id else f"{entity} not found"
        super().__init__(
            message=message,
            error_code=f"{entity.upper().replace(' ', '_')}_NOT_FOUND",
            status_code=404,
        )


class InvalidStateError(AdmissionServiceError):
    """Raised when an operation is not allowed in the entity's current status."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="INVALID_STATE", status_code=409)


class ValidationError(AdmissionServiceError):
    """Raised for missing or malformed input the schema layer cannot catch."""

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR"):
        super().__init__(message=message, error_code=error_code, status_code=400)


class UnauthorizedError(AdmissionServiceError):
    """Raised when a user acts on something they do not own."""

    def __init__(self, message: str = "You are not allowed to modify this resource."):
        super().__init__(message=message, error_code="FORBIDDEN", status_code=403)


class DuplicateContactError(AdmissionServiceError):
    """Raised when a profile edit would reuse another account's email or phone."""

    def __init__(self, message: str = "Email or phone number is already in use."):
        super().__init__(message=message, error_code="DUPLICATE_CONTACT", status_code=409)


class UpstreamError(AdmissionServiceError):
    """Raised when the blob store or payment gateway fails on the write path."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="UPSTREAM_ERROR", status_code=502)


@dataclass
class UploadedFile:
    """A file received from the client, already read into memory."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def _now_ms() -> int:
    return int(time.time() * 1000)


def generate_application_number() -> str:
    """APP<epoch-ms><0-999>"""
    return f"APP{_now_ms()}{random.randint(0, 999)}"


def _file_extension(file: UploadedFile) -> str:
    suffix = PurePath(file.filename or "").suffix.lower()
    if suffix:
        return suffix
    return mimetypes.guess_extension(file.content_type) or ""


async def _get_user(db: AsyncSession, user_id: UUID) -> User:
    user = await UserRepository.get_by_id(db, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


async def _require_application(db: AsyncSession, user_id: UUID) -> StudentApplication:
    application = await repository.get_by_user_id(db, user_id)
    if not application:
        raise NotFoundError("Application")
    return application


async def _get_application(db: AsyncSession, application_id: UUID) -> StudentApplication:
    application = await repository.get_by_id(db, application_id)
    if not application:
        raise NotFoundError("Application", application_id)
    return application


# ============================================
# Fees
# ============================================


async def calculate_total_payable(db: AsyncSession, trade_id: UUID | None) -> Decimal:
    """Sum of active fee items for the trade; 0 if no trade is selected."""
    if trade_id is None:
        return Decimal("0")
    items = await master_repository.list_fee_items(db, trade_id)
    return fee_total(items, trade_id)


# ============================================
# Profile
# ============================================


async def get_or_create_profile(
    db: AsyncSession, user_id: UUID
) -> tuple[StudentApplication, User]:
    """
    Return the student's application, creating a draft on first access.
    """
    user = await _get_user(db, user_id)
    application = await repository.get_by_user_id(db, user_id)
    if application:
        return application, user

    for _ in range(APPLICATION_NUMBER_ATTEMPTS):
        application_number = generate_application_number()
        if not await repository.application_number_exists(db, application_number):
            break
    else:
        raise InvalidStateError("Could not allocate an application number. Please retry.")

    application = await repository.create(db, user_id, application_number)
    logger.info(f"Created draft application {application.application_number} for user {user_id}")
    return application, user


async def update_profile(
    db: AsyncSession,
    user_id: UUID,
    data: ProfileUpdateRequest,
) -> tuple[StudentApplication, User]:
    """
    Write the sections present in ``data`` to the application and user.

    Only explicitly sent fields are changed. Editing is allowed in any status.

    Raises:
        NotFoundError: If the student has no application yet
        DuplicateContactError: If the new email or phone belongs to another user
    """
    application = await _require_application(db, user_id)
    user = await _get_user(db, user_id)

    if data.personal_info is not None:
        personal = data.personal_info.model_dump(exclude_unset=True)

        new_email = personal.pop("email", None)
        new_phone = personal.pop("phone", None)
        if new_email or new_phone:
            conflict = await UserRepository.find_conflicting(
                db, email=new_email, phone=new_phone, exclude_id=user.id
            )
            if conflict:
                logger.warning(f"Profile update for user {user_id} collides with another account")
                raise DuplicateContactError()
        if new_email:
            user.email = str(new_email).lower()
        if new_phone:
            user.phone = new_phone

        for field in ("first_name", "last_name"):
            value = personal.pop(field, None)
            if value:
                setattr(user, field, value)

        for field, value in personal.items():
            setattr(application, field, value)

    for section in (data.address_info, data.academic_info):
        if section is None:
            continue
        for field, value in section.model_dump(exclude_unset=True).items():
            setattr(application, field, value)

    await db.commit()
    await db.refresh(application)
    await db.refresh(user)

    logger.info(f"Updated profile for application {application.application_number}")
    return application, user


# ============================================
# Documents
# ============================================


async def _validate_upload(db: AsyncSession, document_type_id: UUID, file: UploadedFile):
    document_type = await master_repository.get_document_type(db, document_type_id)
    if not document_type or not document_type.is_active:
        raise NotFoundError("Document type", document_type_id)

    allowed = document_type.allowed_types_list
    if allowed and file.content_type not in allowed:
        raise ValidationError(
            f"Invalid file type {file.content_type}. Allowed: {', '.join(allowed)}",
            error_code="INVALID_FILE_TYPE",
        )

    if file.size == 0:
        raise ValidationError("Uploaded file is empty.", error_code="EMPTY_FILE")

    limit = min(document_type.max_file_size or MAX_UPLOAD_BYTES, MAX_UPLOAD_BYTES)
    if file.size > limit:
        raise ValidationError(
            f"File is too large. Maximum size is {limit // (1024 * 1024)} MB.",
            error_code="FILE_TOO_LARGE",
        )

    return document_type


async def _store(storage: BlobStorage, file: UploadedFile, name: str) -> str:
    try:
        return await storage.put(file.data, name, file.content_type)
    except StorageError as e:
        logger.error(f"Failed to store {name}: {e}", exc_info=True)
        raise UpstreamError("File storage is unavailable. Please try again later.") from e


async def upload_document(
    db: AsyncSession,
    storage: BlobStorage,
    user_id: UUID,
    document_type_id: UUID,
    file: UploadedFile,
) -> tuple[Document, list[Notification]]:
    """
    Validate and store a new document for the student's application.

    The blob is named <application_number>_<document_type_id>_<epoch-ms><ext>.
    """
    application = await _require_application(db, user_id)
    user = await _get_user(db, user_id)
    document_type = await _validate_upload(db, document_type_id, file)

    file_name = (
        f"{application.application_number}_{document_type_id}_{_now_ms()}{_file_extension(file)}"
    )
    file_path = await _store(storage, file, file_name)

    document = await repository.create_document(
        db,
        application_id=application.id,
        document_type_id=document_type_id,
        file_name=file_name,
        original_name=file.filename or file_name,
        file_path=file_path,
        file_size=file.size,
        mime_type=file.content_type,
    )
    logger.info(
        f"Uploaded document {document.id} ({document_type.name}) "
        f"for application {application.application_number}"
    )

    pending = notifications.document_uploaded(
        student_email=user.email,
        student_name=user.full_name,
        application_number=application.application_number,
        document_type=document_type.name,
        original_name=document.original_name,
    )
    return document, pending


async def replace_document(
    db: AsyncSession,
    storage: BlobStorage,
    user_id: UUID,
    document_id: UUID,
    file: UploadedFile,
) -> tuple[Document, list[Notification]]:
    """
    Replace the file of an existing document and send it back for review.

    The previous blob is kept; the new one is stored under a fresh name.

    Raises:
        NotFoundError: If the document does not exist
        UnauthorizedError: If the document belongs to another student
    """
    document = await repository.get_document(db, document_id)
    if not document:
        raise NotFoundError("Document", document_id)

    application = await repository.get_by_user_id(db, user_id)
    if application is None or document.application_id != application.id:
        logger.warning(f"User {user_id} attempted to replace document {document_id}")
        raise UnauthorizedError("You can only replace your own documents.")

    user = await _get_user(db, user_id)
    document_type = await _validate_upload(db, document.document_type_id, file)

    stem = PurePath(document.file_name).stem
    file_name = f"{stem}_replaced_{_now_ms()}{_file_extension(file)}"
    file_path = await _store(storage, file, file_name)

    workflow.replace_document(
        document,
        file_name=file_name,
        original_name=file.filename or file_name,
        file_path=file_path,
        file_size=file.size,
        mime_type=file.content_type,
    )
    document = await repository.save(db, document)
    logger.info(f"Replaced document {document.id} for application {application.application_number}")

    pending = notifications.document_uploaded(
        student_email=user.email,
        student_name=user.full_name,
        application_number=application.application_number,
        document_type=document_type.name,
        original_name=document.original_name,
        replaced=True,
    )
    return document, pending


async def list_documents(
    db: AsyncSession, user_id: UUID
) -> list[tuple[Document, str | None]]:
    application = await _require_application(db, user_id)
    return await repository.list_documents(db, application.id)


async def authorize_file_access(
    db: AsyncSession, user_id: UUID, file_name: str, *, is_admin: bool = False
) -> None:
    """
    Allow a stored file to be read only by its applicant or an administrator.

    Raises:
        NotFoundError: If no document is stored under the name
        UnauthorizedError: If the document belongs to another applicant
    """
    if is_admin:
        return
    owner_id = await repository.get_document_owner(db, file_name)
    if owner_id is None:
        raise NotFoundError("File")
    if owner_id != user_id:
        logger.warning(f"User {user_id} denied access to file {file_name}")
        raise UnauthorizedError("You are not allowed to access this file.")


# ============================================
# Submission
# ============================================


async def submit_application(
    db: AsyncSession, user_id: UUID
) -> tuple[StudentApplication, list[Notification]]:
    """
    Submit the student's draft application.

    Raises:
        InvalidStateError: If the application is not a draft
    """
    application = await _require_application(db, user_id)
    user = await _get_user(db, user_id)

    try:
        workflow.submit(application)
    except workflow.InvalidStatusTransitionError as e:
        logger.warning(f"Submit rejected for {application.application_number}: {e}")
        raise InvalidStateError("Application has already been submitted.") from e

    application = await repository.save(db, application)
    logger.info(f"Application {application.application_number} submitted")

    pending = notifications.application_submitted(
        student_email=user.email,
        student_name=user.full_name,
        application_number=application.application_number,
    )
    return application, pending


# ============================================
# Payments
# ============================================


async def get_payment_plan(db: AsyncSession, user_id: UUID) -> dict:
    application = await _require_application(db, user_id)
    payments = await repository.list_payments(db, application.id)
    total = await calculate_total_payable(db, application.trade_id)
    paid = completed_total(payments)
    remaining = max(total - paid, Decimal("0"))

    return {
        "total_amount": total,
        "paid_amount": paid,
        "remaining_amount": remaining,
        "can_pay_remaining": remaining > 0,
        "installment_plan": derive_plan(payments, total),
    }


async def _complete_and_notify(
    db: AsyncSession,
    application: StudentApplication,
    user: User,
    payment: Payment,
) -> list[Notification]:
    """Side effects of a completed payment."""
    if workflow.complete_payment(application):
        await repository.save(db, application)
        logger.info(
            f"Application {application.application_number} submitted by payment {payment.id}"
        )

    return notifications.payment_received(
        student_email=user.email,
        student_name=user.full_name,
        application_number=application.application_number,
        amount=payment.amount,
        currency=payment.currency,
        transaction_id=payment.transaction_id,
    )


async def record_payment(
    db: AsyncSession,
    application_id: UUID,
    *,
    amount: Decimal,
    method: PaymentMethod,
    status: PaymentStatus,
    currency: str = "INR",
    installment_number: int = 1,
    total_installments: int = 1,
    transaction_id: str | None = None,
    received_by: str | None = None,
    gateway_order_id: str | None = None,
) -> tuple[Payment, list[Notification]]:
    """
    Add a ledger entry for an application.

    ``paid_at`` is set only for completed payments. A completed payment
    submits a draft application; in any other status it changes nothing.

    Raises:
        NotFoundError: If the application does not exist
        ValidationError: If the amount is not positive
    """
    if amount <= 0:
        raise ValidationError("Payment amount must be greater than zero.", "INVALID_AMOUNT")

    application = await _get_application(db, application_id)
    user = await _get_user(db, application.user_id)

    if transaction_id is None:
        transaction_id = generate_transaction_id("CASH" if received_by else "TXN")

    payment = await repository.create_payment(
        db,
        application_id=application.id,
        amount=amount,
        currency=currency,
        payment_method=encode_method_label(method, received_by),
        transaction_id=transaction_id,
        gateway_order_id=gateway_order_id,
        status=status,
        paid_at=datetime.now(UTC) if status == PaymentStatus.COMPLETED else None,
        installment_number=installment_number,
        total_installments=total_installments,
    )
    logger.info(
        f"Recorded {status.value} payment {payment.id} of {amount} "
        f"for application {application.application_number}"
    )

    pending: list[Notification] = []
    if status == PaymentStatus.COMPLETED:
        pending = await _complete_and_notify(db, application, user, payment)
    return payment, pending


async def record_student_payment(
    db: AsyncSession,
    user_id: UUID,
    data: PaymentCreateRequest,
) -> tuple[Payment, list[Notification]]:
    application = await _require_application(db, user_id)
    return await record_payment(
        db,
        application.id,
        amount=data.amount,
        method=data.payment_method,
        status=data.status,
        currency=data.currency,
        installment_number=data.installment_number,
        total_installments=data.total_installments,
        transaction_id=data.transaction_id,
    )


async def settle_payment(
    db: AsyncSession,
    payment_id: UUID,
    transaction_id: str,
) -> tuple[Payment, list[Notification]]:
    """
    Mark a pending payment completed after the gateway confirms it.

    Raises:
        NotFoundError: If the payment does not exist
        InvalidStateError: If the payment is already completed or failed
    """
    payment = await repository.get_payment(db, payment_id)
    if not payment:
        raise NotFoundError("Payment", payment_id)
    if payment.status != PaymentStatus.PENDING:
        raise InvalidStateError(f"Payment is already {payment.status.value}.")

    payment.status = PaymentStatus.COMPLETED
    payment.paid_at = datetime.now(UTC)
    payment.transaction_id = transaction_id
    payment = await repository.save(db, payment)
    logger.info(f"Settled payment {payment.id} ({transaction_id})")

    application = await _get_application(db, payment.application_id)
    user = await _get_user(db, application.user_id)
    pending = await _complete_and_notify(db, application, user, payment)
    return payment, pending


async def list_payments(db: AsyncSession, user_id: UUID) -> list[Payment]:
    application = await _require_application(db, user_id)
    return await repository.list_payments(db, application.id)


async def create_payment_order(
    db: AsyncSession,
    gateway: RazorpayGateway | None,
    user_id: UUID,
    data: CreateOrderRequest,
) -> tuple[Payment, dict]:
    """
    Open a gateway order and a matching pending ledger entry.

    Raises:
        UpstreamError: If online payments are not configured or the gateway fails
    """
    if gateway is None:
        raise UpstreamError("Online payments are not configured.")

    application = await _require_application(db, user_id)

    try:
        order = await gateway.create_order(data.amount, receipt=f"rcpt_{_now_ms()}")
    except PaymentGatewayError as e:
        raise UpstreamError("Payment gateway is unavailable. Please try again later.") from e

    payment, _ = await record_payment(
        db,
        application.id,
        amount=data.amount,
        method=data.payment_method,
        status=PaymentStatus.PENDING,
        installment_number=data.installment_number,
        total_installments=data.total_installments,
        gateway_order_id=order["id"],
    )
    return payment, order


async def verify_payment(
    db: AsyncSession,
    gateway: RazorpayGateway | None,
    user_id: UUID,
    *,
    order_id: str,
    payment_id: str,
    signature: str,
) -> tuple[Payment, list[Notification]]:
    """
    Check the gateway signature and settle the pending payment for the order.

    Raises:
        ValidationError: If the signature does not match
        NotFoundError: If no payment of this student references the order
    """
    if gateway is None:
        raise UpstreamError("Online payments are not configured.")

    if not gateway.verify_signature(order_id=order_id, payment_id=payment_id, signature=signature):
        logger.warning(f"Invalid payment signature for order {order_id}")
        raise ValidationError("Invalid payment signature.", "INVALID_SIGNATURE")

    application = await _require_application(db, user_id)
    payment = await repository.get_payment_by_order_id(db, order_id)
    if not payment or payment.application_id != application.id:
        raise NotFoundError("Payment", order_id)

    return await settle_payment(db, payment.id, payment_id)


async def _summary(db: AsyncSession, application: StudentApplication, user: User) -> dict:
    payments = await repository.list_payments(db, application.id)
    names = await master_repository.get_names(
        db,
        country_id=application.country_id,
        state_id=application.state_id,
        city_id=application.city_id,
        college_id=application.college_id,
        branch_id=application.branch_id,
        trade_id=application.trade_id,
    )
    total = await calculate_total_payable(db, application.trade_id)
    paid = completed_total(payments)
    return {
        "application": application,
        "user": user,
        **names,
        "total_amount": total,
        "paid_amount": paid,
        "remaining_amount": max(total - paid, Decimal("0")),
        "payments": payments,
    }


async def get_summary(db: AsyncSession, user_id: UUID) -> dict:
    """Profile with resolved catalogue names and payment totals."""
    application = await _require_application(db, user_id)
    user = await _get_user(db, user_id)
    return await _summary(db, application, user)


# ============================================
# Admin: applications
# ============================================


async def admin_get_dashboard_stats(db: AsyncSession) -> dict:
    return await repository.get_dashboard_stats(db)


def _month_starts(now: datetime, months: int) -> list[datetime]:
    """First instant of each of the last ``months`` calendar months, oldest first."""
    year, month = now.year, now.month
    starts = []
    for _ in range(months):
        starts.append(datetime(year, month, 1, tzinfo=UTC))
        year, month = (year - 1, 12) if month == 1 else (year, month - 1)
    return starts[::-1]


async def admin_get_monthly_data(
    db: AsyncSession, months: int = 6, now: datetime | None = None
) -> list[dict]:
    """
    Submissions per month for the dashboard chart.

    Every month in the window is present, with zero counts when nothing was
    submitted.
    """
    starts = _month_starts(now or datetime.now(UTC), months)
    rows = await repository.get_monthly_submissions(db, since=starts[0])
    by_month = {(row["month"].year, row["month"].month): row for row in rows}

    data = []
    for start in starts:
        row = by_month.get((start.year, start.month), {})
        data.append(
            {
                "month": start.strftime("%b"),
                "year": start.year,
                "applications": row.get("applications", 0),
                "approved": row.get("approved", 0),
            }
        )
    return data


async def admin_get_status_distribution(db: AsyncSession) -> list[dict]:
    """Counts per reviewable status, including statuses with no applications."""
    counts = await repository.get_status_distribution(db)
    return [
        {"name": status.value, "value": counts.get(status, 0)}
        for status in (
            ApplicationStatus.SUBMITTED,
            ApplicationStatus.APPROVED,
            ApplicationStatus.REJECTED,
        )
    ]


async def admin_get_recent_applications(db: AsyncSession, limit: int = 10) -> list[dict]:
    return await repository.get_recent_applications(db, limit=limit)


async def admin_get_applications_list(
    db: AsyncSession,
    *,
    status: ApplicationStatus | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> dict:
    rows, total = await repository.get_applications_for_admin(
        db, status=status, search=search, skip=skip, limit=limit
    )
    return {"applications": rows, "total": total, "skip": skip, "limit": limit}


async def admin_get_application_detail(db: AsyncSession, application_id: UUID) -> dict:
    application = await _get_application(db, application_id)
    user = await _get_user(db, application.user_id)
    detail = await _summary(db, application, user)
    detail["documents"] = await repository.list_documents(db, application.id)
    return detail


async def admin_approve_application(
    db: AsyncSession,
    application_id: UUID,
    admin_id: UUID,
) -> tuple[StudentApplication, list[Notification]]:
    """
    Raises:
        NotFoundError: If the application does not exist
        InvalidStateError: If the application is not submitted
    """
    application = await _get_application(db, application_id)

    try:
        workflow.approve(application)
    except workflow.InvalidStatusTransitionError as e:
        raise InvalidStateError(
            f"Cannot approve application in '{application.status.value}' status."
        ) from e

    application = await repository.save(db, application)
    logger.info(f"Admin {admin_id} approved application {application.application_number}")

    user = await _get_user(db, application.user_id)
    pending = notifications.application_approved(
        student_email=user.email,
        student_name=user.full_name,
        application_number=application.application_number,
    )
    return application, pending


async def admin_reject_application(
    db: AsyncSession,
    application_id: UUID,
    admin_id: UUID,
    reason: str | None,
) -> tuple[StudentApplication, list[Notification]]:
    """
    Raises:
        NotFoundError: If the application does not exist
        ValidationError: If no reason is given
        InvalidStateError: If the application is not submitted
    """
    application = await _get_application(db, application_id)

    try:
        workflow.reject(application, reason)
    except workflow.MissingReasonError as e:
        raise ValidationError(str(e), "REASON_REQUIRED") from e
    except workflow.InvalidStatusTransitionError as e:
        raise InvalidStateError(
            f"Cannot reject application in '{application.status.value}' status."
        ) from e

    application = await repository.save(db, application)
    logger.info(f"Admin {admin_id} rejected application {application.application_number}")

    user = await _get_user(db, application.user_id)
    pending = notifications.application_rejected(
        student_email=user.email,
        student_name=user.full_name,
        application_number=application.application_number,
        reason=application.rejection_reason,
    )
    return application, pending


# ============================================
# Admin: documents
# ============================================


async def admin_get_documents_list(
    db: AsyncSession,
    *,
    status: DocumentStatus | None = None,
    application_id: UUID | None = None,
    skip: int = 0,
    limit: int = 20,
) -> dict:
    rows, total = await repository.get_documents_for_admin(
        db, status=status, application_id=application_id, skip=skip, limit=limit
    )
    return {"documents": rows, "total": total, "skip": skip, "limit": limit}


async def admin_approve_document(
    db: AsyncSession,
    document_id: UUID,
    admin_id: UUID,
    notes: str | None = None,
) -> Document:
    document = await repository.get_document(db, document_id)
    if not document:
        raise NotFoundError("Document", document_id)

    workflow.approve_document(document, admin_id, notes)
    document = await repository.save(db, document)
    logger.info(f"Admin {admin_id} approved document {document_id}")
    return document


async def admin_reject_document(
    db: AsyncSession,
    document_id: UUID,
    admin_id: UUID,
    reason: str | None,
) -> Document:
    """
    Raises:
        NotFoundError: If the document does not exist
        ValidationError: If no reason is given
    """
    document = await repository.get_document(db, document_id)
    if not document:
        raise NotFoundError("Document", document_id)

    try:
        workflow.reject_document(document, reason)
    except workflow.MissingReasonError as e:
        raise ValidationError(str(e), "REASON_REQUIRED") from e

    document = await repository.save(db, document)
    logger.info(f"Admin {admin_id} rejected document {document_id}")
    return document


# ============================================
# Admin: payments
# ============================================


async def admin_get_payment_stats(db: AsyncSession) -> dict:
    return await repository.get_payment_stats(db)


async def admin_get_payments_list(
    db: AsyncSession,
    *,
    status: PaymentStatus | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> dict:
    rows, total = await repository.get_payments_for_admin(
        db, status=status, search=search, skip=skip, limit=limit
    )
    return {"payments": rows, "total": total, "skip": skip, "limit": limit}


async def admin_record_cash_payment(
    db: AsyncSession,
    admin_id: UUID,
    data: CashPaymentRequest,
) -> tuple[Payment, list[Notification]]:
    """Record money collected at the office. Goes through the same ledger path."""
    payment, pending = await record_payment(
        db,
        data.application_id,
        amount=data.amount,
        method=data.payment_method,
        status=data.status,
        installment_number=data.installment_number,
        total_installments=data.total_installments,
        received_by=data.received_by,
    )
    logger.info(f"Admin {admin_id} recorded cash payment {payment.id} received by {data.received_by}")
    return payment, pending
