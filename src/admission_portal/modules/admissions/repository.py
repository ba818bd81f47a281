"""
Admissions Repository

Database access for applications, documents and payments.
No business rules live here; status changes go through workflow.py.
"""

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.modules.admissions.models import (
    ApplicationStatus,
    Document,
    DocumentStatus,
    Payment,
    PaymentStatus,
    StudentApplication,
)
from admission_portal.modules.master_data.models import Branch, College, DocumentType, Trade
from admission_portal.modules.users.models import User

logger = logging.getLogger(__name__)


def _search_pattern(search: str) -> str:
    """Substring pattern for ilike with LIKE wildcards in the input escaped."""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def save(db: AsyncSession, entity: Any) -> Any:
    """Commit pending changes and reload the entity."""
    await db.commit()
    await db.refresh(entity)
    return entity


# ============================================
# Applications
# ============================================


async def get_by_id(db: AsyncSession, application_id: UUID) -> StudentApplication | None:
    return await db.get(StudentApplication, application_id)


async def get_by_user_id(db: AsyncSession, user_id: UUID) -> StudentApplication | None:
    result = await db.execute(
        select(StudentApplication).where(StudentApplication.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def application_number_exists(db: AsyncSession, application_number: str) -> bool:
    result = await db.execute(
        select(StudentApplication.id).where(
            StudentApplication.application_number == application_number
        )
    )
    return result.scalar_one_or_none() is not None


async def create(db: AsyncSession, user_id: UUID, application_number: str) -> StudentApplication:
    application = StudentApplication(
        user_id=user_id,
        application_number=application_number,
        status=ApplicationStatus.DRAFT,
    )
    db.add(application)
    await db.commit()
    await db.refresh(application)
    return application


async def get_applications_for_admin(
    db: AsyncSession,
    *,
    status: ApplicationStatus | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[tuple[StudentApplication, User]], int]:
    """
    Non-draft applications joined with their owners, newest submission first.

    Search matches application number, first/last name and email (case-insensitive).
    """
    query = (
        select(StudentApplication, User)
        .join(User, User.id == StudentApplication.user_id)
        .where(StudentApplication.status != ApplicationStatus.DRAFT)
    )

    if status:
        query = query.where(StudentApplication.status == status)

    if search:
        search_pattern = _search_pattern(search)
        query = query.where(
            or_(
                StudentApplication.application_number.ilike(search_pattern, escape="\\"),
                User.first_name.ilike(search_pattern, escape="\\"),
                User.last_name.ilike(search_pattern, escape="\\"),
                User.email.ilike(search_pattern, escape="\\"),
            )
        )

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = (
        query.order_by(StudentApplication.submitted_at.desc().nulls_last())
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(query)
    return [(row[0], row[1]) for row in result.all()], total


async def get_dashboard_stats(db: AsyncSession) -> dict:
    """Counts by status plus completed revenue."""
    counts_query = select(
        func.count(
            case((StudentApplication.status != ApplicationStatus.DRAFT, 1))
        ).label("total_applications"),
        func.count(
            case((StudentApplication.status == ApplicationStatus.SUBMITTED, 1))
        ).label("pending_reviews"),
        func.count(
            case((StudentApplication.status == ApplicationStatus.APPROVED, 1))
        ).label("approved_applications"),
        func.count(
            case((StudentApplication.status == ApplicationStatus.REJECTED, 1))
        ).label("rejected_applications"),
        func.count(
            case((StudentApplication.status == ApplicationStatus.DRAFT, 1))
        ).label("draft_applications"),
    )
    row = (await db.execute(counts_query)).one()

    revenue_query = select(func.coalesce(func.sum(Payment.amount), 0)).where(
        Payment.status == PaymentStatus.COMPLETED
    )
    completed_payments = (await db.execute(revenue_query)).scalar() or 0

    return {
        "total_applications": row.total_applications,
        "pending_reviews": row.pending_reviews,
        "approved_applications": row.approved_applications,
        "rejected_applications": row.rejected_applications,
        "draft_applications": row.draft_applications,
        "completed_payments": completed_payments,
    }


async def get_monthly_submissions(db: AsyncSession, since: datetime) -> list[dict]:
    """Submitted and approved counts per calendar month from ``since`` onwards, oldest first."""
    month = func.date_trunc("month", StudentApplication.submitted_at).label("month")
    query = (
        select(
            month,
            func.count().label("applications"),
            func.count(
                case((StudentApplication.status == ApplicationStatus.APPROVED, 1))
            ).label("approved"),
        )
        .where(StudentApplication.submitted_at >= since)
        .group_by(month)
        .order_by(month)
    )
    result = await db.execute(query)
    return [
        {"month": row.month, "applications": row.applications, "approved": row.approved}
        for row in result.all()
    ]


async def get_status_distribution(db: AsyncSession) -> dict[ApplicationStatus, int]:
    """Application counts per non-draft status."""
    result = await db.execute(
        select(StudentApplication.status, func.count())
        .where(StudentApplication.status != ApplicationStatus.DRAFT)
        .group_by(StudentApplication.status)
    )
    return {row[0]: row[1] for row in result.all()}


async def get_recent_applications(db: AsyncSession, limit: int = 10) -> list[dict]:
    """Latest non-draft applications with owner and programme names."""
    query = (
        select(
            StudentApplication,
            User.first_name,
            User.last_name,
            College.name.label("college_name"),
            Branch.name.label("branch_name"),
            Trade.name.label("trade_name"),
        )
        .join(User, User.id == StudentApplication.user_id)
        .outerjoin(College, College.id == StudentApplication.college_id)
        .outerjoin(Branch, Branch.id == StudentApplication.branch_id)
        .outerjoin(Trade, Trade.id == StudentApplication.trade_id)
        .where(StudentApplication.status != ApplicationStatus.DRAFT)
        .order_by(StudentApplication.submitted_at.desc().nulls_last())
        .limit(limit)
    )
    result = await db.execute(query)
    return [
        {
            "application": row.StudentApplication,
            "student_name": f"{row.first_name} {row.last_name}",
            "college_name": row.college_name,
            "branch_name": row.branch_name,
            "trade_name": row.trade_name,
        }
        for row in result.all()
    ]


# ============================================
# Documents
# ============================================


async def get_document(db: AsyncSession, document_id: UUID) -> Document | None:
    return await db.get(Document, document_id)


async def get_document_owner(db: AsyncSession, file_name: str) -> UUID | None:
    """User id of the applicant whose document is stored under ``file_name``."""
    result = await db.execute(
        select(StudentApplication.user_id)
        .join(Document, Document.application_id == StudentApplication.id)
        .where(Document.file_name == file_name)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_document(db: AsyncSession, **fields: Any) -> Document:
    document = Document(status=DocumentStatus.PENDING, **fields)
    db.add(document)
    await db.commit()
    await db.refresh(document)
    return document


async def list_documents(
    db: AsyncSession, application_id: UUID
) -> list[tuple[Document, str | None]]:
    """Documents of one application with their type names, newest first."""
    result = await db.execute(
        select(Document, DocumentType.name)
        .outerjoin(DocumentType, DocumentType.id == Document.document_type_id)
        .where(Document.application_id == application_id)
        .order_by(Document.uploaded_at.desc())
    )
    return [(row[0], row[1]) for row in result.all()]


async def get_documents_for_admin(
    db: AsyncSession,
    *,
    status: DocumentStatus | None = None,
    application_id: UUID | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[dict], int]:
    query = (
        select(
            Document,
            DocumentType.name.label("document_type_name"),
            StudentApplication.application_number,
            User.first_name,
            User.last_name,
            User.email,
        )
        .join(StudentApplication, StudentApplication.id == Document.application_id)
        .join(User, User.id == StudentApplication.user_id)
        .outerjoin(DocumentType, DocumentType.id == Document.document_type_id)
    )
    if status:
        query = query.where(Document.status == status)
    if application_id:
        query = query.where(Document.application_id == application_id)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(
        query.order_by(Document.uploaded_at.desc()).offset(skip).limit(limit)
    )
    rows = [
        {
            "document": row.Document,
            "document_type_name": row.document_type_name,
            "application_number": row.application_number,
            "student_name": f"{row.first_name} {row.last_name}",
            "student_email": row.email,
        }
        for row in result.all()
    ]
    return rows, total


# ============================================
# Payments
# ============================================


async def create_payment(db: AsyncSession, **fields: Any) -> Payment:
    payment = Payment(**fields)
    db.add(payment)
    await db.commit()
    await db.refresh(payment)
    return payment


async def get_payment(db: AsyncSession, payment_id: UUID) -> Payment | None:
    return await db.get(Payment, payment_id)


async def get_payment_by_order_id(db: AsyncSession, order_id: str) -> Payment | None:
    result = await db.execute(select(Payment).where(Payment.gateway_order_id == order_id))
    return result.scalar_one_or_none()


async def list_payments(db: AsyncSession, application_id: UUID) -> list[Payment]:
    """Full payment history, oldest first."""
    result = await db.execute(
        select(Payment)
        .where(Payment.application_id == application_id)
        .order_by(Payment.created_at.asc())
    )
    return list(result.scalars().all())


async def get_payment_stats(db: AsyncSession) -> dict:
    query = select(
        func.coalesce(
            func.sum(case((Payment.status == PaymentStatus.COMPLETED, Payment.amount), else_=0)),
            0,
        ).label("total_revenue"),
        func.count(case((Payment.status == PaymentStatus.PENDING, 1))).label("pending_payments"),
        func.count(case((Payment.status == PaymentStatus.COMPLETED, 1))).label(
            "completed_payments"
        ),
        func.count(case((Payment.status == PaymentStatus.FAILED, 1))).label("failed_payments"),
    )
    row = (await db.execute(query)).one()
    return {
        "total_revenue": row.total_revenue,
        "pending_payments": row.pending_payments,
        "completed_payments": row.completed_payments,
        "failed_payments": row.failed_payments,
    }


async def get_payments_for_admin(
    db: AsyncSession,
    *,
    status: PaymentStatus | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[dict], int]:
    """
    Payments joined with applicant identity, newest first.

    Search matches application number, applicant name/email and transaction id.
    """
    query = (
        select(
            Payment,
            StudentApplication.application_number,
            User.first_name,
            User.last_name,
            User.email,
        )
        .join(StudentApplication, StudentApplication.id == Payment.application_id)
        .join(User, User.id == StudentApplication.user_id)
    )
    if status:
        query = query.where(Payment.status == status)
    if search:
        search_pattern = _search_pattern(search)
        query = query.where(
            or_(
                StudentApplication.application_number.ilike(search_pattern, escape="\\"),
                User.first_name.ilike(search_pattern, escape="\\"),
                User.last_name.ilike(search_pattern, escape="\\"),
                User.email.ilike(search_pattern, escape="\\"),
                Payment.transaction_id.ilike(search_pattern, escape="\\"),
            )
        )

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(query.order_by(Payment.created_at.desc()).offset(skip).limit(limit))
    rows = [
        {
            "payment": row.Payment,
            "application_number": row.application_number,
            "student_name": f"{row.first_name} {row.last_name}",
            "student_email": row.email,
        }
        for row in result.all()
    ]
    return rows, total
