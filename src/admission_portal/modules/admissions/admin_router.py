"""
Admissions Admin Router

API endpoints for administrators to review applications, documents and payments.
All endpoints require authentication with the admin role.

Endpoints:
- GET  /admin/dashboard/stats - Dashboard statistics
- GET  /admin/dashboard/monthly-data - Submissions per month for the last six months
- GET  /admin/dashboard/status-distribution - Application counts per status
- GET  /admin/dashboard/recent-applications - Latest submitted applications
- GET  /admin/applications - List applications with filters and pagination
- GET  /admin/applications/{id} - Application details with documents and payments
- POST /admin/applications/{id}/approve - Approve a submitted application
- POST /admin/applications/{id}/reject - Reject a submitted application
- GET  /admin/documents - List documents with filters and pagination
- POST /admin/documents/{id}/approve - Approve a document
- POST /admin/documents/{id}/reject - Reject a document
- GET  /admin/payments/stats - Payment statistics
- GET  /admin/payments - List payments with filters and pagination
- POST /admin/payments/cash - Record a cash payment received at the office

Security:
- All endpoints require valid JWT token with admin role
- Rate limiting on action endpoints to prevent abuse
- Audit logging for all admin actions
"""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.auth import CurrentUser, get_current_admin_user
from admission_portal.core.database import get_db
from admission_portal.core.rate_limit import RateLimitExceeded, check_rate_limit
from admission_portal.core.redis import get_redis
from admission_portal.modules.admissions import service
from admission_portal.modules.admissions.helpers import (
    document_response,
    handle_service_error,
    internal_error,
    payment_response,
    summary_fields,
)
from admission_portal.modules.admissions.models import (
    ApplicationStatus,
    DocumentStatus,
    PaymentStatus,
)
from admission_portal.modules.admissions.notifications import dispatch_notifications
from admission_portal.modules.admissions.schemas import (
    AdminDocumentItem,
    AdminDocumentListResponse,
    AdminPaymentItem,
    AdminPaymentListResponse,
    ApplicationDetailResponse,
    ApplicationListItem,
    ApplicationListResponse,
    ApproveDocumentRequest,
    CashPaymentRequest,
    DashboardStats,
    DecisionResponse,
    DocumentResponse,
    MonthlyDataPoint,
    PaymentResponse,
    PaymentStatsResponse,
    RecentApplicationItem,
    RejectDocumentRequest,
    RejectRequest,
    StatusCount,
)
from admission_portal.modules.admissions.service import AdmissionServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_APPROVE = (10, 60)  # 10 approvals per minute
RATE_LIMIT_REJECT = (10, 60)  # 10 rejections per minute
RATE_LIMIT_DOCUMENT_REVIEW = (60, 60)  # 60 document reviews per minute
RATE_LIMIT_CASH_PAYMENT = (20, 60)  # 20 cash entries per minute


async def _check_admin_rate_limit(
    redis: Redis | None,
    admin: CurrentUser,
    action: str,
    limit: int,
    window_seconds: int,
) -> None:
    """
    Check rate limit for an admin action.

    Raises:
        RateLimitExceeded: If rate limit is exceeded
    """
    key = f"admin:{action}:{admin.id}"
    allowed = await check_rate_limit(key, limit, window_seconds, redis)

    if not allowed:
        logger.warning(
            f"Rate limit exceeded for admin {admin.id} on action '{action}': "
            f"{limit}/{window_seconds}s"
        )
        raise RateLimitExceeded(limit, window_seconds)


# ============================================
# Dashboard
# ============================================


@router.get("/dashboard/stats", response_model=DashboardStats, summary="Dashboard Statistics")
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> DashboardStats:
    try:
        stats = await service.admin_get_dashboard_stats(db)
        logger.info(f"Admin {admin.id} fetched dashboard stats")
        return DashboardStats(**stats)
    except AdmissionServiceError as e:
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "getting dashboard stats") from e


@router.get(
    "/dashboard/monthly-data",
    response_model=list[MonthlyDataPoint],
    summary="Monthly Submissions",
)
async def get_monthly_data(
    months: int = Query(6, ge=1, le=24, description="Number of months to include"),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> list[MonthlyDataPoint]:
    try:
        data = await service.admin_get_monthly_data(db, months=months)
    except Exception as e:
        raise internal_error(e, "getting monthly data") from e
    return [MonthlyDataPoint(**point) for point in data]


@router.get(
    "/dashboard/status-distribution",
    response_model=list[StatusCount],
    summary="Status Distribution",
)
async def get_status_distribution(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> list[StatusCount]:
    try:
        data = await service.admin_get_status_distribution(db)
    except Exception as e:
        raise internal_error(e, "getting status distribution") from e
    return [StatusCount(**item) for item in data]


@router.get(
    "/dashboard/recent-applications",
    response_model=list[RecentApplicationItem],
    summary="Recent Applications",
)
async def get_recent_applications(
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> list[RecentApplicationItem]:
    try:
        rows = await service.admin_get_recent_applications(db, limit=limit)
    except Exception as e:
        raise internal_error(e, "getting recent applications") from e

    return [
        RecentApplicationItem(
            id=row["application"].id,
            application_number=row["application"].application_number,
            student_name=row["student_name"],
            college_name=row["college_name"],
            branch_name=row["branch_name"],
            trade_name=row["trade_name"],
            status=row["application"].status,
            submitted_at=row["application"].submitted_at,
        )
        for row in rows
    ]


# ============================================
# Applications
# ============================================


@router.get(
    "/applications",
    response_model=ApplicationListResponse,
    summary="List Applications",
    description="""
Paginated list of submitted, approved and rejected applications.
Drafts are never listed.

**Filters:**
- `status`: one application status
- `search`: application number, student name or email
""",
)
async def list_applications(
    status: ApplicationStatus | None = Query(None, description="Filter by application status"),
    search: str | None = Query(None, min_length=1, max_length=100, description="Search term"),
    skip: int = Query(0, ge=0, description="Records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Maximum records to return"),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationListResponse:
    try:
        result = await service.admin_get_applications_list(
            db, status=status, search=search, skip=skip, limit=limit
        )
    except AdmissionServiceError as e:
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "listing applications") from e

    logger.info(
        f"Admin {admin.id} listed applications: "
        f"total={result['total']}, returned={len(result['applications'])}"
    )

    return ApplicationListResponse(
        applications=[
            ApplicationListItem(
                id=application.id,
                application_number=application.application_number,
                student_name=user.full_name,
                student_email=user.email,
                status=application.status,
                trade_id=application.trade_id,
                submitted_at=application.submitted_at,
                approved_at=application.approved_at,
                rejected_at=application.rejected_at,
            )
            for application, user in result["applications"]
        ],
        total=result["total"],
        skip=result["skip"],
        limit=result["limit"],
    )


@router.get(
    "/applications/{application_id}",
    response_model=ApplicationDetailResponse,
    summary="Get Application Details",
)
async def get_application_detail(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationDetailResponse:
    try:
        detail = await service.admin_get_application_detail(db, application_id)
    except AdmissionServiceError as e:
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "getting application detail") from e

    logger.info(f"Admin {admin.id} viewed application {application_id}")
    return ApplicationDetailResponse(
        **summary_fields(detail),
        documents=[document_response(doc, type_name) for doc, type_name in detail["documents"]],
    )


@router.post(
    "/applications/{application_id}/approve",
    response_model=DecisionResponse,
    summary="Approve Application",
    description="""
Approve a submitted application and notify the student.

**Requirements:** application must be in `submitted` status.
""",
)
async def approve_application(
    application_id: UUID,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
    redis: Redis | None = Depends(get_redis),
) -> DecisionResponse:
    await _check_admin_rate_limit(redis, admin, "approve", *RATE_LIMIT_APPROVE)

    try:
        application, pending = await service.admin_approve_application(
            db, application_id, admin.id
        )
    except AdmissionServiceError as e:
        logger.warning(f"Cannot approve application {application_id}: {e.message}")
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "approving application") from e

    background_tasks.add_task(dispatch_notifications, pending)
    return DecisionResponse(
        id=application.id,
        status=application.status,
        message="Application approved. Notification sent to student.",
    )


@router.post(
    "/applications/{application_id}/reject",
    response_model=DecisionResponse,
    summary="Reject Application",
    description="""
Reject a submitted application with a reason and notify the student.

**Requirements:** application must be in `submitted` status; reason is required.
""",
)
async def reject_application(
    application_id: UUID,
    data: RejectRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
    redis: Redis | None = Depends(get_redis),
) -> DecisionResponse:
    await _check_admin_rate_limit(redis, admin, "reject", *RATE_LIMIT_REJECT)

    try:
        application, pending = await service.admin_reject_application(
            db, application_id, admin.id, data.reason
        )
    except AdmissionServiceError as e:
        logger.warning(f"Cannot reject application {application_id}: {e.message}")
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "rejecting application") from e

    background_tasks.add_task(dispatch_notifications, pending)
    return DecisionResponse(
        id=application.id,
        status=application.status,
        message="Application rejected. Notification sent to student.",
    )


# ============================================
# Documents
# ============================================


@router.get("/documents", response_model=AdminDocumentListResponse, summary="List Documents")
async def list_documents(
    status: DocumentStatus | None = Query(None, description="Filter by review status"),
    application_id: UUID | None = Query(None, description="Only documents of this application"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> AdminDocumentListResponse:
    try:
        result = await service.admin_get_documents_list(
            db, status=status, application_id=application_id, skip=skip, limit=limit
        )
    except AdmissionServiceError as e:
        handle_service_error(e)

    return AdminDocumentListResponse(
        documents=[
            AdminDocumentItem(
                **document_response(row["document"], row["document_type_name"]).model_dump(),
                application_number=row["application_number"],
                student_name=row["student_name"],
                student_email=row["student_email"],
            )
            for row in result["documents"]
        ],
        total=result["total"],
        skip=result["skip"],
        limit=result["limit"],
    )


@router.post(
    "/documents/{document_id}/approve",
    response_model=DocumentResponse,
    summary="Approve Document",
)
async def approve_document(
    document_id: UUID,
    data: ApproveDocumentRequest | None = None,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
    redis: Redis | None = Depends(get_redis),
) -> DocumentResponse:
    await _check_admin_rate_limit(redis, admin, "document_review", *RATE_LIMIT_DOCUMENT_REVIEW)

    try:
        document = await service.admin_approve_document(
            db, document_id, admin.id, data.notes if data else None
        )
    except AdmissionServiceError as e:
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "approving document") from e

    return document_response(document)


@router.post(
    "/documents/{document_id}/reject",
    response_model=DocumentResponse,
    summary="Reject Document",
)
async def reject_document(
    document_id: UUID,
    data: RejectDocumentRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
    redis: Redis | None = Depends(get_redis),
) -> DocumentResponse:
    await _check_admin_rate_limit(redis, admin, "document_review", *RATE_LIMIT_DOCUMENT_REVIEW)

    try:
        document = await service.admin_reject_document(db, document_id, admin.id, data.reason)
    except AdmissionServiceError as e:
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "rejecting document") from e

    return document_response(document)


# ============================================
# Payments
# ============================================


@router.get("/payments/stats", response_model=PaymentStatsResponse, summary="Payment Statistics")
async def get_payment_stats(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> PaymentStatsResponse:
    stats = await service.admin_get_payment_stats(db)
    logger.info(f"Admin {admin.id} fetched payment stats")
    return PaymentStatsResponse(**stats)


@router.get("/payments", response_model=AdminPaymentListResponse, summary="List Payments")
async def list_payments(
    status: PaymentStatus | None = Query(None, description="Filter by payment status"),
    search: str | None = Query(None, min_length=1, max_length=100, description="Search term"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> AdminPaymentListResponse:
    result = await service.admin_get_payments_list(
        db, status=status, search=search, skip=skip, limit=limit
    )
    return AdminPaymentListResponse(
        payments=[
            AdminPaymentItem(
                **payment_response(row["payment"]).model_dump(),
                application_number=row["application_number"],
                student_name=row["student_name"],
                student_email=row["student_email"],
            )
            for row in result["payments"]
        ],
        total=result["total"],
        skip=result["skip"],
        limit=result["limit"],
    )


@router.post(
    "/payments/cash",
    response_model=PaymentResponse,
    status_code=201,
    summary="Record Cash Payment",
    description="""
Record cash collected at the office. The receiving staff member's name is
stored with the payment. A completed cash payment submits a draft application.
""",
)
async def record_cash_payment(
    data: CashPaymentRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
    redis: Redis | None = Depends(get_redis),
) -> PaymentResponse:
    await _check_admin_rate_limit(redis, admin, "cash_payment", *RATE_LIMIT_CASH_PAYMENT)

    try:
        payment, pending = await service.admin_record_cash_payment(db, admin.id, data)
    except AdmissionServiceError as e:
        handle_service_error(e)
    except Exception as e:
        raise internal_error(e, "recording cash payment") from e

    background_tasks.add_task(dispatch_notifications, pending)
    return payment_response(payment)
