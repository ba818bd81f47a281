"""
Fixtures for admissions tests.
"""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest

from admission_portal.modules.admissions.models import (
    ApplicationStatus,
    Document,
    DocumentStatus,
    Payment,
    PaymentStatus,
    StudentApplication,
)
from admission_portal.modules.master_data.models import DocumentType
from admission_portal.modules.users.models import User, UserRole


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def admin_id():
    """Return a consistent admin UUID for testing."""
    return UUID("00000000-0000-0000-0000-000000000001")


@pytest.fixture
def sample_user():
    user = MagicMock(spec=User)
    user.id = uuid4()
    user.email = "asha@example.com"
    user.phone = "+919800000001"
    user.first_name = "Asha"
    user.last_name = "Verma"
    user.full_name = "Asha Verma"
    user.role = UserRole.STUDENT
    user.is_active = True
    user.is_verified = True
    return user


def _make_application(user_id, status=ApplicationStatus.DRAFT, **overrides):
    application = MagicMock(spec=StudentApplication)
    application.id = uuid4()
    application.user_id = user_id
    application.application_number = "APP1700000000000123"
    application.status = status
    application.trade_id = uuid4()
    application.country_id = None
    application.state_id = None
    application.city_id = None
    application.college_id = None
    application.branch_id = None
    application.submitted_at = None
    application.approved_at = None
    application.rejected_at = None
    application.rejection_reason = None
    for field, value in overrides.items():
        setattr(application, field, value)
    return application


@pytest.fixture
def draft_application(sample_user):
    return _make_application(sample_user.id)


@pytest.fixture
def submitted_application(sample_user):
    return _make_application(
        sample_user.id,
        ApplicationStatus.SUBMITTED,
        submitted_at=datetime(2024, 6, 1, 10, 0, tzinfo=UTC),
    )


@pytest.fixture
def sample_document(draft_application):
    document = MagicMock(spec=Document)
    document.id = uuid4()
    document.application_id = draft_application.id
    document.document_type_id = uuid4()
    document.file_name = "APP1700000000000123_type_1700000000000.pdf"
    document.original_name = "marksheet.pdf"
    document.file_path = "/api/v1/files/APP1700000000000123_type_1700000000000.pdf"
    document.file_size = 2048
    document.mime_type = "application/pdf"
    document.status = DocumentStatus.REJECTED
    document.rejection_reason = "blurry scan"
    document.admin_notes = None
    document.approved_by = None
    document.approved_at = None
    document.rejected_at = datetime(2024, 6, 2, tzinfo=UTC)
    return document


@pytest.fixture
def sample_document_type():
    document_type = MagicMock(spec=DocumentType)
    document_type.id = uuid4()
    document_type.name = "10th Marksheet"
    document_type.is_active = True
    document_type.max_file_size = 5 * 1024 * 1024
    document_type.allowed_types_list = ["application/pdf", "image/jpeg", "image/png"]
    return document_type


def _make_payment(
    amount,
    status=PaymentStatus.COMPLETED,
    method="online",
    installment_number=1,
    total_installments=1,
    application_id=None,
):
    payment = MagicMock(spec=Payment)
    payment.id = uuid4()
    payment.application_id = application_id or uuid4()
    payment.amount = Decimal(str(amount))
    payment.currency = "INR"
    payment.payment_method = method
    payment.status = status
    payment.transaction_id = "TXN1700000000000"
    payment.gateway_order_id = None
    payment.paid_at = None
    payment.installment_number = installment_number
    payment.total_installments = total_installments
    return payment


@pytest.fixture
def application_factory():
    return _make_application


@pytest.fixture
def payment_factory():
    return _make_payment
