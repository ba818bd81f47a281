"""
Unit tests for the student-facing admissions service.

These tests cover:
- Lazy draft creation and profile edits
- Document upload validation and owner-only replacement
- Submission
- Payment ledger entries and the submit-on-payment rule
- Online payment orders and signature verification
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from pydantic import ValidationError as PydanticValidationError

from admission_portal.core.payment_gateway import PaymentGatewayError, RazorpayGateway
from admission_portal.core.storage import StorageError
from admission_portal.modules.admissions.models import (
    ApplicationStatus,
    DocumentStatus,
    PaymentMethod,
    PaymentStatus,
)
from admission_portal.modules.admissions.schemas import (
    CreateOrderRequest,
    PaymentCreateRequest,
    PersonalInfo,
    ProfileUpdateRequest,
)
from admission_portal.modules.admissions.service import (
    DuplicateContactError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    UploadedFile,
    UpstreamError,
    ValidationError,
    authorize_file_access,
    calculate_total_payable,
    create_payment_order,
    get_or_create_profile,
    get_payment_plan,
    record_payment,
    record_student_payment,
    replace_document,
    settle_payment,
    submit_application,
    update_profile,
    upload_document,
    verify_payment,
)

SERVICE = "admission_portal.modules.admissions.service"


@pytest.fixture
def mock_storage():
    storage = MagicMock()
    storage.put = AsyncMock(side_effect=lambda data, name, mime: f"/api/v1/files/{name}")
    return storage


@pytest.fixture
def pdf_upload():
    return UploadedFile(filename="marksheet.pdf", content_type="application/pdf", data=b"%PDF-1.4 x")


# ============================================
# Fees
# ============================================


@pytest.mark.asyncio
async def test_calculate_total_payable_without_trade(mock_db):
    with patch(f"{SERVICE}.master_repository") as mock_master:
        mock_master.list_fee_items = AsyncMock()
        assert await calculate_total_payable(mock_db, None) == Decimal("0")
        mock_master.list_fee_items.assert_not_called()


@pytest.mark.asyncio
async def test_calculate_total_payable_sums_active_items(mock_db):
    trade_id = uuid4()
    items = [
        MagicMock(trade_id=trade_id, amount=Decimal("2000"), is_active=True),
        MagicMock(trade_id=trade_id, amount=Decimal("500"), is_active=True),
    ]
    with patch(f"{SERVICE}.master_repository") as mock_master:
        mock_master.list_fee_items = AsyncMock(return_value=items)
        assert await calculate_total_payable(mock_db, trade_id) == Decimal("2500")


# ============================================
# Profile
# ============================================


class TestGetOrCreateProfile:
    @pytest.mark.asyncio
    async def test_returns_existing_application(self, mock_db, sample_user, draft_application):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
            mock_repo.create = AsyncMock()

            application, user = await get_or_create_profile(mock_db, sample_user.id)

            assert application is draft_application
            assert user is sample_user
            mock_repo.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_creates_draft_on_first_access(self, mock_db, sample_user, draft_application):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_repo.get_by_user_id = AsyncMock(return_value=None)
            mock_repo.application_number_exists = AsyncMock(side_effect=[True, False])
            mock_repo.create = AsyncMock(return_value=draft_application)

            application, _ = await get_or_create_profile(mock_db, sample_user.id)

            assert application is draft_application
            assert mock_repo.application_number_exists.await_count == 2
            _, user_id, number = mock_repo.create.call_args.args
            assert user_id == sample_user.id
            assert number.startswith("APP")

    @pytest.mark.asyncio
    async def test_unknown_user(self, mock_db):
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_id = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError) as exc_info:
                await get_or_create_profile(mock_db, uuid4())
            assert exc_info.value.error_code == "USER_NOT_FOUND"


class TestUpdateProfile:
    @pytest.mark.asyncio
    async def test_updates_user_and_application_fields(
        self, mock_db, sample_user, draft_application
    ):
        data = ProfileUpdateRequest(
            personal_info=PersonalInfo(first_name="Asha", gender="female", father_name="Ravi")
        )
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_users.find_conflicting = AsyncMock()

            await update_profile(mock_db, sample_user.id, data)

            assert draft_application.gender == "female"
            assert draft_application.father_name == "Ravi"
            mock_users.find_conflicting.assert_not_called()
            mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rejects_email_of_another_account(self, mock_db, sample_user, draft_application):
        data = ProfileUpdateRequest(personal_info=PersonalInfo(email="taken@example.com"))
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_users.find_conflicting = AsyncMock(return_value=MagicMock())

            with pytest.raises(DuplicateContactError):
                await update_profile(mock_db, sample_user.id, data)

            mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_requires_application(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError):
                await update_profile(mock_db, uuid4(), ProfileUpdateRequest())


# ============================================
# Documents
# ============================================


class TestUploadDocument:
    @pytest.mark.asyncio
    async def test_success(
        self,
        mock_db,
        mock_storage,
        pdf_upload,
        sample_user,
        draft_application,
        sample_document,
        sample_document_type,
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.master_repository") as mock_master,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_master.get_document_type = AsyncMock(return_value=sample_document_type)
            mock_repo.create_document = AsyncMock(return_value=sample_document)

            document, pending = await upload_document(
                mock_db, mock_storage, sample_user.id, sample_document_type.id, pdf_upload
            )

            assert document is sample_document
            stored_name = mock_storage.put.call_args.args[1]
            assert stored_name.startswith(
                f"{draft_application.application_number}_{sample_document_type.id}_"
            )
            assert stored_name.endswith(".pdf")

            fields = mock_repo.create_document.call_args.kwargs
            assert fields["file_name"] == stored_name
            assert fields["file_path"] == f"/api/v1/files/{stored_name}"
            assert fields["original_name"] == "marksheet.pdf"
            assert fields["file_size"] == pdf_upload.size
            assert len(pending) == 1

    @pytest.mark.asyncio
    async def test_rejects_disallowed_mime_type(
        self, mock_db, mock_storage, sample_user, draft_application, sample_document_type
    ):
        upload = UploadedFile(filename="notes.txt", content_type="text/plain", data=b"hello")
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.master_repository") as mock_master,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_master.get_document_type = AsyncMock(return_value=sample_document_type)

            with pytest.raises(ValidationError) as exc_info:
                await upload_document(
                    mock_db, mock_storage, sample_user.id, sample_document_type.id, upload
                )

            assert exc_info.value.error_code == "INVALID_FILE_TYPE"
            mock_storage.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_oversize_file(
        self, mock_db, mock_storage, sample_user, draft_application, sample_document_type
    ):
        upload = UploadedFile(
            filename="big.pdf",
            content_type="application/pdf",
            data=b"0" * (sample_document_type.max_file_size + 1),
        )
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.master_repository") as mock_master,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_master.get_document_type = AsyncMock(return_value=sample_document_type)

            with pytest.raises(ValidationError) as exc_info:
                await upload_document(
                    mock_db, mock_storage, sample_user.id, sample_document_type.id, upload
                )

            assert exc_info.value.error_code == "FILE_TOO_LARGE"

    @pytest.mark.asyncio
    async def test_rejects_empty_file(
        self, mock_db, mock_storage, sample_user, draft_application, sample_document_type
    ):
        upload = UploadedFile(filename="empty.pdf", content_type="application/pdf", data=b"")
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.master_repository") as mock_master,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_master.get_document_type = AsyncMock(return_value=sample_document_type)

            with pytest.raises(ValidationError) as exc_info:
                await upload_document(
                    mock_db, mock_storage, sample_user.id, sample_document_type.id, upload
                )

            assert exc_info.value.error_code == "EMPTY_FILE"

    @pytest.mark.asyncio
    async def test_unknown_document_type(
        self, mock_db, mock_storage, pdf_upload, sample_user, draft_application
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.master_repository") as mock_master,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_master.get_document_type = AsyncMock(return_value=None)

            with pytest.raises(NotFoundError) as exc_info:
                await upload_document(mock_db, mock_storage, sample_user.id, uuid4(), pdf_upload)

            assert exc_info.value.error_code == "DOCUMENT_TYPE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_storage_failure_is_upstream_error(
        self, mock_db, pdf_upload, sample_user, draft_application, sample_document_type
    ):
        storage = MagicMock()
        storage.put = AsyncMock(side_effect=StorageError("b2 down"))
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.master_repository") as mock_master,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_master.get_document_type = AsyncMock(return_value=sample_document_type)
            mock_repo.create_document = AsyncMock()

            with pytest.raises(UpstreamError) as exc_info:
                await upload_document(
                    mock_db, storage, sample_user.id, sample_document_type.id, pdf_upload
                )

            assert exc_info.value.status_code == 502
            mock_repo.create_document.assert_not_called()


class TestReplaceDocument:
    @pytest.mark.asyncio
    async def test_owner_resets_review(
        self,
        mock_db,
        mock_storage,
        pdf_upload,
        sample_user,
        draft_application,
        sample_document,
        sample_document_type,
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.master_repository") as mock_master,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_document = AsyncMock(return_value=sample_document)
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_master.get_document_type = AsyncMock(return_value=sample_document_type)
            mock_repo.save = AsyncMock(side_effect=lambda db, entity: entity)

            document, pending = await replace_document(
                mock_db, mock_storage, sample_user.id, sample_document.id, pdf_upload
            )

            assert document.status == DocumentStatus.PENDING
            assert document.rejection_reason is None
            assert "_replaced_" in document.file_name
            assert document.original_name == "marksheet.pdf"
            assert "Replaced" in pending[0].subject

    @pytest.mark.asyncio
    async def test_other_student_is_refused(
        self, mock_db, mock_storage, pdf_upload, sample_document, application_factory
    ):
        other_application = application_factory(uuid4())
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_document = AsyncMock(return_value=sample_document)
            mock_repo.get_by_user_id = AsyncMock(return_value=other_application)
            mock_repo.save = AsyncMock()

            with pytest.raises(UnauthorizedError):
                await replace_document(
                    mock_db, mock_storage, other_application.user_id, sample_document.id, pdf_upload
                )

            assert sample_document.status == DocumentStatus.REJECTED
            assert sample_document.rejection_reason == "blurry scan"
            mock_storage.put.assert_not_called()
            mock_repo.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_document(self, mock_db, mock_storage, pdf_upload):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_document = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError):
                await replace_document(mock_db, mock_storage, uuid4(), uuid4(), pdf_upload)


# ============================================
# Submission
# ============================================


@pytest.mark.asyncio
async def test_submit_application_success(mock_db, sample_user, draft_application):
    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
        mock_users.get_by_id = AsyncMock(return_value=sample_user)
        mock_repo.save = AsyncMock(side_effect=lambda db, entity: entity)

        application, pending = await submit_application(mock_db, sample_user.id)

        assert application.status == ApplicationStatus.SUBMITTED
        assert application.submitted_at is not None
        assert [n.subject for n in pending][0] == "Application Submitted Successfully"
        assert len(pending) == 2


@pytest.mark.asyncio
async def test_submit_application_twice(mock_db, sample_user, submitted_application):
    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_repo.get_by_user_id = AsyncMock(return_value=submitted_application)
        mock_users.get_by_id = AsyncMock(return_value=sample_user)
        mock_repo.save = AsyncMock()

        with pytest.raises(InvalidStateError) as exc_info:
            await submit_application(mock_db, sample_user.id)

        assert exc_info.value.status_code == 409
        mock_repo.save.assert_not_called()


# ============================================
# Payments
# ============================================


class TestRecordPayment:
    @pytest.mark.asyncio
    async def test_completed_payment_submits_draft(
        self, mock_db, sample_user, draft_application, payment_factory
    ):
        payment = payment_factory("5000", application_id=draft_application.id)
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=draft_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_repo.create_payment = AsyncMock(return_value=payment)
            mock_repo.save = AsyncMock(side_effect=lambda db, entity: entity)

            result, pending = await record_payment(
                mock_db,
                draft_application.id,
                amount=Decimal("5000"),
                method=PaymentMethod.ONLINE,
                status=PaymentStatus.COMPLETED,
            )

            assert result is payment
            assert draft_application.status == ApplicationStatus.SUBMITTED
            assert [n.subject for n in pending] == ["Payment Received"]

            fields = mock_repo.create_payment.call_args.kwargs
            assert fields["payment_method"] == "online"
            assert fields["paid_at"] is not None
            assert fields["transaction_id"].startswith("TXN")

    @pytest.mark.asyncio
    async def test_completed_payment_keeps_submitted_status(
        self, mock_db, sample_user, submitted_application, payment_factory
    ):
        submitted_at = submitted_application.submitted_at
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=submitted_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_repo.create_payment = AsyncMock(return_value=payment_factory("1000"))
            mock_repo.save = AsyncMock()

            await record_payment(
                mock_db,
                submitted_application.id,
                amount=Decimal("1000"),
                method=PaymentMethod.ONLINE,
                status=PaymentStatus.COMPLETED,
            )

            assert submitted_application.status == ApplicationStatus.SUBMITTED
            assert submitted_application.submitted_at == submitted_at
            mock_repo.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_pending_payment_has_no_side_effects(
        self, mock_db, sample_user, draft_application, payment_factory
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=draft_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_repo.create_payment = AsyncMock(
                return_value=payment_factory("1000", status=PaymentStatus.PENDING)
            )

            _, pending = await record_payment(
                mock_db,
                draft_application.id,
                amount=Decimal("1000"),
                method=PaymentMethod.ONLINE,
                status=PaymentStatus.PENDING,
            )

            assert pending == []
            assert draft_application.status == ApplicationStatus.DRAFT
            assert mock_repo.create_payment.call_args.kwargs["paid_at"] is None

    @pytest.mark.asyncio
    async def test_rejects_non_positive_amount(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock()
            with pytest.raises(ValidationError):
                await record_payment(
                    mock_db,
                    uuid4(),
                    amount=Decimal("0"),
                    method=PaymentMethod.ONLINE,
                    status=PaymentStatus.COMPLETED,
                )
            mock_repo.get_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_application(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError):
                await record_payment(
                    mock_db,
                    uuid4(),
                    amount=Decimal("100"),
                    method=PaymentMethod.CASH,
                    status=PaymentStatus.COMPLETED,
                )


@pytest.mark.asyncio
async def test_record_student_payment_uses_own_application(
    mock_db, sample_user, draft_application, payment_factory
):
    data = PaymentCreateRequest(
        amount=Decimal("3000"),
        payment_method=PaymentMethod.INSTALLMENT,
        installment_number=1,
        total_installments=3,
    )
    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
        mock_repo.get_by_id = AsyncMock(return_value=draft_application)
        mock_users.get_by_id = AsyncMock(return_value=sample_user)
        mock_repo.create_payment = AsyncMock(
            return_value=payment_factory("3000", status=PaymentStatus.PENDING)
        )

        await record_student_payment(mock_db, sample_user.id, data)

        fields = mock_repo.create_payment.call_args.kwargs
        assert fields["application_id"] == draft_application.id
        assert fields["payment_method"] == "installment"
        assert fields["installment_number"] == 1
        assert fields["total_installments"] == 3
        assert fields["status"] == PaymentStatus.PENDING
        assert fields["paid_at"] is None


@pytest.mark.parametrize("status", [PaymentStatus.COMPLETED, PaymentStatus.FAILED])
def test_student_cannot_create_settled_payment(status):
    with pytest.raises(PydanticValidationError):
        PaymentCreateRequest(amount=Decimal("3000"), status=status)


class TestSettlePayment:
    @pytest.mark.asyncio
    async def test_settles_pending_payment(
        self, mock_db, sample_user, draft_application, payment_factory
    ):
        payment = payment_factory(
            "9000", status=PaymentStatus.PENDING, application_id=draft_application.id
        )
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_payment = AsyncMock(return_value=payment)
            mock_repo.get_by_id = AsyncMock(return_value=draft_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_repo.save = AsyncMock(side_effect=lambda db, entity: entity)

            result, pending = await settle_payment(mock_db, payment.id, "pay_123")

            assert result.status == PaymentStatus.COMPLETED
            assert result.transaction_id == "pay_123"
            assert result.paid_at is not None
            assert draft_application.status == ApplicationStatus.SUBMITTED
            assert len(pending) == 1

    @pytest.mark.asyncio
    async def test_already_completed(self, mock_db, payment_factory):
        payment = payment_factory("9000")
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_payment = AsyncMock(return_value=payment)
            with pytest.raises(InvalidStateError):
                await settle_payment(mock_db, payment.id, "pay_123")


@pytest.mark.asyncio
async def test_get_payment_plan(mock_db, draft_application, payment_factory):
    payments = [
        payment_factory("3000", method="installment", installment_number=1, total_installments=3),
        payment_factory("3000", status=PaymentStatus.FAILED, method="installment"),
    ]
    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.master_repository") as mock_master,
    ):
        mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
        mock_repo.list_payments = AsyncMock(return_value=payments)
        mock_master.list_fee_items = AsyncMock(
            return_value=[
                MagicMock(trade_id=draft_application.trade_id, amount=Decimal("9000"), is_active=True)
            ]
        )

        plan = await get_payment_plan(mock_db, draft_application.user_id)

        assert plan["total_amount"] == Decimal("9000")
        assert plan["paid_amount"] == Decimal("3000")
        assert plan["remaining_amount"] == Decimal("6000")
        assert plan["can_pay_remaining"] is True
        assert plan["installment_plan"].next_installment_number == 2


# ============================================
# Online payments
# ============================================


class TestOnlinePayments:
    @pytest.mark.asyncio
    async def test_create_order_without_gateway(self, mock_db):
        with pytest.raises(UpstreamError):
            await create_payment_order(
                mock_db, None, uuid4(), CreateOrderRequest(amount=Decimal("100"))
            )

    @pytest.mark.asyncio
    async def test_create_order_records_pending_payment(
        self, mock_db, sample_user, draft_application, payment_factory
    ):
        gateway = MagicMock(spec=RazorpayGateway)
        gateway.create_order = AsyncMock(
            return_value={"id": "order_abc", "amount": 900000, "currency": "INR"}
        )
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
            mock_repo.get_by_id = AsyncMock(return_value=draft_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_user)
            mock_repo.create_payment = AsyncMock(
                return_value=payment_factory("9000", status=PaymentStatus.PENDING)
            )

            _, order = await create_payment_order(
                mock_db, gateway, sample_user.id, CreateOrderRequest(amount=Decimal("9000"))
            )

            assert order["id"] == "order_abc"
            fields = mock_repo.create_payment.call_args.kwargs
            assert fields["gateway_order_id"] == "order_abc"
            assert fields["status"] == PaymentStatus.PENDING
            assert draft_application.status == ApplicationStatus.DRAFT

    @pytest.mark.asyncio
    async def test_create_order_gateway_failure(self, mock_db, draft_application):
        gateway = MagicMock(spec=RazorpayGateway)
        gateway.create_order = AsyncMock(side_effect=PaymentGatewayError("down"))
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
            mock_repo.create_payment = AsyncMock()

            with pytest.raises(UpstreamError):
                await create_payment_order(
                    mock_db,
                    gateway,
                    draft_application.user_id,
                    CreateOrderRequest(amount=Decimal("100")),
                )

            mock_repo.create_payment.assert_not_called()

    @pytest.mark.asyncio
    async def test_verify_rejects_bad_signature(self, mock_db):
        gateway = MagicMock(spec=RazorpayGateway)
        gateway.verify_signature = MagicMock(return_value=False)
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_payment_by_order_id = AsyncMock()

            with pytest.raises(ValidationError) as exc_info:
                await verify_payment(
                    mock_db,
                    gateway,
                    uuid4(),
                    order_id="order_abc",
                    payment_id="pay_1",
                    signature="forged",
                )

            assert exc_info.value.error_code == "INVALID_SIGNATURE"
            mock_repo.get_payment_by_order_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_verify_refuses_other_students_order(
        self, mock_db, draft_application, payment_factory
    ):
        gateway = MagicMock(spec=RazorpayGateway)
        gateway.verify_signature = MagicMock(return_value=True)
        foreign_payment = payment_factory("100", status=PaymentStatus.PENDING)
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=draft_application)
            mock_repo.get_payment_by_order_id = AsyncMock(return_value=foreign_payment)

            with pytest.raises(NotFoundError):
                await verify_payment(
                    mock_db,
                    gateway,
                    draft_application.user_id,
                    order_id="order_abc",
                    payment_id="pay_1",
                    signature="sig",
                )


# ============================================
# File access
# ============================================


class TestAuthorizeFileAccess:
    @pytest.mark.asyncio
    async def test_owner_may_read(self, mock_db, sample_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_document_owner = AsyncMock(return_value=sample_user.id)
            await authorize_file_access(mock_db, sample_user.id, "APP1_photo.jpg")
            mock_repo.get_document_owner.assert_awaited_once_with(mock_db, "APP1_photo.jpg")

    @pytest.mark.asyncio
    async def test_other_student_is_refused(self, mock_db, sample_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_document_owner = AsyncMock(return_value=uuid4())
            with pytest.raises(UnauthorizedError) as exc_info:
                await authorize_file_access(mock_db, sample_user.id, "APP1_photo.jpg")
            assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_file(self, mock_db, sample_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_document_owner = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError) as exc_info:
                await authorize_file_access(mock_db, sample_user.id, "nothing.pdf")
            assert exc_info.value.error_code == "FILE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_admin_reads_any_file(self, mock_db, admin_id):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_document_owner = AsyncMock()
            await authorize_file_access(mock_db, admin_id, "APP1_photo.jpg", is_admin=True)
            mock_repo.get_document_owner.assert_not_called()
