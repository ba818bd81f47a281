"""
Admissions Schemas

Pydantic models for request validation and response serialization.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from admission_portal.modules.admissions.models import (
    ApplicationStatus,
    DocumentStatus,
    PaymentMethod,
    PaymentStatus,
)

# ============================================
# Profile
# ============================================


class PersonalInfo(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, min_length=7, max_length=20)
    date_of_birth: date | None = None
    gender: str | None = Field(None, max_length=10)
    category: str | None = Field(None, max_length=20)
    father_name: str | None = Field(None, max_length=100)
    mother_name: str | None = Field(None, max_length=100)
    guardian_name: str | None = Field(None, max_length=100)


class AddressInfo(BaseModel):
    address: str | None = Field(None, max_length=500)
    pincode: str | None = Field(None, max_length=10)
    country_id: UUID | None = None
    state_id: UUID | None = None
    city_id: UUID | None = None


class AcademicInfo(BaseModel):
    college_id: UUID | None = None
    branch_id: UUID | None = None
    trade_id: UUID | None = None


class ProfileUpdateRequest(BaseModel):
    """Any section may be omitted; only fields that are sent are written."""

    personal_info: PersonalInfo | None = None
    address_info: AddressInfo | None = None
    academic_info: AcademicInfo | None = None


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    application_number: str
    date_of_birth: date | None = None
    gender: str | None = None
    category: str | None = None
    father_name: str | None = None
    mother_name: str | None = None
    guardian_name: str | None = None
    address: str | None = None
    pincode: str | None = None
    country_id: UUID | None = None
    state_id: UUID | None = None
    city_id: UUID | None = None
    college_id: UUID | None = None
    branch_id: UUID | None = None
    trade_id: UUID | None = None
    status: ApplicationStatus
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class StudentInfo(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str | None = None


class ProfileResponse(BaseModel):
    student: StudentInfo
    application: ApplicationResponse


class SubmitResponse(BaseModel):
    id: UUID
    application_number: str
    status: ApplicationStatus
    submitted_at: datetime | None
    message: str


# ============================================
# Documents
# ============================================


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    document_type_id: UUID
    document_type_name: str | None = None
    file_name: str
    original_name: str
    file_path: str
    file_size: int
    mime_type: str
    uploaded_at: datetime | None = None
    status: DocumentStatus
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    admin_notes: str | None = None


class AdminDocumentItem(DocumentResponse):
    application_number: str
    student_name: str
    student_email: str


class AdminDocumentListResponse(BaseModel):
    documents: list[AdminDocumentItem]
    total: int
    skip: int
    limit: int


class ApproveDocumentRequest(BaseModel):
    notes: str | None = Field(None, max_length=1000)


class RejectDocumentRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


# ============================================
# Payments
# ============================================


class PaymentCreateRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    currency: str = Field("INR", min_length=3, max_length=3)
    payment_method: PaymentMethod = PaymentMethod.ONLINE
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str | None = Field(None, max_length=100)
    installment_number: int = Field(1, ge=1)
    total_installments: int = Field(1, ge=1)

    @field_validator("status")
    @classmethod
    def only_pending(cls, v: PaymentStatus) -> PaymentStatus:
        # Completion goes through gateway verification
        if v != PaymentStatus.PENDING:
            raise ValueError("payments can only be created as pending")
        return v

    @model_validator(mode="after")
    def check_installments(self):
        if self.installment_number > self.total_installments:
            raise ValueError("installment_number cannot exceed total_installments")
        return self


class CashPaymentRequest(BaseModel):
    """Cash collected at the office by a staff member."""

    application_id: UUID
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    payment_method: PaymentMethod = PaymentMethod.CASH
    status: PaymentStatus = PaymentStatus.COMPLETED
    received_by: str = Field(..., min_length=1, max_length=100)
    installment_number: int = Field(1, ge=1)
    total_installments: int = Field(1, ge=1)

    @field_validator("status")
    @classmethod
    def only_completed(cls, v: PaymentStatus) -> PaymentStatus:
        if v != PaymentStatus.COMPLETED:
            raise ValueError("cash payments are recorded as completed")
        return v

    @model_validator(mode="after")
    def check_installments(self):
        if self.installment_number > self.total_installments:
            raise ValueError("installment_number cannot exceed total_installments")
        return self


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    amount: Decimal
    currency: str
    payment_method: str
    received_by: str | None = None
    transaction_id: str | None = None
    status: PaymentStatus
    paid_at: datetime | None = None
    installment_number: int
    total_installments: int
    created_at: datetime | None = None


class AdminPaymentItem(PaymentResponse):
    application_number: str
    student_name: str
    student_email: str


class AdminPaymentListResponse(BaseModel):
    payments: list[AdminPaymentItem]
    total: int
    skip: int
    limit: int


class PaymentStatsResponse(BaseModel):
    total_revenue: Decimal
    pending_payments: int
    completed_payments: int
    failed_payments: int


class InstallmentPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    active: bool
    total_installments: int
    paid_installments: int
    next_installment_number: int
    installment_amount: Decimal
    remaining_installments: int
    can_pay_remaining: bool


class PaymentPlanResponse(BaseModel):
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    can_pay_remaining: bool
    installment_plan: InstallmentPlanResponse | None = None


class CreateOrderRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    payment_method: PaymentMethod = PaymentMethod.ONLINE
    installment_number: int = Field(1, ge=1)
    total_installments: int = Field(1, ge=1)


class CreateOrderResponse(BaseModel):
    payment_id: UUID
    order_id: str
    amount: int
    currency: str
    key_id: str


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


# ============================================
# Summary
# ============================================


class SummaryResponse(BaseModel):
    student: StudentInfo
    application: ApplicationResponse
    country_name: str | None = None
    state_name: str | None = None
    city_name: str | None = None
    college_name: str | None = None
    branch_name: str | None = None
    trade_name: str | None = None
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    payments: list[PaymentResponse]


# ============================================
# Admin
# ============================================


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000, description="Reason for rejection")


class DecisionResponse(BaseModel):
    id: UUID
    status: ApplicationStatus
    message: str


class DashboardStats(BaseModel):
    total_applications: int = Field(..., description="All non-draft applications")
    pending_reviews: int = Field(..., description="Submitted and awaiting a decision")
    approved_applications: int
    rejected_applications: int
    draft_applications: int
    completed_payments: Decimal = Field(..., description="Sum of completed payment amounts")


class MonthlyDataPoint(BaseModel):
    month: str = Field(..., description="Abbreviated month name, e.g. 'Jan'")
    year: int
    applications: int
    approved: int


class StatusCount(BaseModel):
    name: str
    value: int


class RecentApplicationItem(BaseModel):
    id: UUID
    application_number: str
    student_name: str
    college_name: str | None = None
    branch_name: str | None = None
    trade_name: str | None = None
    status: ApplicationStatus
    submitted_at: datetime | None = None


class ApplicationListItem(BaseModel):
    id: UUID
    application_number: str
    student_name: str
    student_email: str
    status: ApplicationStatus
    trade_id: UUID | None = None
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    rejected_at: datetime | None = None


class ApplicationListResponse(BaseModel):
    applications: list[ApplicationListItem]
    total: int
    skip: int
    limit: int


class ApplicationDetailResponse(SummaryResponse):
    documents: list[DocumentResponse]
