"""Master data request and response schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CatalogItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str


class CountryResponse(CatalogItem):
    code: str


class StateResponse(CatalogItem):
    country_id: UUID
    code: str


class CityResponse(CatalogItem):
    state_id: UUID


class CollegeResponse(CatalogItem):
    code: str
    address: str | None = None
    city_id: UUID | None = None
    established_year: int | None = None


class BranchResponse(CatalogItem):
    code: str
    description: str | None = None


class TradeResponse(CatalogItem):
    branch_id: UUID
    code: str
    description: str | None = None
    duration: int | None = None


class DocumentTypeResponse(CatalogItem):
    description: str | None = None
    is_required: bool
    max_file_size: int
    allowed_types: list[str] = Field(validation_alias="allowed_types_list")
    sort_order: int


class FeeItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    trade_id: UUID
    fee_type: str
    amount: Decimal
    currency: str
    academic_year: str | None = None


class FeeStructureResponse(BaseModel):
    trade_id: UUID
    items: list[FeeItemResponse]
    total_amount: Decimal


# ============================================
# Admin
# ============================================


class AdminFields(BaseModel):
    is_active: bool
    created_at: datetime


class CountryAdminResponse(CountryResponse, AdminFields):
    student_count: int = 0
    state_count: int = 0


class StateAdminResponse(StateResponse, AdminFields):
    student_count: int = 0
    city_count: int = 0


class CityAdminResponse(CityResponse, AdminFields):
    student_count: int = 0


class CollegeAdminResponse(CollegeResponse, AdminFields):
    pass


class BranchAdminResponse(BranchResponse, AdminFields):
    pass


class TradeAdminResponse(TradeResponse, AdminFields):
    pass


class DocumentTypeAdminResponse(DocumentTypeResponse, AdminFields):
    pass


class FeeItemAdminResponse(FeeItemResponse, AdminFields):
    pass


class CountryRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=10)
    is_active: bool = True


class StateRequest(BaseModel):
    country_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=10)
    is_active: bool = True


class CityRequest(BaseModel):
    state_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    is_active: bool = True
