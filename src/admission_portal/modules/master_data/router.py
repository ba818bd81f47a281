"""
Master Data Router

Public, read-only catalogue endpoints used to populate the application form.

Endpoints:
- GET /master/countries
- GET /master/states?country_id=
- GET /master/cities?state_id=
- GET /master/colleges
- GET /master/branches
- GET /master/trades?branch_id=
- GET /master/document-types
- GET /master/fee-structure?trade_id=
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.database import get_db
from admission_portal.modules.admissions.ledger import fee_total
from admission_portal.modules.master_data import repository
from admission_portal.modules.master_data.schemas import (
    BranchResponse,
    CityResponse,
    CollegeResponse,
    CountryResponse,
    DocumentTypeResponse,
    FeeItemResponse,
    FeeStructureResponse,
    StateResponse,
    TradeResponse,
)

router = APIRouter()


@router.get("/countries", response_model=list[CountryResponse])
async def list_countries(db: AsyncSession = Depends(get_db)):
    return await repository.list_countries(db)


@router.get("/states", response_model=list[StateResponse])
async def list_states(
    country_id: UUID = Query(..., description="Country to list states for"),
    db: AsyncSession = Depends(get_db),
):
    return await repository.list_states(db, country_id)


@router.get("/cities", response_model=list[CityResponse])
async def list_cities(
    state_id: UUID = Query(..., description="State to list cities for"),
    db: AsyncSession = Depends(get_db),
):
    return await repository.list_cities(db, state_id)


@router.get("/colleges", response_model=list[CollegeResponse])
async def list_colleges(db: AsyncSession = Depends(get_db)):
    return await repository.list_colleges(db)


@router.get("/branches", response_model=list[BranchResponse])
async def list_branches(db: AsyncSession = Depends(get_db)):
    return await repository.list_branches(db)


@router.get("/trades", response_model=list[TradeResponse])
async def list_trades(
    branch_id: UUID | None = Query(None, description="Only trades of this branch"),
    db: AsyncSession = Depends(get_db),
):
    return await repository.list_trades(db, branch_id)


@router.get("/document-types", response_model=list[DocumentTypeResponse])
async def list_document_types(db: AsyncSession = Depends(get_db)):
    """Active document types in display order."""
    document_types = await repository.list_document_types(db)
    return [DocumentTypeResponse.model_validate(dt) for dt in document_types]


@router.get("/fee-structure", response_model=FeeStructureResponse)
async def get_fee_structure(
    trade_id: UUID = Query(..., description="Trade whose fee schedule to return"),
    db: AsyncSession = Depends(get_db),
) -> FeeStructureResponse:
    items = await repository.list_fee_items(db, trade_id)
    return FeeStructureResponse(
        trade_id=trade_id,
        items=[FeeItemResponse.model_validate(item) for item in items],
        total_amount=fee_total(items, trade_id),
    )
