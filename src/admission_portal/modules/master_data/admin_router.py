"""
Master Data Admin Router

Endpoints:
- GET    /admin/master/{kind} - Every row of a catalogue table, inactive included
- GET    /admin/countries - Countries with student and state counts
- POST   /admin/countries - Create a country
- PUT    /admin/countries/{id} - Update a country
- DELETE /admin/countries/{id} - Delete an unreferenced country
- GET/POST /admin/states, PUT/DELETE /admin/states/{id} - Same for states
- GET/POST /admin/cities, PUT/DELETE /admin/cities/{id} - Same for cities
"""

import logging
from typing import Any, NoReturn
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.auth import CurrentUser, get_current_admin_user
from admission_portal.core.database import get_db
from admission_portal.modules.master_data import service
from admission_portal.modules.master_data.schemas import (
    BranchAdminResponse,
    CityAdminResponse,
    CityRequest,
    CollegeAdminResponse,
    CountryAdminResponse,
    CountryRequest,
    DocumentTypeAdminResponse,
    FeeItemAdminResponse,
    StateAdminResponse,
    StateRequest,
    TradeAdminResponse,
)
from admission_portal.modules.master_data.service import MasterDataError, MasterDataKind

logger = logging.getLogger(__name__)

router = APIRouter()

_ADMIN_SCHEMAS: dict[MasterDataKind, type[BaseModel]] = {
    MasterDataKind.COUNTRIES: CountryAdminResponse,
    MasterDataKind.STATES: StateAdminResponse,
    MasterDataKind.CITIES: CityAdminResponse,
    MasterDataKind.COLLEGES: CollegeAdminResponse,
    MasterDataKind.BRANCHES: BranchAdminResponse,
    MasterDataKind.TRADES: TradeAdminResponse,
    MasterDataKind.DOCUMENT_TYPES: DocumentTypeAdminResponse,
    MasterDataKind.FEES: FeeItemAdminResponse,
}


def _raise(e: MasterDataError) -> NoReturn:
    raise HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    ) from e


@router.get("/master/{kind}", summary="Master Data (Admin View)")
async def get_master_data(
    kind: MasterDataKind,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> list[dict[str, Any]]:
    rows = await service.admin_list(db, kind)
    schema = _ADMIN_SCHEMAS[kind]
    return [schema.model_validate(row).model_dump(mode="json") for row in rows]


# ============================================
# Countries
# ============================================


@router.get("/countries", response_model=list[CountryAdminResponse])
async def list_countries(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> list[CountryAdminResponse]:
    rows = await service.list_countries(db)
    return [
        CountryAdminResponse.model_validate(country).model_copy(
            update={"student_count": students, "state_count": states}
        )
        for country, students, states in rows
    ]


@router.post(
    "/countries",
    response_model=CountryAdminResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_country(
    data: CountryRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> CountryAdminResponse:
    country = await service.create_country(db, data)
    logger.info(f"Admin {admin.id} created country {country.id}")
    return CountryAdminResponse.model_validate(country)


@router.put("/countries/{country_id}", response_model=CountryAdminResponse)
async def update_country(
    country_id: UUID,
    data: CountryRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> CountryAdminResponse:
    try:
        country = await service.update_country(db, country_id, data)
    except MasterDataError as e:
        _raise(e)
    return CountryAdminResponse.model_validate(country)


@router.delete("/countries/{country_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_country(
    country_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> Response:
    try:
        await service.delete_country(db, country_id)
    except MasterDataError as e:
        logger.warning(f"Admin {admin.id} could not delete country {country_id}: {e.message}")
        _raise(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================
# States
# ============================================


@router.get("/states", response_model=list[StateAdminResponse])
async def list_states(
    country_id: UUID | None = Query(None, description="Only states of this country"),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> list[StateAdminResponse]:
    rows = await service.list_states(db, country_id)
    return [
        StateAdminResponse.model_validate(state).model_copy(
            update={"student_count": students, "city_count": cities}
        )
        for state, students, cities in rows
    ]


@router.post("/states", response_model=StateAdminResponse, status_code=status.HTTP_201_CREATED)
async def create_state(
    data: StateRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> StateAdminResponse:
    try:
        state = await service.create_state(db, data)
    except MasterDataError as e:
        _raise(e)
    logger.info(f"Admin {admin.id} created state {state.id}")
    return StateAdminResponse.model_validate(state)


@router.put("/states/{state_id}", response_model=StateAdminResponse)
async def update_state(
    state_id: UUID,
    data: StateRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> StateAdminResponse:
    try:
        state = await service.update_state(db, state_id, data)
    except MasterDataError as e:
        _raise(e)
    return StateAdminResponse.model_validate(state)


@router.delete("/states/{state_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_state(
    state_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> Response:
    try:
        await service.delete_state(db, state_id)
    except MasterDataError as e:
        logger.warning(f"Admin {admin.id} could not delete state {state_id}: {e.message}")
        _raise(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================
# Cities
# ============================================


@router.get("/cities", response_model=list[CityAdminResponse])
async def list_cities(
    state_id: UUID | None = Query(None, description="Only cities of this state"),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> list[CityAdminResponse]:
    rows = await service.list_cities(db, state_id)
    return [
        CityAdminResponse.model_validate(city).model_copy(update={"student_count": students})
        for city, students in rows
    ]


@router.post("/cities", response_model=CityAdminResponse, status_code=status.HTTP_201_CREATED)
async def create_city(
    data: CityRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> CityAdminResponse:
    try:
        city = await service.create_city(db, data)
    except MasterDataError as e:
        _raise(e)
    logger.info(f"Admin {admin.id} created city {city.id}")
    return CityAdminResponse.model_validate(city)


@router.put("/cities/{city_id}", response_model=CityAdminResponse)
async def update_city(
    city_id: UUID,
    data: CityRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> CityAdminResponse:
    try:
        city = await service.update_city(db, city_id, data)
    except MasterDataError as e:
        _raise(e)
    return CityAdminResponse.model_validate(city)


@router.delete("/cities/{city_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_city(
    city_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> Response:
    try:
        await service.delete_city(db, city_id)
    except MasterDataError as e:
        logger.warning(f"Admin {admin.id} could not delete city {city_id}: {e.message}")
        _raise(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
