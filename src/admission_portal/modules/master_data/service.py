"""
Master Data Service

Administrative view of every catalogue table and maintenance of the
country, state and city hierarchy. A geography row that applications or
child rows still reference cannot be deleted.
"""

import enum
import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.modules.admissions.models import StudentApplication
from admission_portal.modules.master_data import repository
from admission_portal.modules.master_data.models import (
    Branch,
    City,
    College,
    Country,
    DocumentType,
    FeeItem,
    State,
    Trade,
)
from admission_portal.modules.master_data.schemas import CityRequest, CountryRequest, StateRequest

logger = logging.getLogger(__name__)


class MasterDataKind(str, enum.Enum):
    COUNTRIES = "countries"
    STATES = "states"
    CITIES = "cities"
    COLLEGES = "colleges"
    BRANCHES = "branches"
    TRADES = "trades"
    DOCUMENT_TYPES = "document-types"
    FEES = "fees"


_ORDERING: dict[MasterDataKind, tuple[type, tuple[Any, ...]]] = {
    MasterDataKind.COUNTRIES: (Country, (Country.name,)),
    MasterDataKind.STATES: (State, (State.name,)),
    MasterDataKind.CITIES: (City, (City.name,)),
    MasterDataKind.COLLEGES: (College, (College.name,)),
    MasterDataKind.BRANCHES: (Branch, (Branch.name,)),
    MasterDataKind.TRADES: (Trade, (Trade.name,)),
    MasterDataKind.DOCUMENT_TYPES: (DocumentType, (DocumentType.sort_order, DocumentType.name)),
    MasterDataKind.FEES: (FeeItem, (FeeItem.fee_type,)),
}


class MasterDataError(Exception):
    """Base exception for master data errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class MasterNotFoundError(MasterDataError):
    def __init__(self, entity: str, entity_id: UUID):
        super().__init__(
            f"{entity} {entity_id} not found",
            f"{entity.upper()}_NOT_FOUND",
            404,
        )


class InUseError(MasterDataError):
    """Raised when deleting a row that is still referenced."""

    def __init__(self, entity: str, referenced_by: str):
        super().__init__(
            f"Cannot delete {entity}: {referenced_by} are registered under it.",
            "IN_USE",
            409,
        )


async def admin_list(db: AsyncSession, kind: MasterDataKind) -> list[Any]:
    model, order_by = _ORDERING[kind]
    return await repository.list_all(db, model, *order_by)


async def _get(db: AsyncSession, model: type, entity_id: UUID) -> Any:
    entity = await repository.get_entity(db, model, entity_id)
    if entity is None:
        raise MasterNotFoundError(model.__name__, entity_id)
    return entity


async def _ensure_unreferenced(
    db: AsyncSession, entity: str, checks: list[tuple[type, Any, str]], entity_id: UUID
) -> None:
    for model, column, label in checks:
        if await repository.count_references(db, model, column, entity_id) > 0:
            raise InUseError(entity, label)


# ============================================
# Countries
# ============================================


async def list_countries(db: AsyncSession) -> list[tuple[Country, int, int]]:
    return await repository.list_countries_with_counts(db)


async def create_country(db: AsyncSession, data: CountryRequest) -> Country:
    country = await repository.add(db, Country(**data.model_dump()))
    logger.info(f"Created country {country.id} ({country.name})")
    return country


async def update_country(db: AsyncSession, country_id: UUID, data: CountryRequest) -> Country:
    country = await _get(db, Country, country_id)
    for field, value in data.model_dump().items():
        setattr(country, field, value)
    return await repository.save(db, country)


async def delete_country(db: AsyncSession, country_id: UUID) -> None:
    """
    Raises:
        MasterNotFoundError: If the country does not exist
        InUseError: If applications or states reference it
    """
    country = await _get(db, Country, country_id)
    await _ensure_unreferenced(
        db,
        "country",
        [
            (StudentApplication, StudentApplication.country_id, "students"),
            (State, State.country_id, "states"),
        ],
        country_id,
    )
    await repository.delete(db, country)
    logger.info(f"Deleted country {country_id}")


# ============================================
# States
# ============================================


async def list_states(
    db: AsyncSession, country_id: UUID | None = None
) -> list[tuple[State, int, int]]:
    return await repository.list_states_with_counts(db, country_id)


async def create_state(db: AsyncSession, data: StateRequest) -> State:
    await _get(db, Country, data.country_id)
    state = await repository.add(db, State(**data.model_dump()))
    logger.info(f"Created state {state.id} ({state.name})")
    return state


async def update_state(db: AsyncSession, state_id: UUID, data: StateRequest) -> State:
    state = await _get(db, State, state_id)
    await _get(db, Country, data.country_id)
    for field, value in data.model_dump().items():
        setattr(state, field, value)
    return await repository.save(db, state)


async def delete_state(db: AsyncSession, state_id: UUID) -> None:
    state = await _get(db, State, state_id)
    await _ensure_unreferenced(
        db,
        "state",
        [
            (StudentApplication, StudentApplication.state_id, "students"),
            (City, City.state_id, "cities"),
        ],
        state_id,
    )
    await repository.delete(db, state)
    logger.info(f"Deleted state {state_id}")


# ============================================
# Cities
# ============================================


async def list_cities(db: AsyncSession, state_id: UUID | None = None) -> list[tuple[City, int]]:
    return await repository.list_cities_with_counts(db, state_id)


async def create_city(db: AsyncSession, data: CityRequest) -> City:
    await _get(db, State, data.state_id)
    city = await repository.add(db, City(**data.model_dump()))
    logger.info(f"Created city {city.id} ({city.name})")
    return city


async def update_city(db: AsyncSession, city_id: UUID, data: CityRequest) -> City:
    city = await _get(db, City, city_id)
    await _get(db, State, data.state_id)
    for field, value in data.model_dump().items():
        setattr(city, field, value)
    return await repository.save(db, city)


async def delete_city(db: AsyncSession, city_id: UUID) -> None:
    city = await _get(db, City, city_id)
    await _ensure_unreferenced(
        db,
        "city",
        [
            (StudentApplication, StudentApplication.city_id, "students"),
            (College, College.city_id, "colleges"),
        ],
        city_id,
    )
    await repository.delete(db, city)
    logger.info(f"Deleted city {city_id}")
