"""
Master Data Repository

Queries over the catalogue tables. Applicants only read active rows;
administrators see everything and maintain the geography tables.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.modules.admissions.models import StudentApplication
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


async def list_countries(db: AsyncSession) -> list[Country]:
    result = await db.execute(
        select(Country).where(Country.is_active.is_(True)).order_by(Country.name)
    )
    return list(result.scalars().all())


async def list_states(db: AsyncSession, country_id: UUID) -> list[State]:
    result = await db.execute(
        select(State)
        .where(State.country_id == country_id, State.is_active.is_(True))
        .order_by(State.name)
    )
    return list(result.scalars().all())


async def list_cities(db: AsyncSession, state_id: UUID) -> list[City]:
    result = await db.execute(
        select(City).where(City.state_id == state_id, City.is_active.is_(True)).order_by(City.name)
    )
    return list(result.scalars().all())


async def list_colleges(db: AsyncSession) -> list[College]:
    result = await db.execute(
        select(College).where(College.is_active.is_(True)).order_by(College.name)
    )
    return list(result.scalars().all())


async def list_branches(db: AsyncSession) -> list[Branch]:
    result = await db.execute(
        select(Branch).where(Branch.is_active.is_(True)).order_by(Branch.name)
    )
    return list(result.scalars().all())


async def list_trades(db: AsyncSession, branch_id: UUID | None = None) -> list[Trade]:
    query = select(Trade).where(Trade.is_active.is_(True))
    if branch_id is not None:
        query = query.where(Trade.branch_id == branch_id)
    result = await db.execute(query.order_by(Trade.name))
    return list(result.scalars().all())


async def list_document_types(db: AsyncSession) -> list[DocumentType]:
    result = await db.execute(
        select(DocumentType)
        .where(DocumentType.is_active.is_(True))
        .order_by(DocumentType.sort_order, DocumentType.name)
    )
    return list(result.scalars().all())


async def get_document_type(db: AsyncSession, document_type_id: UUID) -> DocumentType | None:
    return await db.get(DocumentType, document_type_id)


async def list_fee_items(db: AsyncSession, trade_id: UUID) -> list[FeeItem]:
    """Active fee items for a trade."""
    result = await db.execute(
        select(FeeItem)
        .where(FeeItem.trade_id == trade_id, FeeItem.is_active.is_(True))
        .order_by(FeeItem.fee_type)
    )
    return list(result.scalars().all())


async def get_names(
    db: AsyncSession,
    *,
    country_id: UUID | None = None,
    state_id: UUID | None = None,
    city_id: UUID | None = None,
    college_id: UUID | None = None,
    branch_id: UUID | None = None,
    trade_id: UUID | None = None,
) -> dict[str, str | None]:
    """Resolve display names for the ids on a profile."""
    lookups = {
        "country_name": (Country, country_id),
        "state_name": (State, state_id),
        "city_name": (City, city_id),
        "college_name": (College, college_id),
        "branch_name": (Branch, branch_id),
        "trade_name": (Trade, trade_id),
    }
    names: dict[str, str | None] = {}
    for key, (model, entity_id) in lookups.items():
        entity = await db.get(model, entity_id) if entity_id else None
        names[key] = entity.name if entity else None
    return names


# ============================================
# Admin
# ============================================


async def list_all(db: AsyncSession, model: type, *order_by: Any) -> list[Any]:
    """Every row of a catalogue table, active or not."""
    result = await db.execute(select(model).order_by(*order_by))
    return list(result.scalars().all())


async def get_entity(db: AsyncSession, model: type, entity_id: UUID) -> Any | None:
    return await db.get(model, entity_id)


async def add(db: AsyncSession, entity: Any) -> Any:
    db.add(entity)
    await db.commit()
    await db.refresh(entity)
    return entity


async def save(db: AsyncSession, entity: Any) -> Any:
    await db.commit()
    await db.refresh(entity)
    return entity


async def delete(db: AsyncSession, entity: Any) -> None:
    await db.delete(entity)
    await db.commit()


def _count(model: type, column: Any, parent_id: Any) -> Any:
    return select(func.count(model.id)).where(column == parent_id).scalar_subquery()


async def count_references(db: AsyncSession, model: type, column: Any, parent_id: UUID) -> int:
    """Rows of ``model`` whose ``column`` points at ``parent_id``."""
    result = await db.execute(select(func.count(model.id)).where(column == parent_id))
    return result.scalar() or 0


async def list_countries_with_counts(db: AsyncSession) -> list[tuple[Country, int, int]]:
    """All countries with the number of applications and states referencing each."""
    result = await db.execute(
        select(
            Country,
            _count(StudentApplication, StudentApplication.country_id, Country.id),
            _count(State, State.country_id, Country.id),
        ).order_by(Country.name)
    )
    return [(row[0], row[1], row[2]) for row in result.all()]


async def list_states_with_counts(
    db: AsyncSession, country_id: UUID | None = None
) -> list[tuple[State, int, int]]:
    query = select(
        State,
        _count(StudentApplication, StudentApplication.state_id, State.id),
        _count(City, City.state_id, State.id),
    )
    if country_id is not None:
        query = query.where(State.country_id == country_id)
    result = await db.execute(query.order_by(State.name))
    return [(row[0], row[1], row[2]) for row in result.all()]


async def list_cities_with_counts(
    db: AsyncSession, state_id: UUID | None = None
) -> list[tuple[City, int]]:
    query = select(City, _count(StudentApplication, StudentApplication.city_id, City.id))
    if state_id is not None:
        query = query.where(City.state_id == state_id)
    result = await db.execute(query.order_by(City.name))
    return [(row[0], row[1]) for row in result.all()]
