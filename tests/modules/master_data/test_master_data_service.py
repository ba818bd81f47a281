"""
Tests for master data administration.

These tests cover:
- The all-rows admin view per catalogue table
- Creating and updating countries, states and cities
- Refusing to delete geography still in use
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from admission_portal.modules.admissions.models import StudentApplication
from admission_portal.modules.master_data.models import City, College, Country, DocumentType, State
from admission_portal.modules.master_data.schemas import (
    CityRequest,
    CountryRequest,
    StateRequest,
)
from admission_portal.modules.master_data.service import (
    InUseError,
    MasterDataKind,
    MasterNotFoundError,
    admin_list,
    create_city,
    create_country,
    create_state,
    delete_city,
    delete_country,
    delete_state,
    update_country,
)

SERVICE = "admission_portal.modules.master_data.service"


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    return db


@pytest.fixture
def country():
    country = MagicMock(spec=Country)
    country.id = uuid4()
    country.name = "India"
    country.code = "IN"
    country.is_active = True
    return country


# ============================================
# Admin view
# ============================================


@pytest.mark.asyncio
async def test_admin_list_orders_document_types(mock_db):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.list_all = AsyncMock(return_value=[])

        await admin_list(mock_db, MasterDataKind.DOCUMENT_TYPES)

        model, *order_by = mock_repo.list_all.call_args.args[1:]
        assert model is DocumentType
        assert [column.key for column in order_by] == ["sort_order", "name"]


@pytest.mark.parametrize("kind", list(MasterDataKind))
@pytest.mark.asyncio
async def test_admin_list_covers_every_kind(mock_db, kind):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.list_all = AsyncMock(return_value=["row"])
        assert await admin_list(mock_db, kind) == ["row"]


# ============================================
# Countries
# ============================================


@pytest.mark.asyncio
async def test_create_country(mock_db):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.add = AsyncMock(side_effect=lambda db, entity: entity)

        country = await create_country(mock_db, CountryRequest(name="India", code="IN"))

        assert isinstance(country, Country)
        assert country.name == "India"
        assert country.is_active is True


@pytest.mark.asyncio
async def test_update_country(mock_db, country):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_entity = AsyncMock(return_value=country)
        mock_repo.save = AsyncMock(side_effect=lambda db, entity: entity)

        updated = await update_country(
            mock_db, country.id, CountryRequest(name="Bharat", code="IN", is_active=False)
        )

        assert updated.name == "Bharat"
        assert updated.is_active is False


@pytest.mark.asyncio
async def test_update_missing_country(mock_db):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_entity = AsyncMock(return_value=None)

        with pytest.raises(MasterNotFoundError) as exc_info:
            await update_country(mock_db, uuid4(), CountryRequest(name="X", code="X"))

        assert exc_info.value.status_code == 404
        assert exc_info.value.error_code == "COUNTRY_NOT_FOUND"


@pytest.mark.asyncio
async def test_delete_unused_country(mock_db, country):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_entity = AsyncMock(return_value=country)
        mock_repo.count_references = AsyncMock(return_value=0)
        mock_repo.delete = AsyncMock()

        await delete_country(mock_db, country.id)

        mock_repo.delete.assert_awaited_once_with(mock_db, country)
        checked = [call.args[1] for call in mock_repo.count_references.call_args_list]
        assert checked == [StudentApplication, State]


@pytest.mark.asyncio
async def test_delete_country_with_students(mock_db, country):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_entity = AsyncMock(return_value=country)
        mock_repo.count_references = AsyncMock(return_value=3)
        mock_repo.delete = AsyncMock()

        with pytest.raises(InUseError) as exc_info:
            await delete_country(mock_db, country.id)

        assert exc_info.value.status_code == 409
        assert "students" in exc_info.value.message
        mock_repo.delete.assert_not_called()


# ============================================
# States and cities
# ============================================


@pytest.mark.asyncio
async def test_create_state_requires_country(mock_db):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_entity = AsyncMock(return_value=None)
        mock_repo.add = AsyncMock()

        with pytest.raises(MasterNotFoundError):
            await create_state(
                mock_db, StateRequest(country_id=uuid4(), name="Kerala", code="KL")
            )

        mock_repo.add.assert_not_called()


@pytest.mark.asyncio
async def test_create_state(mock_db, country):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_entity = AsyncMock(return_value=country)
        mock_repo.add = AsyncMock(side_effect=lambda db, entity: entity)

        state = await create_state(
            mock_db, StateRequest(country_id=country.id, name="Kerala", code="KL")
        )

        assert state.country_id == country.id


@pytest.mark.asyncio
async def test_delete_state_with_cities(mock_db):
    state = MagicMock(spec=State)
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_entity = AsyncMock(return_value=state)
        mock_repo.count_references = AsyncMock(side_effect=[0, 2])
        mock_repo.delete = AsyncMock()

        with pytest.raises(InUseError) as exc_info:
            await delete_state(mock_db, uuid4())

        assert "cities" in exc_info.value.message
        mock_repo.delete.assert_not_called()


@pytest.mark.asyncio
async def test_create_city(mock_db):
    state = MagicMock(spec=State)
    state_id = uuid4()
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_entity = AsyncMock(return_value=state)
        mock_repo.add = AsyncMock(side_effect=lambda db, entity: entity)

        city = await create_city(mock_db, CityRequest(state_id=state_id, name="Kochi"))

        assert isinstance(city, City)
        assert city.state_id == state_id


@pytest.mark.asyncio
async def test_delete_city_referenced_by_college(mock_db):
    city = MagicMock(spec=City)
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_entity = AsyncMock(return_value=city)
        mock_repo.count_references = AsyncMock(side_effect=[0, 1])
        mock_repo.delete = AsyncMock()

        with pytest.raises(InUseError) as exc_info:
            await delete_city(mock_db, uuid4())

        assert "colleges" in exc_info.value.message
        assert mock_repo.count_references.call_args.args[1] is College
