"""End-to-end record workflow against SQLite."""

import pytest

from entityforge import SearchOptions
from entityforge.exceptions import ConcurrencyConflictError, RecordNotFoundError
from sample_models import Address, Product, Shop


def _address(**values) -> Address:
    defaults = {
        "id": 1,
        "street": "Main St.",
        "city": "New York",
        "latitude": 0.0,
        "longitude": 0.0,
    }
    defaults.update(values)
    return Address(**defaults)


@pytest.mark.asyncio
class TestRecordWorkflow:
    """Create, read, update through EntityForge with the SQL data source."""

    async def test_get_record(self, sql_forge):
        record = await sql_forge.get_record("Address", 5)
        assert record.street == "Central"

    async def test_get_missing_record(self, sql_forge):
        with pytest.raises(RecordNotFoundError):
            await sql_forge.get_record("Address", 99)

    async def test_get_record_with_navigation(self, sql_forge, sql_source):
        """Included navigations are loaded with the record."""
        async with sql_source.session_factory() as session:
            session.add(Shop(id=1, name="Corner Books", address_id=1))
            session.add(Product(id=1, name="Atlas", price=20, shop_id=1))
            await session.commit()

        shop = await sql_forge.get_record("Shop", 1)
        assert [p.name for p in shop.products] == ["Atlas"]

    async def test_create_then_search(self, sql_forge):
        result = await sql_forge.create_record("Address", _address(id=7, street="Harbour Rd."))
        assert result.is_valid

        page = await sql_forge.search_data("Address", SearchOptions(search_string="harbour"))
        assert [r["id"] for r in page.items] == [7]
        everything = await sql_forge.search_data("Address")
        assert everything.total_count == 7

    async def test_create_invalid(self, sql_forge):
        result = await sql_forge.create_record("Address", _address(id=7, city=None))
        assert [e.field for e in result.errors] == ["city"]
        assert (await sql_forge.search_data("Address")).total_count == 6

    async def test_update(self, sql_forge):
        original = await sql_forge.get_record("Address", 1)
        updated = _address(street="Broadway")

        result = await sql_forge.update_record("Address", updated, original)
        assert result.is_valid
        assert result.record.street == "Broadway"

        reloaded = await sql_forge.get_record("Address", 1)
        assert reloaded.street == "Broadway"

    async def test_update_conflict(self, sql_forge):
        """A second editor working from the same read loses."""
        first_read = await sql_forge.get_record("Address", 1)
        second_read = await sql_forge.get_record("Address", 1)

        await sql_forge.update_record("Address", _address(street="Broadway"), first_read)
        with pytest.raises(ConcurrencyConflictError) as exc_info:
            await sql_forge.update_record("Address", _address(city="Boston"), second_read)
        assert exc_info.value.primary_key == 1

        reloaded = await sql_forge.get_record("Address", 1)
        assert (reloaded.street, reloaded.city) == ("Broadway", "New York")

    async def test_update_read_only(self, sql_forge):
        original = await sql_forge.get_record("Address", 2)
        updated = _address(id=2, street="Main Square St.", city="London", latitude=1.5)
        result = await sql_forge.update_record("Address", updated, original)
        assert [e.field for e in result.errors] == ["latitude"]
