from decimal import Decimal

import pytest
from unittest.mock import AsyncMock, MagicMock

from app.core.errors import NotFoundError, ValidationError
from app.events.event_names import EventNames
from app.models.inventory import AdjustmentType
from app.services.inventory_service import AdjustStock, AdjustStockCommand

STORE_ID = 1


class TestAdjustStock:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -1, -0.5])
    async def test_non_positive_quantity_fails_before_persistence(self, quantity):
        repo = AsyncMock()
        use_case = AdjustStock(repo, MagicMock())

        with pytest.raises(ValidationError):
            await use_case.execute(STORE_ID, AdjustStockCommand(ingredient_id=1, type=AdjustmentType.ADDITION, quantity=quantity))

        repo.find_by_id.assert_not_awaited()
        repo.adjust_stock.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_ingredient(self, services, bakery):
        with pytest.raises(NotFoundError):
            await services.inventory.adjust_stock(
                STORE_ID, AdjustStockCommand(ingredient_id=999, type=AdjustmentType.ADDITION, quantity=1)
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("adj_type,expected", [
        (AdjustmentType.ADDITION, 13.0),
        (AdjustmentType.ADJUSTMENT, 13.0),
        (AdjustmentType.USAGE, 7.0),
    ])
    async def test_direction_comes_from_type(self, services, bakery, adj_type, expected):
        ingredient = await services.inventory.adjust_stock(
            STORE_ID, AdjustStockCommand(ingredient_id=bakery["flour"].id, type=adj_type, quantity=3)
        )
        assert ingredient.quantity == pytest.approx(expected)

    @pytest.mark.asyncio
    async def test_usage_beyond_stock_is_rejected(self, services, bakery, repos):
        with pytest.raises(ValidationError):
            await services.inventory.adjust_stock(
                STORE_ID, AdjustStockCommand(ingredient_id=bakery["flour"].id, type=AdjustmentType.USAGE, quantity=11)
            )
        assert "adjust_stock" not in repos.inventory.calls
        assert repos.inventory.rows[bakery["flour"].id].quantity == pytest.approx(10.0)

    @pytest.mark.asyncio
    async def test_every_adjustment_is_logged(self, services, bakery):
        await services.inventory.adjust_stock(STORE_ID, AdjustStockCommand(
            ingredient_id=bakery["flour"].id, type=AdjustmentType.ADDITION, quantity=5, reason="delivery"
        ))
        [entry] = await services.inventory.get_log(STORE_ID, bakery["flour"].id)
        assert entry.type == AdjustmentType.ADDITION
        assert entry.quantity == 5
        assert entry.reason == "delivery"


class TestLowStockSignal:
    @pytest.mark.asyncio
    async def test_crossing_threshold_emits_exactly_one_event(self, services, bakery, event_bus, recorder):
        await services.inventory.adjust_stock(
            STORE_ID,
            AdjustStockCommand(ingredient_id=bakery["flour"].id, type=AdjustmentType.USAGE, quantity=8),
            correlation_id="req-low",
        )
        await event_bus.drain()

        [event] = recorder.named(EventNames.INVENTORY_LOW_STOCK)
        assert event.payload == {
            "storeId": STORE_ID,
            "ingredientId": bakery["flour"].id,
            "itemName": "Flour",
            "currentQuantity": pytest.approx(2.0),
            "threshold": 2.0,
            "unit": "kg",
        }
        assert event.correlation_id == "req-low"

    @pytest.mark.asyncio
    async def test_suppressed_adjustment_emits_nothing(self, services, bakery, event_bus, recorder):
        await services.inventory.adjust_stock(STORE_ID, AdjustStockCommand(
            ingredient_id=bakery["flour"].id, type=AdjustmentType.USAGE, quantity=9, suppress_event=True
        ))
        await event_bus.drain()
        assert recorder.named(EventNames.INVENTORY_LOW_STOCK) == []

    @pytest.mark.asyncio
    async def test_above_threshold_emits_nothing(self, services, bakery, event_bus, recorder):
        await services.inventory.adjust_stock(STORE_ID, AdjustStockCommand(
            ingredient_id=bakery["flour"].id, type=AdjustmentType.USAGE, quantity=1
        ))
        await event_bus.drain()
        assert recorder.events == []

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_fail_the_adjustment(self, services, bakery, event_bus):
        def broken(event):
            raise RuntimeError("mail server down")
        event_bus.subscribe(EventNames.INVENTORY_LOW_STOCK, broken)

        ingredient = await services.inventory.adjust_stock(STORE_ID, AdjustStockCommand(
            ingredient_id=bakery["flour"].id, type=AdjustmentType.USAGE, quantity=9
        ))
        await event_bus.drain()
        assert ingredient.quantity == pytest.approx(1.0)


class TestIngredientCrud:
    @pytest.mark.asyncio
    async def test_low_stock_listing(self, services, bakery, repos):
        repos.inventory.rows[bakery["eggs"].id].quantity = 6.0
        low = await services.inventory.list_low_stock(STORE_ID)
        assert [i.name for i in low] == ["Eggs"]

    @pytest.mark.asyncio
    async def test_quantity_is_not_directly_patchable(self, services, bakery):
        with pytest.raises(ValidationError):
            await services.inventory.update_ingredient(STORE_ID, bakery["flour"].id, {"quantity": 100})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["name", "unit", "cost_per_unit", "low_stock_threshold"])
    async def test_required_fields_cannot_be_cleared(self, services, bakery, repos, field):
        with pytest.raises(ValidationError):
            await services.inventory.update_ingredient(STORE_ID, bakery["flour"].id, {field: None})
        assert "update" not in repos.inventory.calls

    @pytest.mark.asyncio
    async def test_optional_fields_can_be_cleared(self, services, bakery):
        await services.inventory.update_ingredient(STORE_ID, bakery["flour"].id, {"supplier": "Mill Co"})
        updated = await services.inventory.update_ingredient(STORE_ID, bakery["flour"].id, {"supplier": None})
        assert updated.supplier is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("patch", [{"name": "   "}, {"cost_per_unit": Decimal("-1")}, {"low_stock_threshold": -0.5}])
    async def test_invalid_patch_values(self, services, bakery, patch):
        with pytest.raises(ValidationError):
            await services.inventory.update_ingredient(STORE_ID, bakery["flour"].id, patch)

    @pytest.mark.asyncio
    async def test_patched_name_is_trimmed(self, services, bakery):
        updated = await services.inventory.update_ingredient(STORE_ID, bakery["flour"].id, {"name": "  Rye flour  "})
        assert updated.name == "Rye flour"

    @pytest.mark.asyncio
    async def test_update_and_delete(self, services, bakery):
        updated = await services.inventory.update_ingredient(STORE_ID, bakery["flour"].id, {"supplier": "Mill Co"})
        assert updated.supplier == "Mill Co"

        await services.inventory.delete_ingredient(STORE_ID, bakery["flour"].id)
        with pytest.raises(NotFoundError):
            await services.inventory.get_ingredient(STORE_ID, bakery["flour"].id)

    @pytest.mark.asyncio
    async def test_create_rejects_negative_stock(self, services):
        with pytest.raises(ValidationError):
            await services.inventory.create_ingredient(STORE_ID, "Sugar", "kg", quantity=-1)
