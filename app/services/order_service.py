import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from app.core.errors import AppError, ConflictError, NotFoundError, ValidationError
from app.events.event_bus import DomainEvent, EventBus
from app.events.event_names import EventNames
from app.models.inventory import AdjustmentType
from app.models.order import Order, OrderStatus
from app.services.inventory_service import AdjustStockCommand, InventoryService
from app.services.order_status import StatusChange, UpdateOrderStatus
from app.services.units import conversion_factor

log = logging.getLogger("order_service")

PATCHABLE_FIELDS = {"notes", "due_date", "customer_id"}


class OrderService:
    """
    Order lifecycle: creation, patching, status transitions and deletion.

    Inventory consumption and event publication happen after the order row has
    been written; their failures are logged and never undo the order change.
    """

    def __init__(self, order_repository, recipe_repository, customer_repository,
                 inventory_service: InventoryService, event_bus: EventBus):
        self._orders = order_repository
        self._recipes = recipe_repository
        self._customers = customer_repository
        self._inventory = inventory_service
        self._bus = event_bus
        self._update_status = UpdateOrderStatus(order_repository)

    async def create_order(
        self,
        store_id: int,
        items: List[Dict[str, Any]],
        customer_id: Optional[int] = None,
        notes: Optional[str] = None,
        due_date: Optional[date] = None,
        recurring_group_id: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> Order:
        if not items:
            raise ValidationError("An order needs at least one item")
        for it in items:
            if int(it.get("quantity") or 0) <= 0:
                raise ValidationError("Item quantity must be positive")

        customer = None
        if customer_id is not None:
            customer = await self._customers.find_by_id(store_id, customer_id)
            if customer is None:
                raise NotFoundError("Customer not found")

        recipe_ids = list({int(it["recipe_id"]) for it in items})
        recipes = await self._recipes.find_many(store_id, recipe_ids)
        recipe_map = {r.id: r for r in recipes}

        lines = []
        total = Decimal("0")
        for it in items:
            recipe = recipe_map.get(int(it["recipe_id"]))
            if recipe is None:
                raise NotFoundError(f"Recipe {it['recipe_id']} not found")

            unit_price = _to_decimal(it.get("unit_price"), default=recipe.selling_price)
            qty = int(it["quantity"])
            total += unit_price * qty
            lines.append({
                "recipe_id": recipe.id,
                "quantity": qty,
                "unit_price": unit_price,
                "notes": it.get("notes"),
            })

        order = await self._orders.create(
            store_id,
            customer_id,
            lines,
            total,
            notes=notes,
            due_date=due_date,
            recurring_group_id=recurring_group_id,
        )
        log.info(f"Order #{order.order_number} created for store {store_id} (total {total}).")

        self._publish(EventNames.ORDER_CREATED, {
            "storeId": store_id,
            "orderId": order.id,
            "orderNumber": order.order_number,
            "customerId": customer_id,
            "customerName": customer.name if customer else None,
            "totalAmount": str(total),
            "itemCount": sum(line["quantity"] for line in lines),
            "dueDate": due_date.isoformat() if due_date else None,
        }, correlation_id)
        return order

    async def get_order(self, store_id: int, order_id: int) -> Order:
        order = await self._orders.find_by_id(store_id, order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    async def list_orders(self, store_id: int, status: Optional[OrderStatus] = None) -> List[Order]:
        return await self._orders.list(store_id, status)

    async def update_order(self, store_id: int, order_id: int, patch: Dict[str, Any]) -> Order:
        """Applies only notes, due_date and customer_id. Items and total stay as created."""
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        await self.get_order(store_id, order_id)
        fields = {}
        for name in PATCHABLE_FIELDS:
            if name in patch:
                fields[name] = patch[name]
        if fields.get("customer_id") is not None:
            if await self._customers.find_by_id(store_id, fields["customer_id"]) is None:
                raise NotFoundError("Customer not found")

        return await self._orders.update(store_id, order_id, fields)

    async def update_status(
        self,
        store_id: int,
        order_id: int,
        new_status: OrderStatus,
        correlation_id: Optional[str] = None,
    ) -> StatusChange:
        change = await self._update_status.execute(store_id, order_id, new_status)

        if change.previous_status == OrderStatus.IN_PROGRESS and change.new_status == OrderStatus.READY:
            await self._move_ingredients(store_id, change.order, AdjustmentType.USAGE, correlation_id)
        elif change.previous_status == OrderStatus.READY and change.new_status == OrderStatus.IN_PROGRESS:
            await self._move_ingredients(store_id, change.order, AdjustmentType.ADDITION, correlation_id)

        self._publish(EventNames.ORDER_STATUS_CHANGED, {
            "storeId": store_id,
            "orderId": change.order.id,
            "orderNumber": change.order.order_number,
            "previousStatus": change.previous_status.label,
            "newStatus": change.new_status.label,
        }, correlation_id)
        return change

    async def delete_order(self, store_id: int, order_id: int) -> None:
        order = await self.get_order(store_id, order_id)
        if order.status != OrderStatus.RECEIVED:
            raise ValidationError(
                f'Only received orders can be deleted; order is "{OrderStatus(order.status).label}"'
            )
        if not await self._orders.delete(store_id, order_id):
            log.warning(f"Order {order_id} left the received status before it could be deleted.")
            raise ConflictError(
                "Order status changed concurrently, reload and retry",
                data={"orderId": order_id, "expectedStatus": OrderStatus.RECEIVED.label},
            )
        log.info(f"Order {order_id} deleted from store {store_id}.")

    async def _move_ingredients(
        self, store_id: int, order: Order, direction: AdjustmentType, correlation_id: Optional[str]
    ) -> None:
        """Consumes (usage) or returns (addition) the recipe ingredients of every order line."""
        items = list(order.items)
        recipes = await self._recipes.find_many(store_id, list({it.recipe_id for it in items}))
        recipe_map = {r.id: r for r in recipes}

        needed: Dict[int, float] = defaultdict(float)
        for it in items:
            recipe = recipe_map.get(it.recipe_id)
            if recipe is None:
                continue
            for line in recipe.ingredients:
                factor = conversion_factor(line.unit, line.ingredient.unit)
                needed[line.ingredient_id] += line.quantity * factor * it.quantity

        reason = f"Order #{order.order_number} " + ("ready" if direction == AdjustmentType.USAGE else "reopened")
        for ingredient_id, quantity in needed.items():
            if quantity <= 0:
                continue
            try:
                await self._inventory.adjust_stock(
                    store_id,
                    AdjustStockCommand(ingredient_id=ingredient_id, type=direction, quantity=quantity, reason=reason),
                    correlation_id,
                )
            except AppError as e:
                log.error(
                    f"Inventory {direction.value} of {quantity} for ingredient {ingredient_id} "
                    f"(order {order.id}) skipped: {e.message}"
                )

    def _publish(self, event_name: str, payload: Dict[str, Any], correlation_id: Optional[str]) -> None:
        try:
            self._bus.publish_detached(DomainEvent(event_name=event_name, payload=payload, correlation_id=correlation_id))
        except Exception as e:
            log.error(f"Could not schedule {event_name} (correlation_id={correlation_id}): {e!r}")


def _to_decimal(value: Any, default: Decimal) -> Decimal:
    if value is None:
        return Decimal(default)
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"Invalid unit price: {value}")
    if price < 0:
        raise ValidationError("Unit price cannot be negative")
    return price
