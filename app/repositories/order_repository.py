from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from tortoise import timezone
from tortoise.transactions import in_transaction

from app.models.order import Order, OrderItem, OrderStatus


class OrderRepository:
    """Tortoise-backed order persistence. Absent rows come back as None."""

    async def find_by_id(self, store_id: int, order_id: int) -> Optional[Order]:
        # Pre-fetch related entities to minimize DB queries (N+1 avoidance)
        return await Order.get_or_none(id=order_id, store_id=store_id).prefetch_related(
            "items", "items__recipe", "customer"
        )

    async def list(self, store_id: int, status: Optional[OrderStatus] = None) -> List[Order]:
        query = Order.filter(store_id=store_id)
        if status is not None:
            query = query.filter(status=status)
        return await query.order_by("-created_at").prefetch_related("items", "customer")

    async def find_due_on(self, store_id: int, due: date, statuses: Iterable[OrderStatus]) -> List[Order]:
        return await Order.filter(
            store_id=store_id, due_date=due, status__in=list(statuses)
        ).order_by("order_number").prefetch_related("items")

    async def create(
        self,
        store_id: int,
        customer_id: Optional[int],
        items: List[Dict[str, Any]],
        total_amount: Decimal,
        notes: Optional[str] = None,
        due_date: Optional[date] = None,
        recurring_group_id: Optional[str] = None,
    ) -> Order:
        async with in_transaction() as conn:
            latest = await Order.filter(store_id=store_id).using_db(conn).order_by("-order_number").first()
            last_number = latest.order_number if latest else 0

            order = await Order.create(
                store_id=store_id,
                order_number=last_number + 1,
                customer_id=customer_id,
                status=OrderStatus.RECEIVED,
                total_amount=total_amount,
                notes=notes,
                due_date=due_date,
                recurring_group_id=recurring_group_id,
                using_db=conn,
            )
            for position, item in enumerate(items):
                await OrderItem.create(
                    order=order,
                    position=position,
                    recipe_id=item["recipe_id"],
                    quantity=item["quantity"],
                    unit_price=item["unit_price"],
                    line_total=item["unit_price"] * item["quantity"],
                    notes=item.get("notes"),
                    using_db=conn,
                )

        return await self.find_by_id(store_id, order.id)

    async def update_status(
        self, store_id: int, order_id: int, expected: OrderStatus, new_status: OrderStatus
    ) -> Optional[Order]:
        """
        Compare-and-swap write: only succeeds while the row still holds `expected`.
        Returns None when another writer got there first (or the row is gone).
        """
        updated = await Order.filter(id=order_id, store_id=store_id, status=expected).update(
            status=new_status, updated_at=timezone.now()
        )
        if not updated:
            return None
        return await self.find_by_id(store_id, order_id)

    async def update(self, store_id: int, order_id: int, fields: Dict[str, Any]) -> Optional[Order]:
        if fields:
            await Order.filter(id=order_id, store_id=store_id).update(**fields, updated_at=timezone.now())
        return await self.find_by_id(store_id, order_id)

    async def delete(self, store_id: int, order_id: int) -> int:
        """
        Deletes the order only while it is still RECEIVED, in the same statement
        that checks the status. Returns the number of orders removed (0 or 1).
        """
        async with in_transaction() as conn:
            deleted = await Order.filter(
                id=order_id, store_id=store_id, status=OrderStatus.RECEIVED
            ).using_db(conn).delete()
            if deleted:
                await OrderItem.filter(order_id=order_id).using_db(conn).delete()
        return deleted
