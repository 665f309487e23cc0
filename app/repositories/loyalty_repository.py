from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from tortoise.transactions import in_transaction

from app.models.loyalty import LoyaltyConfig, LoyaltyTransaction, LoyaltyTransactionType
from app.models.store import Customer


class LoyaltyRepository:

    async def get_config(self, store_id: int) -> Optional[LoyaltyConfig]:
        return await LoyaltyConfig.get_or_none(store_id=store_id)

    async def upsert_config(self, store_id: int, fields: Dict[str, Any]) -> LoyaltyConfig:
        config, _ = await LoyaltyConfig.get_or_create(store_id=store_id, defaults=fields)
        if fields:
            config.update_from_dict(fields)
            await config.save()
        return config

    async def current_balance(self, store_id: int, customer_id: int) -> int:
        latest = await LoyaltyTransaction.filter(
            store_id=store_id, customer_id=customer_id
        ).order_by("-id").first()
        return latest.balance_after if latest else 0

    async def append_transaction(
        self,
        store_id: int,
        customer_id: int,
        type: LoyaltyTransactionType,
        points: int,
        payment_id: Optional[int] = None,
        description: Optional[str] = None,
        value: Optional[Decimal] = None,
    ) -> LoyaltyTransaction:
        """
        Appends a ledger row with balance_after = latest balance_after + points and
        mirrors it onto Customer.loyalty_points, all in one transaction. The customer
        row is locked first so two appends for the same customer serialize.
        """
        async with in_transaction() as conn:
            customer = await Customer.filter(id=customer_id, store_id=store_id).using_db(conn).select_for_update().first()
            latest = await LoyaltyTransaction.filter(
                store_id=store_id, customer_id=customer_id
            ).using_db(conn).order_by("-id").first()
            balance_after = (latest.balance_after if latest else 0) + points

            transaction = await LoyaltyTransaction.create(
                store_id=store_id,
                customer_id=customer_id,
                payment_id=payment_id,
                type=type,
                points=points,
                balance_after=balance_after,
                description=description,
                value=value,
                using_db=conn,
            )
            if customer is not None:
                customer.loyalty_points = balance_after
                await customer.save(update_fields=["loyalty_points"], using_db=conn)
        return transaction

    async def find_transaction_by_payment_id(
        self, store_id: int, payment_id: int, type: LoyaltyTransactionType
    ) -> Optional[LoyaltyTransaction]:
        return await LoyaltyTransaction.filter(
            store_id=store_id, payment_id=payment_id, type=type
        ).order_by("id").first()

    async def list_transactions(
        self, store_id: int, customer_id: int, limit: int = 50, offset: int = 0
    ) -> Tuple[List[LoyaltyTransaction], int]:
        query = LoyaltyTransaction.filter(store_id=store_id, customer_id=customer_id)
        total = await query.count()
        items = await query.order_by("-id").offset(offset).limit(limit)
        return items, total

    async def lifetime_totals(self, store_id: int, customer_id: int) -> Tuple[int, int]:
        """Returns (points ever earned, points ever redeemed) as positive magnitudes."""
        rows = await LoyaltyTransaction.filter(
            store_id=store_id, customer_id=customer_id,
            type__in=[LoyaltyTransactionType.EARNED, LoyaltyTransactionType.REDEEMED],
        ).values_list("type", "points")
        earned = sum(points for tx_type, points in rows if tx_type == LoyaltyTransactionType.EARNED)
        redeemed = sum(abs(points) for tx_type, points in rows if tx_type == LoyaltyTransactionType.REDEEMED)
        return earned, redeemed
