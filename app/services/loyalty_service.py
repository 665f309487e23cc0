import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.loyalty import LoyaltyTransaction, LoyaltyTransactionType
from app.models.store import LoyaltyTier

log = logging.getLogger("loyalty_service")

TIER_MULTIPLIERS = {
    LoyaltyTier.BRONZE: Decimal("1"),
    LoyaltyTier.SILVER: Decimal("1.5"),
    LoyaltyTier.GOLD: Decimal("2"),
}

CONFIG_FIELDS = {"is_active", "points_per_unit", "point_value", "min_redeem_points"}


@dataclass
class LoyaltySettings:
    """Effective loyalty configuration for a store; defaults apply until one is saved."""
    is_active: bool = False
    points_per_unit: Decimal = Decimal("1")
    point_value: Decimal = Decimal("0.1")
    min_redeem_points: int = 0

    @classmethod
    def from_row(cls, row) -> "LoyaltySettings":
        if row is None:
            return cls()
        return cls(
            is_active=row.is_active,
            points_per_unit=Decimal(row.points_per_unit),
            point_value=Decimal(row.point_value),
            min_redeem_points=row.min_redeem_points,
        )


@dataclass
class LoyaltyBalance:
    balance: int
    lifetime_earned: int
    lifetime_redeemed: int


class LoyaltyService:
    """
    Every balance change is an append to the customer's ledger. The latest
    balance_after is the balance; Customer.loyalty_points is only a mirror of it.
    """

    def __init__(self, loyalty_repository, customer_repository):
        self._loyalty = loyalty_repository
        self._customers = customer_repository

    async def get_config(self, store_id: int) -> LoyaltySettings:
        return LoyaltySettings.from_row(await self._loyalty.get_config(store_id))

    async def update_config(self, store_id: int, patch: Dict[str, Any]) -> LoyaltySettings:
        unknown = set(patch) - CONFIG_FIELDS
        if unknown:
            raise ValidationError(f"Unknown loyalty settings: {', '.join(sorted(unknown))}")
        cleared = sorted(name for name, value in patch.items() if value is None)
        if cleared:
            raise ValidationError(f"Loyalty settings cannot be cleared: {', '.join(cleared)}")
        for name in ("points_per_unit", "point_value"):
            if name in patch and Decimal(str(patch[name])) <= 0:
                raise ValidationError(f"{name} must be positive")
        if patch.get("min_redeem_points") is not None and patch["min_redeem_points"] < 0:
            raise ValidationError("min_redeem_points cannot be negative")

        row = await self._loyalty.upsert_config(store_id, dict(patch))
        return LoyaltySettings.from_row(row)

    async def create_transaction(
        self,
        store_id: int,
        customer_id: int,
        type: LoyaltyTransactionType,
        points: int,
        payment_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> LoyaltyTransaction:
        """
        Ledger primitive. `points` is the signed delta: earned entries are positive,
        redeemed entries negative, adjustments either way. Zero is never written.
        """
        if not isinstance(points, int) or isinstance(points, bool) or points == 0:
            raise ValidationError("Points must be a nonzero whole number")
        tx_type = LoyaltyTransactionType(type)
        if tx_type == LoyaltyTransactionType.EARNED and points < 0:
            raise ValidationError("Earned points must be positive")
        if tx_type == LoyaltyTransactionType.REDEEMED and points > 0:
            raise ValidationError("Redeemed points must be recorded as a negative delta")

        await self._require_customer(store_id, customer_id)
        return await self._loyalty.append_transaction(
            store_id, customer_id, tx_type, points, payment_id=payment_id, description=description
        )

    async def get_balance(self, store_id: int, customer_id: int) -> LoyaltyBalance:
        await self._require_customer(store_id, customer_id)
        balance = await self._loyalty.current_balance(store_id, customer_id)
        earned, redeemed = await self._loyalty.lifetime_totals(store_id, customer_id)
        return LoyaltyBalance(balance=balance, lifetime_earned=earned, lifetime_redeemed=redeemed)

    async def list_transactions(
        self, store_id: int, customer_id: int, limit: int = 50, offset: int = 0
    ) -> Tuple[List[LoyaltyTransaction], int]:
        await self._require_customer(store_id, customer_id)
        return await self._loyalty.list_transactions(store_id, customer_id, limit=limit, offset=offset)

    async def award_points_for_payment(
        self, store_id: int, customer_id: int, payment_id: int, amount: Decimal
    ) -> Optional[LoyaltyTransaction]:
        config = await self.get_config(store_id)
        if not config.is_active:
            return None
        customer = await self._customers.find_by_id(store_id, customer_id)
        if customer is None or not customer.loyalty_enabled:
            return None

        multiplier = TIER_MULTIPLIERS.get(LoyaltyTier(customer.loyalty_tier), Decimal("1"))
        points = math.floor(Decimal(amount) * config.points_per_unit * multiplier)
        if points <= 0:
            return None
        if await self._loyalty.find_transaction_by_payment_id(store_id, payment_id, LoyaltyTransactionType.EARNED):
            log.info(f"Payment {payment_id} already earned points; skipping award.")
            return None

        return await self._loyalty.append_transaction(
            store_id, customer_id, LoyaltyTransactionType.EARNED, points,
            payment_id=payment_id, description=f"Earned from payment #{payment_id}",
        )

    async def reverse_points_for_payment(
        self, store_id: int, customer_id: int, payment_id: int
    ) -> Optional[LoyaltyTransaction]:
        """
        Writes one compensating `redeemed` entry for the points a payment earned.
        Raises ConflictError when the payment was already reversed.
        """
        earned = await self._loyalty.find_transaction_by_payment_id(
            store_id, payment_id, LoyaltyTransactionType.EARNED
        )
        if earned is None:
            return None

        prior = await self._loyalty.find_transaction_by_payment_id(
            store_id, payment_id, LoyaltyTransactionType.REDEEMED
        )
        if prior is not None:
            raise ConflictError(
                "Points for this payment were already reversed",
                data={"paymentId": payment_id, "transactionId": prior.id},
            )

        balance = await self._loyalty.current_balance(store_id, customer_id)
        deduction = min(earned.points, balance)
        if deduction <= 0:
            return None

        return await self._loyalty.append_transaction(
            store_id, customer_id, LoyaltyTransactionType.REDEEMED, -deduction,
            payment_id=payment_id, description=f"Reversed for refunded payment #{payment_id}",
        )

    async def redeem_points(
        self, store_id: int, customer_id: int, points: int, description: Optional[str] = None
    ) -> LoyaltyTransaction:
        # No balance check; the ledger may go negative. The row records the currency value redeemed.
        if not isinstance(points, int) or points <= 0:
            raise ValidationError("Points to redeem must be a positive whole number")
        config = await self.get_config(store_id)
        if not config.is_active:
            raise ValidationError("Loyalty program is not active")
        if points < config.min_redeem_points:
            raise ValidationError(f"At least {config.min_redeem_points} points are required to redeem")

        await self._require_customer(store_id, customer_id)
        value = (Decimal(points) * config.point_value).quantize(Decimal("0.01"))
        return await self._loyalty.append_transaction(
            store_id, customer_id, LoyaltyTransactionType.REDEEMED, -points,
            description=description or f"Redeemed {points} points for {value}",
            value=value,
        )

    async def adjust_points(
        self, store_id: int, customer_id: int, points: int, description: Optional[str] = None
    ) -> LoyaltyTransaction:
        if not isinstance(points, int) or points == 0:
            raise ValidationError("Adjustment must be a nonzero whole number")
        await self._require_customer(store_id, customer_id)
        if points < 0:
            balance = await self._loyalty.current_balance(store_id, customer_id)
            if balance + points < 0:
                raise ValidationError(f"Adjustment would make the balance negative (current balance {balance})")

        return await self._loyalty.append_transaction(
            store_id, customer_id, LoyaltyTransactionType.ADJUSTED, points,
            description=description or "Manual adjustment",
        )

    async def _require_customer(self, store_id: int, customer_id: int):
        customer = await self._customers.find_by_id(store_id, customer_id)
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer
