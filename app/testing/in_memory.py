"""
Dict-backed stand-ins for the Tortoise repositories, with the same method
signatures. Service and route tests run against these; every repository keeps
a `calls` list of the method names invoked so tests can assert what was (or
was not) written.
"""
import itertools
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app.core.container import Repositories
from app.models.inventory import AdjustmentType
from app.models.loyalty import LoyaltyTransactionType
from app.models.order import OrderStatus
from app.models.payment import PaymentMethod, PaymentRecordStatus
from app.models.production import ProductionStage
from app.models.store import LoyaltyTier


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StoreRecord:
    id: int
    name: str
    is_active: bool = True


@dataclass
class CustomerRecord:
    id: int
    store_id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    loyalty_points: int = 0
    loyalty_enabled: bool = True
    loyalty_tier: LoyaltyTier = LoyaltyTier.BRONZE


@dataclass
class IngredientRecord:
    id: int
    store_id: int
    name: str
    unit: str
    quantity: float = 0
    cost_per_unit: Decimal = Decimal("0")
    low_stock_threshold: float = 0
    supplier: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class InventoryLogRecord:
    id: int
    store_id: int
    ingredient_id: int
    type: AdjustmentType
    quantity: float
    reason: Optional[str] = None
    price_paid: Optional[Decimal] = None
    created_at: datetime = field(default_factory=_now)


@dataclass
class RecipeIngredientRecord:
    ingredient_id: int
    quantity: float
    unit: str
    ingredient: Optional[IngredientRecord] = None


@dataclass
class RecipeRecord:
    id: int
    store_id: int
    name: str
    selling_price: Decimal = Decimal("0")
    is_active: bool = True
    ingredients: List[RecipeIngredientRecord] = field(default_factory=list)


@dataclass
class OrderItemRecord:
    position: int
    recipe_id: int
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    notes: Optional[str] = None


@dataclass
class OrderRecord:
    id: int
    store_id: int
    order_number: int
    customer_id: Optional[int] = None
    status: OrderStatus = OrderStatus.RECEIVED
    total_amount: Decimal = Decimal("0")
    notes: Optional[str] = None
    due_date: Optional[date] = None
    recurring_group_id: Optional[str] = None
    items: List[OrderItemRecord] = field(default_factory=list)
    customer: Optional[CustomerRecord] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class PaymentRecord:
    id: int
    store_id: int
    order_id: int
    amount: Decimal
    method: PaymentMethod = PaymentMethod.CASH
    status: PaymentRecordStatus = PaymentRecordStatus.COMPLETED
    notes: Optional[str] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class LoyaltyConfigRecord:
    store_id: int
    is_active: bool = False
    points_per_unit: Decimal = Decimal("1")
    point_value: Decimal = Decimal("0.1")
    min_redeem_points: int = 0


@dataclass
class LoyaltyTransactionRecord:
    id: int
    store_id: int
    customer_id: int
    type: LoyaltyTransactionType
    points: int
    balance_after: int
    payment_id: Optional[int] = None
    description: Optional[str] = None
    value: Optional[Decimal] = None
    created_at: datetime = field(default_factory=_now)


@dataclass
class BatchOrderRecord:
    order_id: int
    order_item_index: int
    quantity_from_order: int


@dataclass
class BatchRecord:
    id: int
    store_id: int
    recipe_id: int
    quantity: int
    production_date: date
    stage: ProductionStage = ProductionStage.TO_PREP
    priority: int = 0
    source: str = "auto"
    notes: Optional[str] = None
    order_sources: List[BatchOrderRecord] = field(default_factory=list)


@dataclass
class PreferenceRecord:
    id: int
    store_id: int
    event_type: str
    recipient_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    language: str = "en"
    channel_email: bool = True
    channel_sms: bool = False
    channel_whatsapp: bool = False


class _Repo:
    def __init__(self):
        self.rows: Dict[int, Any] = {}
        self.calls: List[str] = []
        self._ids = itertools.count(1)

    def _next_id(self) -> int:
        return next(self._ids)

    def _scoped(self, store_id: int, row_id: int):
        row = self.rows.get(row_id)
        if row is None or row.store_id != store_id:
            return None
        return row


class InMemoryStoreRepository(_Repo):

    async def find_by_id(self, store_id: int) -> Optional[StoreRecord]:
        return self.rows.get(store_id)

    async def create(self, name: str, is_active: bool = True) -> StoreRecord:
        self.calls.append("create")
        store = StoreRecord(id=self._next_id(), name=name, is_active=is_active)
        self.rows[store.id] = store
        return store


class InMemoryCustomerRepository(_Repo):

    async def find_by_id(self, store_id: int, customer_id: int) -> Optional[CustomerRecord]:
        return self._scoped(store_id, customer_id)

    async def create(self, store_id: int, data: Dict[str, Any]) -> CustomerRecord:
        self.calls.append("create")
        customer = CustomerRecord(id=self._next_id(), store_id=store_id, **data)
        self.rows[customer.id] = customer
        return customer


class InMemoryInventoryRepository(_Repo):

    def __init__(self):
        super().__init__()
        self.log: List[InventoryLogRecord] = []
        self._log_ids = itertools.count(1)

    async def find_by_id(self, store_id: int, ingredient_id: int) -> Optional[IngredientRecord]:
        row = self._scoped(store_id, ingredient_id)
        return replace(row) if row else None

    async def list(self, store_id: int, search: Optional[str] = None) -> List[IngredientRecord]:
        rows = [r for r in self.rows.values() if r.store_id == store_id]
        if search:
            rows = [r for r in rows if search.lower() in r.name.lower()]
        return sorted(rows, key=lambda r: r.name)

    async def find_low_stock(self, store_id: int) -> List[IngredientRecord]:
        rows = [r for r in self.rows.values() if r.store_id == store_id and r.quantity <= r.low_stock_threshold]
        return sorted(rows, key=lambda r: r.quantity)

    async def create(self, store_id: int, data: Dict[str, Any]) -> IngredientRecord:
        self.calls.append("create")
        ingredient = IngredientRecord(id=self._next_id(), store_id=store_id, **data)
        self.rows[ingredient.id] = ingredient
        return replace(ingredient)

    async def update(self, store_id: int, ingredient_id: int, fields: Dict[str, Any]) -> Optional[IngredientRecord]:
        self.calls.append("update")
        row = self._scoped(store_id, ingredient_id)
        if row is None:
            return None
        for name, value in fields.items():
            setattr(row, name, value)
        row.updated_at = _now()
        return replace(row)

    async def delete(self, store_id: int, ingredient_id: int) -> None:
        self.calls.append("delete")
        if self._scoped(store_id, ingredient_id):
            del self.rows[ingredient_id]

    async def adjust_stock(
        self,
        store_id: int,
        ingredient_id: int,
        delta: float,
        log_type: AdjustmentType,
        quantity: float,
        reason: Optional[str] = None,
        price_paid: Optional[Decimal] = None,
    ) -> Optional[IngredientRecord]:
        self.calls.append("adjust_stock")
        row = self._scoped(store_id, ingredient_id)
        if row is None or (delta < 0 and row.quantity < -delta):
            return None
        row.quantity += delta
        row.updated_at = _now()
        self.log.append(InventoryLogRecord(
            id=next(self._log_ids), store_id=store_id, ingredient_id=ingredient_id,
            type=log_type, quantity=quantity, reason=reason, price_paid=price_paid,
        ))
        return replace(row)

    async def get_log(self, store_id: int, ingredient_id: int) -> List[InventoryLogRecord]:
        entries = [e for e in self.log if e.store_id == store_id and e.ingredient_id == ingredient_id]
        return list(reversed(entries))


class InMemoryRecipeRepository(_Repo):

    def __init__(self, inventory: InMemoryInventoryRepository):
        super().__init__()
        self._inventory = inventory

    def _resolved(self, recipe: RecipeRecord) -> RecipeRecord:
        lines = [
            replace(line, ingredient=self._inventory.rows.get(line.ingredient_id))
            for line in recipe.ingredients
        ]
        return replace(recipe, ingredients=lines)

    async def find_by_id(self, store_id: int, recipe_id: int) -> Optional[RecipeRecord]:
        row = self._scoped(store_id, recipe_id)
        return self._resolved(row) if row else None

    async def find_many(self, store_id: int, recipe_ids: List[int]) -> List[RecipeRecord]:
        return [self._resolved(r) for r in self.rows.values() if r.store_id == store_id and r.id in recipe_ids]

    async def create(self, store_id: int, name: str, selling_price: Decimal, ingredients: List[Dict[str, Any]]) -> RecipeRecord:
        self.calls.append("create")
        recipe = RecipeRecord(
            id=self._next_id(), store_id=store_id, name=name, selling_price=selling_price,
            ingredients=[RecipeIngredientRecord(**line) for line in ingredients],
        )
        self.rows[recipe.id] = recipe
        return self._resolved(recipe)


class InMemoryOrderRepository(_Repo):

    def __init__(self, customers: Optional[InMemoryCustomerRepository] = None):
        super().__init__()
        self._customers = customers

    def _view(self, row: OrderRecord) -> OrderRecord:
        customer = self._customers.rows.get(row.customer_id) if self._customers and row.customer_id else None
        return replace(row, customer=customer)

    async def find_by_id(self, store_id: int, order_id: int) -> Optional[OrderRecord]:
        row = self._scoped(store_id, order_id)
        return self._view(row) if row else None

    async def list(self, store_id: int, status: Optional[OrderStatus] = None) -> List[OrderRecord]:
        rows = [r for r in self.rows.values() if r.store_id == store_id and (status is None or r.status == status)]
        return [self._view(r) for r in sorted(rows, key=lambda r: r.id, reverse=True)]

    async def find_due_on(self, store_id: int, due: date, statuses: Iterable[OrderStatus]) -> List[OrderRecord]:
        wanted = set(statuses)
        rows = [r for r in self.rows.values() if r.store_id == store_id and r.due_date == due and r.status in wanted]
        return [self._view(r) for r in sorted(rows, key=lambda r: r.order_number)]

    async def create(
        self,
        store_id: int,
        customer_id: Optional[int],
        items: List[Dict[str, Any]],
        total_amount: Decimal,
        notes: Optional[str] = None,
        due_date: Optional[date] = None,
        recurring_group_id: Optional[str] = None,
    ) -> OrderRecord:
        self.calls.append("create")
        numbers = [r.order_number for r in self.rows.values() if r.store_id == store_id]
        order = OrderRecord(
            id=self._next_id(),
            store_id=store_id,
            order_number=max(numbers, default=0) + 1,
            customer_id=customer_id,
            total_amount=total_amount,
            notes=notes,
            due_date=due_date,
            recurring_group_id=recurring_group_id,
            items=[
                OrderItemRecord(
                    position=position,
                    recipe_id=it["recipe_id"],
                    quantity=it["quantity"],
                    unit_price=it["unit_price"],
                    line_total=it["unit_price"] * it["quantity"],
                    notes=it.get("notes"),
                )
                for position, it in enumerate(items)
            ],
        )
        self.rows[order.id] = order
        return self._view(order)

    async def update_status(
        self, store_id: int, order_id: int, expected: OrderStatus, new_status: OrderStatus
    ) -> Optional[OrderRecord]:
        self.calls.append("update_status")
        row = self._scoped(store_id, order_id)
        if row is None or row.status != expected:
            return None
        row.status = new_status
        row.updated_at = _now()
        return self._view(row)

    async def update(self, store_id: int, order_id: int, fields: Dict[str, Any]) -> Optional[OrderRecord]:
        self.calls.append("update")
        row = self._scoped(store_id, order_id)
        if row is None:
            return None
        for name, value in fields.items():
            setattr(row, name, value)
        return self._view(row)

    async def delete(self, store_id: int, order_id: int) -> int:
        self.calls.append("delete")
        row = self._scoped(store_id, order_id)
        if row is None or row.status != OrderStatus.RECEIVED:
            return 0
        del self.rows[order_id]
        return 1


class InMemoryPaymentRepository(_Repo):

    async def find_by_id(self, store_id: int, payment_id: int) -> Optional[PaymentRecord]:
        row = self._scoped(store_id, payment_id)
        return replace(row) if row else None

    async def find_by_order(self, store_id: int, order_id: int) -> List[PaymentRecord]:
        return [replace(r) for r in self.rows.values() if r.store_id == store_id and r.order_id == order_id]

    async def create(
        self, store_id: int, order_id: int, amount: Decimal, method: PaymentMethod, notes: Optional[str] = None
    ) -> PaymentRecord:
        self.calls.append("create")
        payment = PaymentRecord(id=self._next_id(), store_id=store_id, order_id=order_id,
                                amount=amount, method=method, notes=notes)
        self.rows[payment.id] = payment
        return replace(payment)

    async def mark_refunded(self, store_id: int, payment_id: int) -> Optional[PaymentRecord]:
        self.calls.append("mark_refunded")
        row = self._scoped(store_id, payment_id)
        if row is None or row.status != PaymentRecordStatus.COMPLETED:
            return None
        row.status = PaymentRecordStatus.REFUNDED
        return replace(row)

    async def delete(self, store_id: int, payment_id: int) -> None:
        self.calls.append("delete")
        if self._scoped(store_id, payment_id):
            del self.rows[payment_id]


class InMemoryLoyaltyRepository(_Repo):

    def __init__(self, customers: InMemoryCustomerRepository):
        super().__init__()
        self._customers = customers
        self.configs: Dict[int, LoyaltyConfigRecord] = {}

    async def get_config(self, store_id: int) -> Optional[LoyaltyConfigRecord]:
        return self.configs.get(store_id)

    async def upsert_config(self, store_id: int, fields: Dict[str, Any]) -> LoyaltyConfigRecord:
        self.calls.append("upsert_config")
        config = self.configs.setdefault(store_id, LoyaltyConfigRecord(store_id=store_id))
        for name, value in fields.items():
            setattr(config, name, value)
        return config

    def _ledger(self, store_id: int, customer_id: int) -> List[LoyaltyTransactionRecord]:
        return [t for t in self.rows.values() if t.store_id == store_id and t.customer_id == customer_id]

    async def current_balance(self, store_id: int, customer_id: int) -> int:
        ledger = self._ledger(store_id, customer_id)
        return ledger[-1].balance_after if ledger else 0

    async def append_transaction(
        self,
        store_id: int,
        customer_id: int,
        type: LoyaltyTransactionType,
        points: int,
        payment_id: Optional[int] = None,
        description: Optional[str] = None,
        value: Optional[Decimal] = None,
    ) -> LoyaltyTransactionRecord:
        self.calls.append("append_transaction")
        balance_after = await self.current_balance(store_id, customer_id) + points
        tx = LoyaltyTransactionRecord(
            id=self._next_id(), store_id=store_id, customer_id=customer_id, type=type,
            points=points, balance_after=balance_after, payment_id=payment_id, description=description,
            value=value,
        )
        self.rows[tx.id] = tx
        customer = self._customers.rows.get(customer_id)
        if customer is not None:
            customer.loyalty_points = balance_after
        return tx

    async def find_transaction_by_payment_id(
        self, store_id: int, payment_id: int, type: LoyaltyTransactionType
    ) -> Optional[LoyaltyTransactionRecord]:
        for tx in self.rows.values():
            if tx.store_id == store_id and tx.payment_id == payment_id and tx.type == type:
                return tx
        return None

    async def list_transactions(
        self, store_id: int, customer_id: int, limit: int = 50, offset: int = 0
    ) -> Tuple[List[LoyaltyTransactionRecord], int]:
        ledger = list(reversed(self._ledger(store_id, customer_id)))
        return ledger[offset:offset + limit], len(ledger)

    async def lifetime_totals(self, store_id: int, customer_id: int) -> Tuple[int, int]:
        ledger = self._ledger(store_id, customer_id)
        earned = sum(t.points for t in ledger if t.type == LoyaltyTransactionType.EARNED)
        redeemed = sum(abs(t.points) for t in ledger if t.type == LoyaltyTransactionType.REDEEMED)
        return earned, redeemed


class InMemoryProductionRepository(_Repo):

    async def find_by_id(self, store_id: int, batch_id: int) -> Optional[BatchRecord]:
        row = self._scoped(store_id, batch_id)
        return replace(row) if row else None

    async def list_for_date(self, store_id: int, production_date: date) -> List[BatchRecord]:
        rows = [r for r in self.rows.values() if r.store_id == store_id and r.production_date == production_date]
        return sorted(rows, key=lambda r: (-r.priority, r.id))

    async def create_with_sources(
        self,
        store_id: int,
        recipe_id: int,
        quantity: int,
        production_date: date,
        sources: List[Dict[str, int]],
        source: str = "auto",
        priority: int = 0,
        notes: Optional[str] = None,
    ) -> BatchRecord:
        self.calls.append("create_with_sources")
        batch = BatchRecord(
            id=self._next_id(), store_id=store_id, recipe_id=recipe_id, quantity=quantity,
            production_date=production_date, source=source, priority=priority, notes=notes,
            order_sources=[
                BatchOrderRecord(order_id=s["order_id"], order_item_index=s["item_index"], quantity_from_order=s["quantity"])
                for s in sources
            ],
        )
        self.rows[batch.id] = batch
        return replace(batch)

    async def update_stage(self, store_id: int, batch_id: int, stage: ProductionStage) -> Optional[BatchRecord]:
        self.calls.append("update_stage")
        row = self._scoped(store_id, batch_id)
        if row is None:
            return None
        row.stage = stage
        return replace(row)

    async def delete(self, store_id: int, batch_id: int) -> None:
        self.calls.append("delete")
        if self._scoped(store_id, batch_id):
            del self.rows[batch_id]


class InMemoryPreferenceRepository(_Repo):

    async def find_by_event_type(self, store_id: int, event_type: str) -> List[PreferenceRecord]:
        return [p for p in self.rows.values() if p.store_id == store_id and p.event_type == event_type]

    async def create(self, store_id: int, data: Dict[str, Any]) -> PreferenceRecord:
        self.calls.append("create")
        pref = PreferenceRecord(id=self._next_id(), store_id=store_id, **data)
        self.rows[pref.id] = pref
        return pref


def in_memory_repositories() -> Repositories:
    customers = InMemoryCustomerRepository()
    inventory = InMemoryInventoryRepository()
    return Repositories(
        orders=InMemoryOrderRepository(customers),
        inventory=inventory,
        payments=InMemoryPaymentRepository(),
        loyalty=InMemoryLoyaltyRepository(customers),
        production=InMemoryProductionRepository(),
        stores=InMemoryStoreRepository(),
        customers=customers,
        recipes=InMemoryRecipeRepository(inventory),
        preferences=InMemoryPreferenceRepository(),
    )
