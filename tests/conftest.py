import os
import sys
from decimal import Decimal
from typing import List

import pytest
import pytest_asyncio

# Add app to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from app.core.container import build_services
from app.events.event_bus import DomainEvent, EventBus
from app.events.event_names import EventNames
from app.testing.in_memory import in_memory_repositories

STORE_ID = 1

ALL_EVENTS = [
    EventNames.ORDER_CREATED,
    EventNames.ORDER_STATUS_CHANGED,
    EventNames.INVENTORY_LOW_STOCK,
    EventNames.PAYMENT_RECEIVED,
    EventNames.PAYMENT_REFUNDED,
    EventNames.BATCH_CREATED,
    EventNames.BATCH_STAGE_CHANGED,
    EventNames.BATCH_COMPLETED,
]


class EventRecorder:
    """Subscribes to every event name and keeps what it saw."""

    def __init__(self, bus: EventBus):
        self.events: List[DomainEvent] = []
        for name in ALL_EVENTS:
            bus.subscribe(name, self.events.append)

    def named(self, event_name: str) -> List[DomainEvent]:
        return [e for e in self.events if e.event_name == event_name]


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def recorder(event_bus):
    return EventRecorder(event_bus)


@pytest.fixture
def repos():
    return in_memory_repositories()


@pytest.fixture
def services(event_bus, repos):
    return build_services(event_bus, repos, channels={})


@pytest_asyncio.fixture
async def bakery(repos):
    """A store with flour (kg), eggs (pcs), a customer and a bread recipe."""
    store = await repos.stores.create("Test Bakehouse")
    flour = await repos.inventory.create(store.id, {
        "name": "Flour", "unit": "kg", "quantity": 10.0,
        "cost_per_unit": Decimal("4.00"), "low_stock_threshold": 2.0,
    })
    eggs = await repos.inventory.create(store.id, {
        "name": "Eggs", "unit": "pcs", "quantity": 30.0,
        "cost_per_unit": Decimal("0.80"), "low_stock_threshold": 6.0,
    })
    customer = await repos.customers.create(store.id, {"name": "Dana", "phone": "0521234567"})
    bread = await repos.recipes.create(store.id, "Bread", Decimal("20.00"), [
        {"ingredient_id": flour.id, "quantity": 500, "unit": "g"},
        {"ingredient_id": eggs.id, "quantity": 2, "unit": "pcs"},
    ])
    return {"store": store, "flour": flour, "eggs": eggs, "customer": customer, "bread": bread}
