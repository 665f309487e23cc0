import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Union

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.order import Order, OrderStatus

log = logging.getLogger("order_status")

# Directed, reversible; no self-loops and no skipped stages.
ORDER_STATUS_FLOW: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.RECEIVED: frozenset({OrderStatus.IN_PROGRESS}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.RECEIVED, OrderStatus.READY}),
    OrderStatus.READY: frozenset({OrderStatus.IN_PROGRESS, OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.READY}),
}


def _coerce(status: Union[OrderStatus, int]) -> Union[OrderStatus, None]:
    try:
        return OrderStatus(status)
    except ValueError:
        return None


def allowed_transitions(current: Union[OrderStatus, int]) -> FrozenSet[OrderStatus]:
    """Statuses reachable in one step from `current`. Unknown values reach nothing."""
    status = _coerce(current)
    if status is None:
        return frozenset()
    return ORDER_STATUS_FLOW.get(status, frozenset())


def can_transition(current: Union[OrderStatus, int], requested: Union[OrderStatus, int]) -> bool:
    target = _coerce(requested)
    return target is not None and target in allowed_transitions(current)


def _label(status: Union[OrderStatus, int]) -> str:
    coerced = _coerce(status)
    return coerced.label if coerced is not None else str(status)


@dataclass
class StatusChange:
    order: Order
    previous_status: OrderStatus
    new_status: OrderStatus


class UpdateOrderStatus:
    """
    Validates one status transition against the flow table and persists it.

    The check always runs before the write, and the write is a compare-and-swap on
    the status that was read, so two racing requests from the same source status
    cannot both succeed: the loser gets a ConflictError.
    """

    def __init__(self, order_repository):
        self._orders = order_repository

    async def execute(self, store_id: int, order_id: int, new_status: Union[OrderStatus, int]) -> StatusChange:
        existing = await self._orders.find_by_id(store_id, order_id)
        if existing is None:
            raise NotFoundError("Order not found")

        allowed = allowed_transitions(existing.status)
        if not can_transition(existing.status, new_status):
            allowed_text = ", ".join(s.label for s in sorted(allowed)) or "none"
            raise ValidationError(
                f'Cannot transition from "{_label(existing.status)}" to "{_label(new_status)}". '
                f"Allowed: {allowed_text}"
            )

        previous_status = OrderStatus(existing.status)
        target = OrderStatus(new_status)
        order = await self._orders.update_status(store_id, order_id, previous_status, target)
        if order is None:
            log.warning(f"Order {order_id} changed status concurrently; {previous_status.label} -> {target.label} rejected.")
            raise ConflictError(
                "Order status changed concurrently, reload and retry",
                data={"orderId": order_id, "expectedStatus": previous_status.label},
            )

        return StatusChange(order=order, previous_status=previous_status, new_status=target)
