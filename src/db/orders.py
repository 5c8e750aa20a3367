# order records and their status lifecycle
from __future__ import annotations

from typing import List, Optional, Sequence

from db.database import ORDERS, KeyValueStore, Transaction
from db.identity import IdentityStore
from db.models import (
    ORDER_STATUSES,
    Account,
    CartLine,
    Order,
    PaymentDetails,
    new_id,
    now,
)
from utils.logger import get_logger

_logger = get_logger(__name__)

# status a new order starts in, by payment method
INITIAL_STATUS = {"card": "processing", "manual": "pending"}


def compute_total(lines: Sequence[CartLine]) -> float:
    """Sum of price x quantity, rounded to cents."""
    return round(sum(line.line_total for line in lines), 2)


def next_status(status: str) -> Optional[str]:
    """The single status an order may move to next, or None once delivered."""
    try:
        idx = ORDER_STATUSES.index(status)
    except ValueError:
        return None
    if idx + 1 >= len(ORDER_STATUSES):
        return None
    return ORDER_STATUSES[idx + 1]


def can_advance(status: str, target: str) -> bool:
    return target is not None and next_status(status) == target


class OrderWorkflow:
    """
    Owns the `orders` collection. Orders are created by checkout and only
    ever move forward one step: pending -> processing -> shipped -> delivered.
    """

    def __init__(self, kv: KeyValueStore, identity: IdentityStore) -> None:
        self._kv = kv
        self._identity = identity

    async def _all_orders(self) -> List[Order]:
        return [Order.from_dict(o) for o in await self._kv.get(ORDERS, [])]

    async def list_orders(self, viewer: Optional[Account]) -> List[Order]:
        """All orders for admins; otherwise only the viewer's own."""
        if viewer is None:
            return []
        orders = await self._all_orders()
        if viewer.is_admin:
            return orders
        return [o for o in orders if o.user_id == viewer.id]

    async def get_order(self, order_id: str) -> Optional[Order]:
        for order in await self._all_orders():
            if order.id == order_id:
                return order
        return None

    async def record(
        self,
        tx: Transaction,
        account: Account,
        lines: Sequence[CartLine],
        payment: PaymentDetails,
    ) -> Order:
        """
        Append a new order inside the caller's transaction.
        Nothing is persisted until that transaction commits.
        """
        order = Order(
            id=new_id(),
            user_id=account.id,
            items=tuple(lines),
            total=compute_total(lines),
            payment_method=payment.method,
            payment=payment,
            status=INITIAL_STATUS[payment.method],
            created_at=now(),
        )
        orders = await tx.get(ORDERS, [])
        orders.append(order.to_dict())
        await tx.set(ORDERS, orders)
        return order

    async def advance_status(self, order_id: str, target_status: str) -> bool:
        """
        Move an order one step forward. Only admins may do this, and only to
        the status directly after the current one; anything else is a no-op.
        Returns True if the status changed.
        """
        if not self._identity.is_admin:
            _logger.warning(f"Non-admin tried to set order {order_id} {target_status}")
            return False

        async with self._kv.transaction() as tx:
            orders = await tx.get(ORDERS, [])
            for i, data in enumerate(orders):
                if data["id"] != order_id:
                    continue
                order = Order.from_dict(data)
                if not can_advance(order.status, target_status):
                    _logger.info(
                        f"Order {order_id}: {order.status} -> {target_status} refused"
                    )
                    return False
                orders[i] = {**data, "status": target_status}
                await tx.set(ORDERS, orders)
                break
            else:
                return False

        _logger.info(f"Order {order_id}: {order.status} -> {target_status}")
        return True
