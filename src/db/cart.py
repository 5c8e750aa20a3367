# the shopper's cart and checkout
from __future__ import annotations

import asyncio
from typing import List, Optional

from db.database import CART, KeyValueStore
from db.identity import IdentityStore
from db.models import CartLine, Order, PaymentDetails, Product
from db.orders import OrderWorkflow, compute_total
from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)


class CheckoutError(Exception):
    """Checkout refused; the message is meant for the user."""


class CartWorkflow:
    """
    Owns the `cart` collection: at most one line per product id, every line
    with a positive quantity. The cart is not tied to an account until
    checkout.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        identity: IdentityStore,
        orders: OrderWorkflow,
        checkout_delay: Optional[float] = None,
    ) -> None:
        self._kv = kv
        self._identity = identity
        self._orders = orders
        self.checkout_delay = (
            config.CHECKOUT_DELAY if checkout_delay is None else checkout_delay
        )

    async def list_lines(self) -> List[CartLine]:
        return [CartLine.from_dict(line) for line in await self._kv.get(CART, [])]

    async def total_price(self) -> float:
        return compute_total(await self.list_lines())

    async def total_items(self) -> int:
        return sum(line.quantity for line in await self.list_lines())

    # ---------------------------
    # Cart Management
    # ---------------------------

    async def add_to_cart(self, product: Product) -> CartLine:
        """Add one unit of a product, merging with its existing line if present."""
        async with self._kv.transaction() as tx:
            lines = [CartLine.from_dict(d) for d in await tx.get(CART, [])]
            for i, line in enumerate(lines):
                if line.product_id == product.id:
                    lines[i] = added = line.with_quantity(line.quantity + 1)
                    break
            else:
                added = CartLine(product=product, quantity=1)
                lines.append(added)
            await tx.set(CART, [line.to_dict() for line in lines])

        _logger.debug(f"Cart: {product.id} x{added.quantity}")
        return added

    async def update_quantity(self, product_id: str, quantity: int) -> None:
        """Set a line's quantity exactly; zero or less removes the line."""
        if quantity <= 0:
            await self.remove_item(product_id)
            return

        async with self._kv.transaction() as tx:
            lines = await tx.get(CART, [])
            for line in lines:
                if line["id"] == product_id:
                    line["quantity"] = quantity
                    await tx.set(CART, lines)
                    break

    async def remove_item(self, product_id: str) -> bool:
        async with self._kv.transaction() as tx:
            lines = await tx.get(CART, [])
            kept = [line for line in lines if line["id"] != product_id]
            if len(kept) == len(lines):
                return False
            await tx.set(CART, kept)
        return True

    async def clear(self) -> None:
        async with self._kv.transaction() as tx:
            await tx.delete(CART)

    # ---------------------------
    # Checkout
    # ---------------------------

    async def checkout(self, payment: Optional[PaymentDetails]) -> Order:
        """
        Turn the cart into an order for the logged-in account.

        The order is written and the cart emptied in one transaction, so
        either both happen or neither does. Raises CheckoutError, with no
        state change, if nobody is logged in, the cart is empty or payment
        details are missing.
        """
        account = self._identity.current_user
        if account is None:
            raise CheckoutError("Please login to checkout.")
        if not await self.list_lines():
            raise CheckoutError("Cart is empty.")
        if payment is None or not _has_details(payment):
            raise CheckoutError("Payment details are required.")

        # simulated payment processing, cannot be cancelled
        if self.checkout_delay > 0:
            await asyncio.sleep(self.checkout_delay)

        async with self._kv.transaction() as tx:
            lines = [CartLine.from_dict(d) for d in await tx.get(CART, [])]
            if not lines:
                raise CheckoutError("Cart is empty.")
            order = await self._orders.record(tx, account, lines, payment)
            await tx.delete(CART)

        _logger.info(
            f"Order {order.id} placed by {account.id}: "
            f"{order.item_count} item(s), ${order.total:.2f}, {order.payment_method}"
        )
        return order


def _has_details(payment: PaymentDetails) -> bool:
    return all(str(v).strip() for v in payment.to_dict().values())
