from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from db.cart import CartWorkflow
from db.catalog import CatalogStore
from db.database import KeyValueStore
from db.identity import IdentityStore
from db.models import Account
from db.orders import OrderWorkflow
from utils import config


@dataclass
class GlobalState:
    """
    Application state shared by screens: the store handles, wired together
    once at start-up.

    Fields:
      - kv: the key-value store everything persists to
      - identity: accounts and the current session
      - catalog: products
      - orders: order records and status changes
      - cart: the shopper's cart and checkout
    """

    kv: KeyValueStore
    identity: IdentityStore
    catalog: CatalogStore
    orders: OrderWorkflow
    cart: CartWorkflow

    @classmethod
    def create(
        cls, db_path: Optional[str] = None, checkout_delay: Optional[float] = None
    ) -> GlobalState:
        kv = KeyValueStore(db_path or config.DB_PATH)
        identity = IdentityStore(kv)
        orders = OrderWorkflow(kv, identity)
        return cls(
            kv=kv,
            identity=identity,
            catalog=CatalogStore(kv),
            orders=orders,
            cart=CartWorkflow(kv, identity, orders, checkout_delay),
        )

    @property
    def user(self) -> Optional[Account]:
        return self.identity.current_user

    @property
    def is_admin(self) -> bool:
        return self.identity.is_admin

    async def start(self) -> Optional[Account]:
        """Restore the previous session, if one was saved."""
        return await self.identity.restore_session()

    async def end_session(self) -> None:
        """
        End the current session if one exists.
        This is only called upon logging out
        """
        if self.identity.is_authenticated:
            await self.identity.logout()
