# product catalog
from __future__ import annotations

import math
from dataclasses import replace
from typing import Any, Dict, List, Optional

from db.database import PRODUCTS, KeyValueStore
from db.models import Product, new_id, now
from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)


def _check_price(price: float) -> float:
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise ValueError(f"Price must be a number, got {price!r}.")
    if not math.isfinite(price) or price < 0:
        raise ValueError(f"Price must be a finite non-negative number, got {price!r}.")
    return float(price)


def _check_stock(stock: int) -> int:
    if isinstance(stock, bool) or not isinstance(stock, int):
        raise ValueError(f"Stock must be an integer, got {stock!r}.")
    if stock < 0:
        raise ValueError(f"Stock cannot be negative, got {stock}.")
    return stock


class CatalogStore:
    """Owns the `products` collection, kept in insertion order."""

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    async def list_products(self) -> List[Product]:
        return [Product.from_dict(p) for p in await self._kv.get(PRODUCTS, [])]

    async def get_product(self, product_id: str) -> Optional[Product]:
        for product in await self.list_products():
            if product.id == product_id:
                return product
        return None

    async def add_product(
        self,
        name: str,
        description: str,
        price: float,
        category: str,
        stock: int,
        image: str,
        admin_id: str,
    ) -> Product:
        """
        Append a new product and return it.
        Raises ValueError if price or stock is not a valid non-negative number.
        """
        product = Product(
            id=new_id(),
            name=name,
            description=description,
            price=_check_price(price),
            category=category,
            stock=_check_stock(stock),
            image=image or config.DEFAULT_PRODUCT_IMAGE,
            admin_id=admin_id,
            created_at=now(),
        )
        async with self._kv.transaction() as tx:
            products = await tx.get(PRODUCTS, [])
            products.append(product.to_dict())
            await tx.set(PRODUCTS, products)

        _logger.info(f"Product {product.id} '{name}' added by {admin_id}")
        return product

    async def update_product(
        self,
        product_id: str,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        price: Optional[float] = None,
        category: Optional[str] = None,
        stock: Optional[int] = None,
        image: Optional[str] = None,
    ) -> bool:
        """
        Update only the provided fields. Return True if a product was updated,
        False if no product has this id.
        """
        changes: Dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if description is not None:
            changes["description"] = description
        if price is not None:
            changes["price"] = _check_price(price)
        if category is not None:
            changes["category"] = category
        if stock is not None:
            changes["stock"] = _check_stock(stock)
        if image is not None:
            changes["image"] = image

        async with self._kv.transaction() as tx:
            products = await tx.get(PRODUCTS, [])
            for i, data in enumerate(products):
                if data["id"] == product_id:
                    products[i] = replace(Product.from_dict(data), **changes).to_dict()
                    break
            else:
                return False
            await tx.set(PRODUCTS, products)

        _logger.info(f"Product {product_id} updated: {sorted(changes)}")
        return True

    async def delete_product(self, product_id: str) -> bool:
        """
        Remove a product. Carts still holding it keep their copy.
        Returns False if no product has this id.
        """
        async with self._kv.transaction() as tx:
            products = await tx.get(PRODUCTS, [])
            kept = [p for p in products if p["id"] != product_id]
            if len(kept) == len(products):
                return False
            await tx.set(PRODUCTS, kept)

        _logger.info(f"Product {product_id} deleted")
        return True
