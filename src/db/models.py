# provide dataclass models, stored as camelCase JSON records

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union

ROLES: Tuple[str, ...] = ("user", "admin")
# lifecycle order, forward only
ORDER_STATUSES: Tuple[str, ...] = ("pending", "processing", "shipped", "delivered")


def new_id() -> str:
    return uuid.uuid4().hex


def now() -> datetime:
    return datetime.now()


def _parse_ts(val: Optional[str]) -> datetime:
    if not val:
        return datetime.min
    return datetime.fromisoformat(val)


@dataclass(frozen=True)
class Account:
    id: str
    email: str
    password: str  # compared verbatim
    name: str
    role: str  # "user" or "admin"
    created_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "password": self.password,
            "name": self.name,
            "role": self.role,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Account:
        return cls(
            id=data["id"],
            email=data["email"],
            password=data["password"],
            name=data.get("name", ""),
            role=data.get("role", "user"),
            created_at=_parse_ts(data.get("createdAt")),
        )


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    description: str
    price: float
    category: str
    stock: int
    image: str  # URL or data URL
    admin_id: str  # account that created it
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "stock": self.stock,
            "image": self.image,
            "adminId": self.admin_id,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Product:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            price=data.get("price", 0.0),
            category=data.get("category", ""),
            stock=data.get("stock", 0),
            image=data.get("image", ""),
            admin_id=data.get("adminId", ""),
            created_at=_parse_ts(data.get("createdAt")),
        )


@dataclass(frozen=True)
class CartLine:
    """
    A product snapshot plus the chosen quantity.
    Stored flat: the product's fields with an extra `quantity`.
    """

    product: Product
    quantity: int

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity

    def with_quantity(self, quantity: int) -> CartLine:
        return replace(self, quantity=quantity)

    def to_dict(self) -> Dict[str, Any]:
        return {**self.product.to_dict(), "quantity": self.quantity}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CartLine:
        return cls(product=Product.from_dict(data), quantity=int(data["quantity"]))


@dataclass(frozen=True)
class CardPayment:
    holder: str
    last4: str
    expiry: str

    method = "card"

    @classmethod
    def from_form(
        cls, holder: str, number: str, expiry: str, cvv: str
    ) -> Optional[CardPayment]:
        """
        Build card details from raw form input.
        Returns None if any field is blank; the values are not checked further.
        The card number is reduced to its last four digits and the CVV dropped.
        """
        holder, number, expiry, cvv = (
            (v or "").strip() for v in (holder, number, expiry, cvv)
        )
        if not (holder and number and expiry and cvv):
            return None
        digits = "".join(ch for ch in number if ch.isdigit()) or number
        return cls(holder=holder, last4=digits[-4:], expiry=expiry)

    def to_dict(self) -> Dict[str, Any]:
        return {"holder": self.holder, "last4": self.last4, "expiry": self.expiry}

    def describe(self) -> str:
        return f"Card ending {self.last4} ({self.holder})"


@dataclass(frozen=True)
class TransferPayment:
    reference: str  # bank transfer reference number

    method = "manual"

    def to_dict(self) -> Dict[str, Any]:
        return {"reference": self.reference}

    def describe(self) -> str:
        return f"Bank transfer, ref. {self.reference}"


PaymentDetails = Union[CardPayment, TransferPayment]


def payment_from_dict(
    method: str, data: Optional[Dict[str, Any]]
) -> Optional[PaymentDetails]:
    if not data:
        return None
    if method == "card":
        return CardPayment(
            holder=data.get("holder", ""),
            last4=data.get("last4", ""),
            expiry=data.get("expiry", ""),
        )
    return TransferPayment(reference=data.get("reference", ""))


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    items: Tuple[CartLine, ...]  # frozen at checkout
    total: float
    payment_method: str  # "card" or "manual"
    payment: Optional[PaymentDetails]
    status: str
    created_at: datetime

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "items": [line.to_dict() for line in self.items],
            "total": self.total,
            "paymentMethod": self.payment_method,
            "paymentDetails": self.payment.to_dict() if self.payment else None,
            "status": self.status,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Order:
        # orders saved before payment methods existed were all manual/pending
        method = data.get("paymentMethod") or "manual"
        return cls(
            id=data["id"],
            user_id=data.get("userId", ""),
            items=tuple(CartLine.from_dict(i) for i in data.get("items", [])),
            total=data.get("total", 0.0),
            payment_method=method,
            payment=payment_from_dict(method, data.get("paymentDetails")),
            status=data.get("status") or "pending",
            created_at=_parse_ts(data.get("createdAt")),
        )
