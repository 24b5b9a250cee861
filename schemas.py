from __future__ import annotations
from datetime import datetime, timezone
from typing import Annotated, Any, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

# Each stored class => one collection, lowercased name


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    price: float = Field(gt=0)
    size: str
    tag: str


class CartLine(BaseModel):
    # ids are stored as text; the storefront sends either form
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: Optional[str] = None
    name: Optional[str] = None
    price: Any = None
    qty: Any = None


# Lines that don't look like a CartLine are kept as sent
CartEntry = Annotated[Union[CartLine, Any], Field(union_mode="left_to_right")]


class OrderIn(BaseModel):
    """Order submission as posted by the storefront.

    Only presence is checked, by the endpoint, so that all rejections
    share one response. Numbers sent for text fields are stored as text.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    cart: Optional[list[CartEntry]] = None

    def is_complete(self) -> bool:
        return bool(self.name and self.phone and self.address and self.cart)


class Order(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    cart: list[CartEntry] = Field(default_factory=list)
    createdAt: datetime = Field(default_factory=utcnow)


class OrderCreated(BaseModel):
    message: str = "Order received"
    orderId: str


class Message(BaseModel):
    message: str
