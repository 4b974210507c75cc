from pydantic import Field
from typing import List, Optional

from app.schemas.common import CamelModel, UtcDateTime
from app.schemas.product import ProductRead


class CartItemAdd(CamelModel):
    product_id: str
    # absent or null means 1
    quantity: Optional[int] = Field(default=None, ge=1)


class CartItemUpdate(CamelModel):
    # zero or negative removes the line
    quantity: int


class CartItemRead(CamelModel):
    id: str
    product_id: str
    quantity: int
    product: ProductRead
    subtotal: float
    created_at: Optional[UtcDateTime] = None


class CartRead(CamelModel):
    id: str
    items: List[CartItemRead] = []
    total: float
    item_count: int
