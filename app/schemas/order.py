from pydantic import AliasChoices, Field
from typing import List, Optional

from app.models.order import OrderStatus
from app.schemas.common import CamelModel, UtcDateTime
from app.schemas.user import UserSummary


class OrderItemIn(CamelModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class OrderCreate(CamelModel):
    # when omitted or empty the order is built from the cart
    items: Optional[List[OrderItemIn]] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class OrderStatusUpdate(CamelModel):
    status: OrderStatus


class OrderItemRead(CamelModel):
    id: str
    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    subtotal: float


class StatusHistoryRead(CamelModel):
    id: str
    status: OrderStatus
    changed_by: Optional[str] = None
    created_at: Optional[UtcDateTime] = None


class OrderRead(CamelModel):
    id: str
    order_number: int
    user_id: str
    status: OrderStatus
    total: float
    notes: Optional[str] = None
    created_at: Optional[UtcDateTime] = None
    updated_at: Optional[UtcDateTime] = None
    items: List[OrderItemRead] = []
    status_history: List[StatusHistoryRead] = Field(
        default_factory=list,
        validation_alias=AliasChoices("history", "status_history", "statusHistory"),
        serialization_alias="statusHistory",
    )
    user: Optional[UserSummary] = None
