from pydantic import Field
from typing import Optional

from app.schemas.common import MAX_PRICE, CamelModel, Name, UtcDateTime
from app.schemas.category import CategorySummary


class ProductCreate(CamelModel):
    name: Name(255)
    description: Optional[str] = None
    price: float = Field(ge=0, le=MAX_PRICE, allow_inf_nan=False)
    category_id: str
    image_url: Optional[str] = None
    is_available: bool = True


class ProductUpdate(CamelModel):
    name: Optional[Name(255)] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0, le=MAX_PRICE, allow_inf_nan=False)
    category_id: Optional[str] = None
    image_url: Optional[str] = None
    is_available: Optional[bool] = None


class AvailabilityUpdate(CamelModel):
    is_available: bool


class ProductRead(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float
    image_url: Optional[str] = None
    is_available: bool
    category_id: str
    category: Optional[CategorySummary] = None
    created_at: Optional[UtcDateTime] = None
    updated_at: Optional[UtcDateTime] = None
