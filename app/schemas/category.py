from pydantic import Field
from typing import List, Optional

from app.schemas.common import CamelModel, Name, UtcDateTime


class CategoryCreate(CamelModel):
    name: Name(100)
    description: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


class CategoryUpdate(CamelModel):
    name: Optional[Name(100)] = None
    description: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryRead(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    sort_order: int
    is_active: bool
    created_at: Optional[UtcDateTime] = None
    updated_at: Optional[UtcDateTime] = None


class CategorySummary(CamelModel):
    id: str
    name: str


class CategoryOrder(CamelModel):
    id: str
    sort_order: int


class CategoryReorderRequest(CamelModel):
    categories: List[CategoryOrder] = Field(min_length=1)
