from fastapi import APIRouter, Depends, File, Query, UploadFile, status
import logging
import math
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.product import Product as ProductModel
from app.schemas.common import MAX_PRICE, Pagination
from app.schemas.product import AvailabilityUpdate, ProductCreate, ProductRead, ProductUpdate
from app.services.auth import require_admin
from app.services.catalog import get_category_or_404, get_product_or_404, to_money
from app.utils.storage import discard_product_image, store_product_image

router = APIRouter(prefix="/api/products", tags=["Products"])

logger = logging.getLogger(__name__)


def _page(query, page: int, limit: int):
    total = query.count()
    rows = query.order_by(ProductModel.name.asc(), ProductModel.id.asc()).offset((page - 1) * limit).limit(limit).all()
    pagination = Pagination(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit) if total else 0)
    return [ProductRead.model_validate(r) for r in rows], pagination


@router.get("")
@router.get("/")
def list_products(
    search: Optional[str] = None,
    categoryId: Optional[str] = None,
    minPrice: Optional[float] = Query(default=None, ge=0, le=MAX_PRICE),
    maxPrice: Optional[float] = Query(default=None, ge=0, le=MAX_PRICE),
    includeUnavailable: bool = False,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    q = db.query(ProductModel)
    if not includeUnavailable:
        q = q.filter(ProductModel.is_available.is_(True))
    if search and search.strip():
        term = f"%{search.strip()}%"
        q = q.filter(or_(ProductModel.name.ilike(term), ProductModel.description.ilike(term)))
    if categoryId:
        q = q.filter(ProductModel.category_id == categoryId)
    if minPrice is not None:
        q = q.filter(ProductModel.price >= to_money(minPrice))
    if maxPrice is not None:
        q = q.filter(ProductModel.price <= to_money(maxPrice))
    products, pagination = _page(q, page, limit)
    return {"success": True, "data": {"products": products, "pagination": pagination}}


@router.get("/category/{category_id}")
def list_products_by_category(category_id: str, db: Session = Depends(get_db)):
    category = get_category_or_404(db, category_id)
    rows = (
        db.query(ProductModel)
        .filter(ProductModel.category_id == category.id, ProductModel.is_available.is_(True))
        .order_by(ProductModel.name.asc())
        .all()
    )
    return {"success": True, "data": {"products": [ProductRead.model_validate(r) for r in rows]}}


@router.get("/{product_id}")
def get_product(product_id: str, db: Session = Depends(get_db)):
    p = get_product_or_404(db, product_id)
    return {"success": True, "data": {"product": ProductRead.model_validate(p)}}


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductCreate, db: Session = Depends(get_db), admin=Depends(require_admin)):
    category = get_category_or_404(db, payload.category_id)
    p = ProductModel(
        name=payload.name.strip(),
        description=payload.description,
        price=to_money(payload.price),
        image_url=payload.image_url,
        is_available=payload.is_available,
        category_id=category.id,
    )
    db.add(p)
    db.commit()
    db.refresh(p)
    logger.info("created product id=%s category=%s price=%s", p.id, p.category_id, p.price)
    return {"success": True, "message": "Produto criado com sucesso", "data": {"product": ProductRead.model_validate(p)}}


@router.put("/{product_id}")
def update_product(product_id: str, payload: ProductUpdate, db: Session = Depends(get_db), admin=Depends(require_admin)):
    p = get_product_or_404(db, product_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("category_id"):
        get_category_or_404(db, changes["category_id"])
    for field, value in changes.items():
        if value is None and field in ("name", "price", "category_id", "is_available"):
            continue
        if field == "price":
            value = to_money(value)
        elif field == "name":
            value = value.strip()
        setattr(p, field, value)
    db.commit()
    db.refresh(p)
    logger.info("updated product id=%s fields=%s", p.id, sorted(changes))
    return {"success": True, "message": "Produto atualizado com sucesso", "data": {"product": ProductRead.model_validate(p)}}


@router.delete("/{product_id}")
def delete_product(product_id: str, db: Session = Depends(get_db), admin=Depends(require_admin)):
    p = get_product_or_404(db, product_id)
    # order history keeps pointing at the row, so it is only hidden
    p.is_available = False
    db.commit()
    logger.info("product soft-deleted id=%s", p.id)
    return {"success": True, "message": "Produto removido com sucesso"}


@router.patch("/{product_id}/availability")
def set_availability(product_id: str, payload: AvailabilityUpdate, db: Session = Depends(get_db),
                     admin=Depends(require_admin)):
    p = get_product_or_404(db, product_id)
    p.is_available = payload.is_available
    db.commit()
    db.refresh(p)
    logger.info("product availability id=%s available=%s", p.id, p.is_available)
    return {"success": True, "data": {"product": ProductRead.model_validate(p)}}


@router.post("/{product_id}/image")
async def upload_product_image(product_id: str, image: UploadFile = File(...), db: Session = Depends(get_db),
                               admin=Depends(require_admin)):
    p = get_product_or_404(db, product_id)
    content = await image.read()
    url = store_product_image(content, image.content_type)
    previous = p.image_url
    p.image_url = url
    db.commit()
    db.refresh(p)
    if previous and previous != url:
        discard_product_image(previous)
    return {"success": True, "message": "Imagem enviada com sucesso", "data": {"product": ProductRead.model_validate(p)}}
