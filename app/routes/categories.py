from fastapi import APIRouter, Depends, status
import logging
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError
from app.db.session import get_db
from app.models.category import Category as CategoryModel
from app.models.product import Product as ProductModel
from app.schemas.category import CategoryCreate, CategoryRead, CategoryReorderRequest, CategoryUpdate
from app.services.auth import require_admin
from app.services.catalog import get_category_or_404

router = APIRouter(prefix="/api/categories", tags=["Categories"])

logger = logging.getLogger(__name__)


def _ensure_unique_name(db: Session, name: str, exclude_id: str = None):
    q = db.query(CategoryModel).filter(func.lower(CategoryModel.name) == name.strip().lower())
    if exclude_id:
        q = q.filter(CategoryModel.id != exclude_id)
    if q.first():
        raise ConflictError("Já existe uma categoria com este nome")


def _with_count(db: Session, category: CategoryModel) -> dict:
    data = CategoryRead.model_validate(category).model_dump(by_alias=True)
    data["productCount"] = db.query(func.count(ProductModel.id)).filter(ProductModel.category_id == category.id).scalar() or 0
    return data


@router.get("")
@router.get("/")
def list_categories(includeInactive: bool = False, db: Session = Depends(get_db)):
    q = db.query(CategoryModel)
    if not includeInactive:
        q = q.filter(CategoryModel.is_active.is_(True))
    rows = q.order_by(CategoryModel.sort_order.asc(), CategoryModel.name.asc()).all()
    return {"success": True, "data": {"categories": [CategoryRead.model_validate(r) for r in rows]}}


@router.put("/reorder/all")
def reorder_categories(payload: CategoryReorderRequest, db: Session = Depends(get_db), admin=Depends(require_admin)):
    ids = [c.id for c in payload.categories]
    rows = {c.id: c for c in db.query(CategoryModel).filter(CategoryModel.id.in_(ids)).all()}
    missing = [cid for cid in ids if cid not in rows]
    if missing:
        raise NotFoundError(f"Categoria não encontrada: {missing[0]}")
    for entry in payload.categories:
        rows[entry.id].sort_order = entry.sort_order
    db.commit()
    logger.info("categories reordered count=%s", len(ids))
    ordered = db.query(CategoryModel).order_by(CategoryModel.sort_order.asc(), CategoryModel.name.asc()).all()
    return {"success": True, "message": "Categorias reordenadas", "data": {"categories": [CategoryRead.model_validate(r) for r in ordered]}}


@router.get("/{category_id}")
def get_category(category_id: str, db: Session = Depends(get_db)):
    category = get_category_or_404(db, category_id)
    return {"success": True, "data": {"category": _with_count(db, category)}}


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED)
def create_category(payload: CategoryCreate, db: Session = Depends(get_db), admin=Depends(require_admin)):
    _ensure_unique_name(db, payload.name)
    c = CategoryModel(
        name=payload.name.strip(),
        description=payload.description,
        sort_order=payload.sort_order,
        is_active=payload.is_active,
    )
    db.add(c)
    db.commit()
    db.refresh(c)
    logger.info("created category id=%s name=%r", c.id, c.name)
    return {"success": True, "message": "Categoria criada com sucesso", "data": {"category": CategoryRead.model_validate(c)}}


@router.put("/{category_id}")
def update_category(category_id: str, payload: CategoryUpdate, db: Session = Depends(get_db), admin=Depends(require_admin)):
    c = get_category_or_404(db, category_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name"):
        _ensure_unique_name(db, changes["name"], exclude_id=c.id)
        changes["name"] = changes["name"].strip()
    for field, value in changes.items():
        if value is None and field in ("name", "sort_order", "is_active"):
            # not nullable columns: explicit null means "leave as is"
            continue
        setattr(c, field, value)
    db.commit()
    db.refresh(c)
    return {"success": True, "message": "Categoria atualizada com sucesso", "data": {"category": CategoryRead.model_validate(c)}}


@router.delete("/{category_id}")
def delete_category(category_id: str, db: Session = Depends(get_db), admin=Depends(require_admin)):
    c = get_category_or_404(db, category_id)
    in_use = db.query(func.count(ProductModel.id)).filter(ProductModel.category_id == c.id).scalar() or 0
    if in_use:
        raise ConflictError("Categoria possui produtos vinculados e não pode ser removida")
    db.delete(c)
    db.commit()
    logger.info("deleted category id=%s", category_id)
    return {"success": True, "message": "Categoria removida com sucesso"}
