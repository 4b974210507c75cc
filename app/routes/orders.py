from fastapi import APIRouter, Depends, Query, status as http_status
import logging
from typing import Optional
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.order import OrderStatus
from app.schemas.common import Pagination
from app.schemas.order import OrderCreate, OrderRead, OrderStatusUpdate
from app.services import orders as order_service
from app.services.auth import get_current_user, require_admin

router = APIRouter(prefix="/api/orders", tags=["Orders"])

logger = logging.getLogger(__name__)


def _listing(rows, pagination: dict) -> dict:
    return {
        "success": True,
        "data": {
            "orders": [OrderRead.model_validate(o) for o in rows],
            "pagination": Pagination(**pagination),
        },
    }


@router.get("")
@router.get("/")
def list_my_orders(
    status: Optional[OrderStatus] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    rows, pagination = order_service.list_orders(
        db, user_id=user.id, status=status, start_date=startDate, end_date=endDate, page=page, limit=limit,
    )
    return _listing(rows, pagination)


@router.post("", status_code=http_status.HTTP_201_CREATED)
@router.post("/", status_code=http_status.HTTP_201_CREATED)
def create_order(payload: OrderCreate, db: Session = Depends(get_db), user=Depends(get_current_user)):
    order = order_service.create_order(db, user, items=payload.items, notes=payload.notes)
    return {"success": True, "message": "Pedido criado com sucesso", "data": {"order": OrderRead.model_validate(order)}}


# /admin/* must be declared before /{order_id}
@router.get("/admin/all")
def list_all_orders(
    status: Optional[OrderStatus] = None,
    userId: Optional[str] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    rows, pagination = order_service.list_orders(
        db, user_id=userId, status=status, start_date=startDate, end_date=endDate, page=page, limit=limit,
    )
    return _listing(rows, pagination)


@router.patch("/admin/{order_id}/status")
def update_order_status(order_id: str, payload: OrderStatusUpdate, db: Session = Depends(get_db),
                        admin=Depends(require_admin)):
    order = order_service.update_status_as_admin(db, admin, order_id, payload.status)
    return {"success": True, "message": "Status do pedido atualizado", "data": {"order": OrderRead.model_validate(order)}}


@router.get("/{order_id}")
def get_order(order_id: str, db: Session = Depends(get_db), user=Depends(get_current_user)):
    order = order_service.get_order_for_user(db, user, order_id)
    return {"success": True, "data": {"order": OrderRead.model_validate(order)}}


@router.patch("/{order_id}/cancel")
def cancel_order(order_id: str, db: Session = Depends(get_db), user=Depends(get_current_user)):
    order = order_service.cancel_own_order(db, user, order_id)
    return {"success": True, "message": "Pedido cancelado", "data": {"order": OrderRead.model_validate(order)}}
