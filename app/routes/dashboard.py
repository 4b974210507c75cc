from fastapi import APIRouter, Depends, Query
from typing import Optional
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.order import OrderRead
from app.services import dashboard as dashboard_service
from app.services.auth import require_admin

# every dashboard route is admin only
router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"], dependencies=[Depends(require_admin)])


@router.get("/stats")
def stats(db: Session = Depends(get_db)):
    """Headline numbers. Revenue excludes cancelled orders; "today" is the local day."""
    return {"success": True, "data": dashboard_service.get_stats(db)}


@router.get("/sales")
def sales(
    period: str = "day",
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return {"success": True, "data": dashboard_service.get_sales(db, period, startDate, endDate)}


@router.get("/top-products")
def top_products(
    limit: int = Query(default=10, ge=1, le=100),
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return {"success": True, "data": {"products": dashboard_service.get_top_products(db, limit, startDate, endDate)}}


@router.get("/peak-hours")
def peak_hours(db: Session = Depends(get_db)):
    return {"success": True, "data": dashboard_service.get_peak_hours(db)}


@router.get("/orders-by-status")
def orders_by_status(db: Session = Depends(get_db)):
    return {"success": True, "data": {"statuses": dashboard_service.get_orders_by_status(db)}}


@router.get("/recent-orders")
def recent_orders(limit: int = Query(default=10, ge=1, le=50), db: Session = Depends(get_db)):
    rows = dashboard_service.get_recent_orders(db, limit)
    return {"success": True, "data": {"orders": [OrderRead.model_validate(o) for o in rows]}}
