"""Read-only aggregations for the admin dashboard.

Revenue figures never include CANCELADO orders. Day, week and hour buckets
are computed in the canteen's local timezone.
"""
from collections import Counter as Tally, OrderedDict
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.core.timezone_utils import local_day_range_to_utc, local_today, to_local
from app.models.order import Order, OrderItem, OrderStatus
from app.models.product import Product
from app.models.user import RoleEnum, User
from app.services.orders import parse_date_bounds

SALES_PERIODS = ("day", "week", "month")
DEFAULT_SALES_WINDOW_DAYS = 30
# longest zero-filled window per grouping
MAX_SALES_WINDOW_DAYS = {"day": 366, "week": 3 * 366, "month": 10 * 366}


def _money(value) -> float:
    return round(float(value or 0), 2)


def _not_cancelled(query):
    return query.filter(Order.status != OrderStatus.CANCELADO)


def get_stats(db: Session) -> dict:
    total_orders = db.query(func.count(Order.id)).scalar() or 0
    paid_orders = _not_cancelled(db.query(func.count(Order.id))).scalar() or 0
    total_revenue = _not_cancelled(db.query(func.coalesce(func.sum(Order.total), 0))).scalar()

    today_start, today_end = local_day_range_to_utc(local_today().isoformat())
    today_filter = (Order.created_at >= today_start, Order.created_at <= today_end)
    orders_today = db.query(func.count(Order.id)).filter(*today_filter).scalar() or 0
    revenue_today = _not_cancelled(
        db.query(func.coalesce(func.sum(Order.total), 0)).filter(*today_filter)
    ).scalar()

    pending = db.query(func.count(Order.id)).filter(Order.status == OrderStatus.PENDENTE).scalar() or 0
    total_products = db.query(func.count(Product.id)).scalar() or 0
    available_products = db.query(func.count(Product.id)).filter(Product.is_available.is_(True)).scalar() or 0
    customers = db.query(func.count(User.id)).filter(User.role == RoleEnum.CLIENTE).scalar() or 0

    return {
        "totalOrders": int(total_orders),
        "totalRevenue": _money(total_revenue),
        "averageTicket": _money(Decimal(str(total_revenue or 0)) / paid_orders) if paid_orders else 0.0,
        "ordersToday": int(orders_today),
        "revenueToday": _money(revenue_today),
        "pendingOrders": int(pending),
        "totalProducts": int(total_products),
        "availableProducts": int(available_products),
        "totalCustomers": int(customers),
    }


def _bucket_key(day, period: str) -> str:
    if period == "week":
        # weeks start on Monday
        return (day - timedelta(days=day.weekday())).isoformat()
    if period == "month":
        return day.strftime("%Y-%m")
    return day.isoformat()


def get_sales(db: Session, period: str = "day", start_date: Optional[str] = None,
              end_date: Optional[str] = None) -> dict:
    """Revenue and order count per day/week/month, zero-filled, ascending."""
    if period not in SALES_PERIODS:
        raise ValidationError("period deve ser day, week ou month")

    if not start_date and not end_date:
        end_day = local_today()
        start_day = end_day - timedelta(days=DEFAULT_SALES_WINDOW_DAYS - 1)
        start_date, end_date = start_day.isoformat(), end_day.isoformat()
    start_utc, end_utc = parse_date_bounds(start_date, end_date)
    first = last = None
    if start_utc and end_utc:
        first, last = to_local(start_utc).date(), to_local(end_utc).date()
        if (last - first).days + 1 > MAX_SALES_WINDOW_DAYS[period]:
            raise ValidationError(
                f"Intervalo máximo para period={period} é de {MAX_SALES_WINDOW_DAYS[period]} dias"
            )

    query = _not_cancelled(db.query(Order.created_at, Order.total))
    if start_utc:
        query = query.filter(Order.created_at >= start_utc)
    if end_utc:
        query = query.filter(Order.created_at <= end_utc)
    rows = query.all()

    buckets = OrderedDict()
    if first is not None:
        for offset in range((last - first).days + 1):
            day = first + timedelta(days=offset)
            buckets.setdefault(_bucket_key(day, period), {"orders": 0, "revenue": Decimal("0")})

    for created_at, total in rows:
        key = _bucket_key(to_local(created_at).date(), period)
        bucket = buckets.setdefault(key, {"orders": 0, "revenue": Decimal("0")})
        bucket["orders"] += 1
        bucket["revenue"] += Decimal(str(total or 0))

    data = [
        {"period": key, "orders": b["orders"], "revenue": _money(b["revenue"])}
        for key, b in sorted(buckets.items())
    ]
    return {
        "period": period,
        "startDate": start_date,
        "endDate": end_date,
        "sales": data,
        "totalRevenue": _money(sum((b["revenue"] for b in buckets.values()), Decimal("0"))),
        "totalOrders": sum(b["orders"] for b in buckets.values()),
    }


def get_top_products(db: Session, limit: int = 10, start_date: Optional[str] = None,
                     end_date: Optional[str] = None) -> list:
    quantity_sold = func.sum(OrderItem.quantity).label("quantity_sold")
    revenue = func.coalesce(func.sum(OrderItem.subtotal), 0).label("revenue")
    query = (
        db.query(OrderItem.product_id, Product.name, quantity_sold, revenue)
        .join(Order, Order.id == OrderItem.order_id)
        .join(Product, Product.id == OrderItem.product_id)
        .filter(Order.status != OrderStatus.CANCELADO)
    )
    start_utc, end_utc = parse_date_bounds(start_date, end_date)
    if start_utc:
        query = query.filter(Order.created_at >= start_utc)
    if end_utc:
        query = query.filter(Order.created_at <= end_utc)

    rows = (
        query.group_by(OrderItem.product_id, Product.name)
        # product id breaks ties so the ranking is deterministic
        .order_by(quantity_sold.desc(), OrderItem.product_id.asc())
        .limit(limit)
        .all()
    )
    return [
        {"productId": pid, "name": name, "quantitySold": int(qty or 0), "revenue": _money(rev)}
        for pid, name, qty, rev in rows
    ]


def get_peak_hours(db: Session) -> dict:
    rows = _not_cancelled(db.query(Order.created_at)).all()
    tally = Tally(to_local(created_at).hour for (created_at,) in rows if created_at is not None)
    hours = [{"hour": h, "orders": tally.get(h, 0)} for h in range(24)]
    peak = max(hours, key=lambda h: (h["orders"], -h["hour"])) if rows else None
    return {"hours": hours, "peakHour": peak["hour"] if peak else None}


def get_orders_by_status(db: Session) -> list:
    counts = dict(db.query(Order.status, func.count(Order.id)).group_by(Order.status).all())
    return [{"status": s.value, "count": int(counts.get(s, 0))} for s in OrderStatus]


def get_recent_orders(db: Session, limit: int = 10) -> list:
    return (
        db.query(Order)
        .order_by(Order.created_at.desc(), Order.order_number.desc())
        .limit(limit)
        .all()
    )
