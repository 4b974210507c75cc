"""Order placement and lifecycle.

An order is created in a single transaction: the shared `order_counter` row
is incremented, the Order, its frozen OrderItems and the first history row
are inserted and, when the cart was the source, the cart is emptied. Any
failure rolls all of it back, so a counter value is never consumed without
the matching order row.

Status machine::

    PENDENTE   -> EM_PREPARO | CANCELADO
    EM_PREPARO -> CONCLUIDO  | CANCELADO (admin, policy flag)
    CONCLUIDO, CANCELADO are terminal
"""
import logging
import math
from collections import OrderedDict
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.timezone_utils import local_day_range_to_utc
from app.models.counter import Counter, ORDER_COUNTER_ID
from app.models.order import Order, OrderItem, OrderStatus, OrderStatusHistory
from app.models.user import RoleEnum, User
from app.services.cart import clear_items, get_or_create_cart
from app.services.catalog import get_orderable_product, to_money

logger = logging.getLogger("app.orders")

# transitions an admin may apply through the status endpoint
ADMIN_TRANSITIONS = {
    OrderStatus.PENDENTE: {OrderStatus.EM_PREPARO, OrderStatus.CANCELADO},
    OrderStatus.EM_PREPARO: {OrderStatus.CONCLUIDO, OrderStatus.CANCELADO},
    OrderStatus.CONCLUIDO: set(),
    OrderStatus.CANCELADO: set(),
}

# states from which the customer may cancel their own order
CUSTOMER_CANCELLABLE = {OrderStatus.PENDENTE}


def is_admin(user: User) -> bool:
    role = getattr(user, "role", None)
    return (role.value if hasattr(role, "value") else str(role)) == RoleEnum.ADMIN.value


def allowed_transitions(current: OrderStatus, by_admin: bool) -> set:
    if not by_admin:
        return {OrderStatus.CANCELADO} if current in CUSTOMER_CANCELLABLE else set()
    targets = set(ADMIN_TRANSITIONS.get(current, set()))
    if current == OrderStatus.EM_PREPARO and not settings.ALLOW_ADMIN_CANCEL_IN_PREPARATION:
        targets.discard(OrderStatus.CANCELADO)
    return targets


def next_order_number(db: Session) -> int:
    """Increment the shared counter inside the caller's transaction.

    The UPDATE takes the row lock (or the SQLite write lock) before the value
    is read back, so two concurrent transactions can never read the same
    number. Nothing is committed here.
    """
    updated = (
        db.query(Counter)
        .filter(Counter.id == ORDER_COUNTER_ID)
        .update({Counter.value: Counter.value + 1}, synchronize_session=False)
    )
    if not updated:
        # first order ever on a database that was not seeded by create_db()
        db.add(Counter(id=ORDER_COUNTER_ID, value=1))
        db.flush()
        return 1
    return db.query(Counter.value).filter(Counter.id == ORDER_COUNTER_ID).scalar()


def _merge_lines(lines: Iterable) -> "OrderedDict[str, int]":
    merged = OrderedDict()
    for line in lines:
        merged[line.product_id] = merged.get(line.product_id, 0) + line.quantity
    return merged


def create_order(db: Session, user: User, items: Optional[list] = None, notes: Optional[str] = None) -> Order:
    from_cart = not items
    cart = None
    if from_cart:
        cart = get_or_create_cart(db, user)
        lines = _merge_lines(cart.items)
    else:
        lines = _merge_lines(items)

    if not lines:
        raise ValidationError("Carrinho vazio: adicione itens antes de finalizar o pedido")

    # validate everything before touching the counter
    snapshot = []
    total = Decimal("0.00")
    for product_id, quantity in lines.items():
        if quantity < 1:
            raise ValidationError("Quantidade deve ser um número inteiro positivo")
        product = get_orderable_product(db, product_id)
        unit_price = to_money(product.price)
        subtotal = unit_price * quantity
        total += subtotal
        snapshot.append((product, quantity, unit_price, subtotal))

    try:
        number = next_order_number(db)
        order = Order(
            order_number=number,
            user_id=user.id,
            status=OrderStatus.PENDENTE,
            total=total,
            notes=(notes or None),
        )
        for product, quantity, unit_price, subtotal in snapshot:
            order.items.append(OrderItem(
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                unit_price=unit_price,
                subtotal=subtotal,
            ))
        order.history.append(OrderStatusHistory(status=OrderStatus.PENDENTE, changed_by=user.id))
        db.add(order)
        if from_cart:
            clear_items(db, cart)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to create order for user=%s", user.id)
        raise

    db.refresh(order)
    logger.info("order created number=%s id=%s user=%s total=%s source=%s",
                order.order_number, order.id, user.id, order.total, "cart" if from_cart else "items")
    return order


def get_order_or_404(db: Session, order_id: str) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Pedido não encontrado")
    return order


def get_order_for_user(db: Session, user: User, order_id: str) -> Order:
    """Owner (or admin) view of a single order; other users get 404."""
    order = get_order_or_404(db, order_id)
    if order.user_id != user.id and not is_admin(user):
        raise NotFoundError("Pedido não encontrado")
    return order


def change_status(db: Session, order: Order, new_status: OrderStatus, actor: User, by_admin: bool) -> Order:
    current = order.status
    if new_status not in allowed_transitions(current, by_admin):
        raise ConflictError(f"Transição de status inválida: {current.value} -> {new_status.value}")

    order.status = new_status
    order.history.append(OrderStatusHistory(status=new_status, changed_by=actor.id))
    db.add(order)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(order)
    logger.info("order %s status %s -> %s by=%s", order.order_number, current.value, new_status.value, actor.id)
    return order


def cancel_own_order(db: Session, user: User, order_id: str) -> Order:
    order = get_order_or_404(db, order_id)
    if order.user_id != user.id:
        raise NotFoundError("Pedido não encontrado")
    if order.status not in CUSTOMER_CANCELLABLE:
        raise ConflictError(f"Pedido não pode ser cancelado no status {order.status.value}")
    return change_status(db, order, OrderStatus.CANCELADO, user, by_admin=False)


def update_status_as_admin(db: Session, admin: User, order_id: str, new_status: OrderStatus) -> Order:
    order = get_order_or_404(db, order_id)
    return change_status(db, order, new_status, admin, by_admin=True)


def parse_date_bounds(start_date: Optional[str], end_date: Optional[str]):
    """Turn local startDate/endDate strings into an inclusive UTC range."""
    start_utc = end_utc = None
    if start_date:
        start_utc, _ = local_day_range_to_utc(start_date)
        if start_utc is None:
            raise ValidationError("startDate inválida, use YYYY-MM-DD")
    if end_date:
        _, end_utc = local_day_range_to_utc(end_date)
        if end_utc is None:
            raise ValidationError("endDate inválida, use YYYY-MM-DD")
    if start_utc and end_utc and start_utc > end_utc:
        raise ValidationError("startDate deve ser anterior a endDate")
    return start_utc, end_utc


def list_orders(db: Session, user_id: Optional[str] = None, status: Optional[OrderStatus] = None,
                start_date: Optional[str] = None, end_date: Optional[str] = None,
                page: int = 1, limit: int = 20):
    """Filtered, paginated listing, most recent first. Returns (orders, pagination)."""
    query = db.query(Order)
    if user_id:
        query = query.filter(Order.user_id == user_id)
    if status:
        query = query.filter(Order.status == status)
    start_utc, end_utc = parse_date_bounds(start_date, end_date)
    if start_utc:
        query = query.filter(Order.created_at >= start_utc)
    if end_utc:
        query = query.filter(Order.created_at <= end_utc)

    total = query.count()
    rows = (
        query.order_by(Order.created_at.desc(), Order.order_number.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    pagination = {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if total else 0,
    }
    return rows, pagination
