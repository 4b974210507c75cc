"""Per-user cart: one Cart row per user, one CartItem row per product."""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.cart import Cart, CartItem
from app.models.user import User
from app.schemas.cart import CartItemRead, CartRead
from app.schemas.product import ProductRead
from app.services.catalog import get_orderable_product, to_money

logger = logging.getLogger(__name__)


def get_or_create_cart(db: Session, user: User) -> Cart:
    cart = db.query(Cart).filter(Cart.user_id == user.id).first()
    if cart is None:
        # users are created with a cart; this only covers rows inserted by hand
        cart = Cart(user_id=user.id)
        db.add(cart)
        db.commit()
        db.refresh(cart)
        logger.info("created missing cart for user id=%s", user.id)
    return cart


def cart_total(cart: Cart) -> Decimal:
    return sum((to_money(it.product.price) * it.quantity for it in cart.items), Decimal("0.00"))


def serialize_cart(cart: Cart) -> CartRead:
    items = [
        CartItemRead(
            id=it.id,
            product_id=it.product_id,
            quantity=it.quantity,
            product=ProductRead.model_validate(it.product),
            subtotal=float(to_money(it.product.price) * it.quantity),
            created_at=it.created_at,
        )
        for it in cart.items
    ]
    return CartRead(
        id=cart.id,
        items=items,
        total=float(cart_total(cart)),
        item_count=sum(it.quantity for it in cart.items),
    )


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def _reload(db: Session, cart: Cart) -> Cart:
    db.refresh(cart)
    # items is selectin-loaded; expire it so the next access sees the new rows
    db.expire(cart, ["items"])
    return cart


def get_cart(db: Session, user: User) -> Cart:
    return get_or_create_cart(db, user)


def add_item(db: Session, user: User, product_id: str, quantity: Optional[int] = None) -> Cart:
    quantity = 1 if quantity is None else quantity
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        raise ValidationError("Quantidade deve ser um número inteiro positivo")

    product = get_orderable_product(db, product_id)
    cart = get_or_create_cart(db, user)

    item = db.query(CartItem).filter(CartItem.cart_id == cart.id, CartItem.product_id == product.id).first()
    if item:
        item.quantity += quantity
    else:
        item = CartItem(cart_id=cart.id, product_id=product.id, quantity=quantity)
    db.add(item)
    _commit(db)
    logger.info("cart add user=%s product=%s qty=%s", user.id, product.id, quantity)
    return _reload(db, cart)


def _get_own_item(db: Session, cart: Cart, item_id: str) -> CartItem:
    item = db.query(CartItem).filter(CartItem.id == item_id, CartItem.cart_id == cart.id).first()
    if not item:
        raise NotFoundError("Item não encontrado no carrinho")
    return item


def update_item(db: Session, user: User, item_id: str, quantity: int) -> Cart:
    """Set the quantity of a cart line. Zero or negative removes the line."""
    cart = get_or_create_cart(db, user)
    item = _get_own_item(db, cart, item_id)
    if quantity <= 0:
        db.delete(item)
    else:
        item.quantity = quantity
        db.add(item)
    _commit(db)
    return _reload(db, cart)


def remove_item(db: Session, user: User, item_id: str) -> Cart:
    cart = get_or_create_cart(db, user)
    item = _get_own_item(db, cart, item_id)
    db.delete(item)
    _commit(db)
    return _reload(db, cart)


def clear_items(db: Session, cart: Cart) -> int:
    """Delete every line of the cart in one statement without committing."""
    return db.query(CartItem).filter(CartItem.cart_id == cart.id).delete(synchronize_session=False)


def clear_cart(db: Session, user: User) -> Cart:
    cart = get_or_create_cart(db, user)
    removed = clear_items(db, cart)
    _commit(db)
    logger.info("cart cleared user=%s removed=%s", user.id, removed)
    return _reload(db, cart)
