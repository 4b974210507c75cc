from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.cart import CartItemAdd, CartItemUpdate
from app.services import cart as cart_service
from app.services.auth import get_current_user

router = APIRouter(prefix="/api/cart", tags=["Cart"])


def _cart_response(cart, message: str = None) -> dict:
    body = {"success": True, "data": {"cart": cart_service.serialize_cart(cart)}}
    if message:
        body["message"] = message
    return body


@router.get("")
@router.get("/")
def get_cart(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return _cart_response(cart_service.get_cart(db, user))


@router.post("")
@router.post("/")
@router.post("/items")
def add_item(payload: CartItemAdd, db: Session = Depends(get_db), user=Depends(get_current_user)):
    cart = cart_service.add_item(db, user, payload.product_id, payload.quantity)
    return _cart_response(cart, "Item adicionado ao carrinho")


@router.put("/items/{item_id}")
def update_item(item_id: str, payload: CartItemUpdate, db: Session = Depends(get_db),
                user=Depends(get_current_user)):
    cart = cart_service.update_item(db, user, item_id, payload.quantity)
    return _cart_response(cart, "Carrinho atualizado")


@router.delete("/items/{item_id}")
def remove_item(item_id: str, db: Session = Depends(get_db), user=Depends(get_current_user)):
    cart = cart_service.remove_item(db, user, item_id)
    return _cart_response(cart, "Item removido do carrinho")


@router.delete("")
@router.delete("/")
def clear_cart(db: Session = Depends(get_db), user=Depends(get_current_user)):
    cart = cart_service.clear_cart(db, user)
    return _cart_response(cart, "Carrinho limpo")
