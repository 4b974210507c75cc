from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.category import Category
from app.models.product import Product

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Normalize floats/ints/strings to a 2-decimal Decimal."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def get_category_or_404(db: Session, category_id: str) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFoundError("Categoria não encontrada")
    return category


def get_product_or_404(db: Session, product_id: str) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Produto não encontrado")
    return product


def get_orderable_product(db: Session, product_id: str) -> Product:
    """Product that can go into a cart or order: must exist and be available."""
    product = get_product_or_404(db, product_id)
    if not product.is_available:
        raise ValidationError(f"Produto indisponível: {product.name}")
    return product
