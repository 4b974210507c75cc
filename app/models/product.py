from sqlalchemy import Column, String, Boolean, Text, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from app.db.session import Base, generate_uuid
from app.core.timezone_utils import utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    # relative /uploads/... path or a public object-storage URL
    image_url = Column(String(500), nullable=True)
    # soft delete flag: unavailable products stay readable by id
    is_available = Column(Boolean, nullable=False, default=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    category = relationship("Category", back_populates="products", lazy="joined")
