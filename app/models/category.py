from sqlalchemy import Column, String, Integer, Text, Boolean, DateTime
from sqlalchemy.orm import relationship
from app.db.session import Base, generate_uuid
from app.core.timezone_utils import utcnow


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    products = relationship("Product", back_populates="category")
