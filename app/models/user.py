from sqlalchemy import Column, String, DateTime, Enum
from sqlalchemy.orm import relationship
from app.db.session import Base, generate_uuid
from app.core.timezone_utils import utcnow
import enum


class RoleEnum(str, enum.Enum):
    CLIENTE = "CLIENTE"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(150), nullable=False)
    phone = Column(String(30), nullable=True)
    # role is only changed by direct admin action on the database
    role = Column(Enum(RoleEnum), nullable=False, default=RoleEnum.CLIENTE, server_default=RoleEnum.CLIENTE.value)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    cart = relationship("Cart", back_populates="user", uselist=False, cascade="all, delete-orphan")
