from sqlalchemy import Column, String, Integer
from app.db.session import Base

ORDER_COUNTER_ID = "order_counter"


class Counter(Base):
    """Named sequence rows. `order_counter` holds the last issued order number."""

    __tablename__ = "counters"

    id = Column(String(50), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
