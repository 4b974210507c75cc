from sqlalchemy import create_engine, event
from sqlalchemy.pool import QueuePool
from sqlalchemy.orm import sessionmaker, declarative_base
from app.core.config import settings
import logging
import threading
import contextvars
import uuid

DATABASE_URL = settings.DATABASE_URL

# SQLAlchemy connect_args differ between SQLite and other DBs (e.g. MySQL)
connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # concurrent checkouts wait on the database lock instead of failing fast
    connect_args = {"check_same_thread": False, "timeout": 30}

# pool_pre_ping checks connections from the pool before using them, which
# avoids "MySQL server has gone away" errors on stale connections.
engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
    pool_recycle=settings.DB_POOL_RECYCLE,
    poolclass=QueuePool,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# --- Pool monitoring: log connects and checkouts to help diagnose excess connections ---
_pool_logger = logging.getLogger("app.db.pool")
_pool_logger.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))
_connect_count = 0
_checkout_count = 0
_checkin_count = 0
_pool_lock = threading.Lock()

# --- Per-request DB query counting using ContextVar ---
# The request middleware sets a one-element list per request and the cursor
# listener increments it in place (the endpoint runs in a copied context), so the total number of DB roundtrips per HTTP
# request can be logged.
request_db_query_count = contextvars.ContextVar("request_db_query_count", default=None)
_global_db_query_count = 0


@event.listens_for(engine, "connect")
def _on_connect(dbapi_connection, connection_record):
    global _connect_count
    with _pool_lock:
        _connect_count += 1
        cnt = _connect_count
    if cnt % settings.DB_LOG_EVERY_N == 0:
        _pool_logger.info("SQLAlchemy Pool CONNECT events: total opened=%s", cnt)


@event.listens_for(engine, "checkout")
def _on_checkout(dbapi_connection, connection_record, connection_proxy):
    global _checkout_count
    with _pool_lock:
        _checkout_count += 1
        cnt = _checkout_count
    if cnt % settings.DB_LOG_EVERY_N == 0:
        _pool_logger.info("SQLAlchemy Pool CHECKOUT events: total checkouts=%s", cnt)


@event.listens_for(engine, "checkin")
def _on_checkin(dbapi_connection, connection_record):
    global _checkin_count
    with _pool_lock:
        _checkin_count += 1
        cnt = _checkin_count
    if cnt % settings.DB_LOG_EVERY_N == 0:
        _pool_logger.info("SQLAlchemy Pool CHECKIN events: total checkins=%s", cnt)


@event.listens_for(engine, "before_cursor_execute")
def _on_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    counter = request_db_query_count.get()
    if counter is not None:
        counter[0] += 1
    global _global_db_query_count
    with _pool_lock:
        _global_db_query_count += 1


def get_global_db_queries_total() -> int:
    """Return the total number of DB roundtrips since process start."""
    return _global_db_query_count


def get_db():
    """FastAPI dependency that provides a scoped SQLAlchemy Session.

    The session is always closed after the request so its connection goes
    back to the pool.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_db():
    # Import models here so they are registered on the metadata
    import app.models.user  # noqa: F401
    import app.models.category  # noqa: F401
    import app.models.product  # noqa: F401
    import app.models.cart  # noqa: F401
    import app.models.order  # noqa: F401
    from app.models.counter import Counter, ORDER_COUNTER_ID

    Base.metadata.create_all(bind=engine)

    # The order counter is a single row; make sure it exists before any checkout.
    db = SessionLocal()
    try:
        if db.query(Counter).filter(Counter.id == ORDER_COUNTER_ID).first() is None:
            db.add(Counter(id=ORDER_COUNTER_ID, value=0))
            db.commit()
            _pool_logger.info("Seeded %s row", ORDER_COUNTER_ID)
    finally:
        db.close()


def generate_uuid() -> str:
    """Default for the String(36) primary keys used by every table."""
    return str(uuid.uuid4())
