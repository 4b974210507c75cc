from pathlib import Path
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from app.routes import health
from app.routes import auth as auth_routes
from app.routes import categories as categories_routes
from app.routes import products as products_routes
from app.routes import cart as cart_routes
from app.routes import orders as orders_routes
from app.routes import dashboard as dashboard_routes
from app.db import session as db_session
from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.services.auth import ensure_admin
import logging
import threading
from collections import defaultdict
import time

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="API de pedidos da cantina: catálogo, carrinho, pedidos e painel administrativo",
    # Avoid automatic 307 redirects between /path and /path/
    # We'll register both variants on root endpoints to accept either form.
    redirect_slashes=False,
)

# Configure logging level from env
logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))
# Use a dedicated app logger to avoid uvicorn.access formatter expectations
_req_logger = logging.getLogger("app.request")
_req_logger.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))

# In-memory request counters per route (method + path), guarded by a lock
_request_counts = defaultdict(int)
_req_lock = threading.Lock()
_global_request_count = 0


@app.middleware("http")
async def request_count_middleware(request: Request, call_next):
    global _global_request_count
    key = f"{request.method} {request.url.path}"

    with _req_lock:
        _request_counts[key] += 1
        count_val = _request_counts[key]
        _global_request_count += 1
        global_count_val = _global_request_count

    # Log every N hits to avoid spam
    if count_val % settings.REQUEST_LOG_EVERY_N == 0:
        _req_logger.info("Request count threshold reached: %s -> %s (global=%s)", key, count_val, global_count_val)

    # the SQLAlchemy cursor listener increments this during the request
    db_count_token = db_session.request_db_query_count.set([0])
    start = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        per_req_db_count = db_session.request_db_query_count.get()[0]
        db_session.request_db_query_count.reset(db_count_token)
    duration_ms = int((time.perf_counter() - start) * 1000)

    if settings.REQUEST_LOG_VERBOSE:
        prefixes = [p.strip() for p in (settings.REQUEST_LOG_INCLUDE_PREFIXES or "").split(",") if p.strip()]
        path_full = request.url.path
        if any(path_full.startswith(pref) for pref in prefixes):
            qs = request.url.query
            path_qs = f"{path_full}?{qs}" if qs else path_full
            _req_logger.info(
                "%s %s -> %s in %sms | route_count=%s global_count=%s",
                request.method, path_qs, response.status_code, duration_ms, count_val, global_count_val,
            )
            _req_logger.info("Foram %s requisições ao banco nesta requisição.", per_req_db_count)
            _req_logger.info(
                "Total global de requisições ao banco desde o início: %s.",
                db_session.get_global_db_queries_total(),
            )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health.router)
app.include_router(auth_routes.router)
app.include_router(categories_routes.router)
app.include_router(products_routes.router)
app.include_router(cart_routes.router)
app.include_router(orders_routes.router)
app.include_router(dashboard_routes.router)

# locally stored product images
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.on_event("startup")
def on_startup():
    # create database tables if they don't exist
    db_session.create_db()
    if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        db = db_session.SessionLocal()
        try:
            if ensure_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, settings.ADMIN_NAME):
                logging.getLogger("app").info("Bootstrap admin created: %s", settings.ADMIN_EMAIL)
        finally:
            db.close()


@app.get("/")
def root():
    return {"status": "API rodando com sucesso 🚀", "name": settings.APP_NAME, "version": settings.APP_VERSION}
