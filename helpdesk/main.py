from contextlib import asynccontextmanager
from datetime import datetime, timezone
import time

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from helpdesk.core.config import settings
from helpdesk.core.database import SessionLocal, init_db
from helpdesk.core.exceptions import HelpdeskError
from helpdesk.core.hub import RealtimeHub
from helpdesk.core.logging import configure_logging
from helpdesk.core.security import get_password_hash
from helpdesk.routers import auth, ticket, user, ws_chat
from helpdesk.services import user_store

logger = structlog.get_logger()

def bootstrap_admin():
    db = SessionLocal()
    try:
        if user_store.get_by_account_name(db, settings.ADMIN_USERNAME) is not None:
            return
        admin, created = user_store.create_if_absent(
            db,
            username=settings.ADMIN_USERNAME,
            password_hash=get_password_hash(settings.ADMIN_PASSWORD),
            display_name="Administrator",
        )
        if created:
            logger.info("admin_bootstrapped", username=admin.username, user_id=admin.id)
    finally:
        db.close()

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    init_db()
    if settings.BOOTSTRAP_ADMIN:
        bootstrap_admin()
    app.state.hub = RealtimeHub()
    logger.info("startup_complete", database=settings.DATABASE_URL.split("://")[0])
    yield

app = FastAPI(title="Helpdesk", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=round((time.perf_counter() - start) * 1000, 1),
    )
    return response

@app.exception_handler(HelpdeskError)
async def helpdesk_error_handler(request: Request, exc: HelpdeskError):
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=exc.headers)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"detail": jsonable_encoder(exc.errors())}, status_code=400)

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_error",
        method=request.method,
        path=request.url.path,
        error=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse({"detail": "Internal server error"}, status_code=500)

app.include_router(auth.router)
app.include_router(user.router)
app.include_router(ticket.router)
app.include_router(ws_chat.router)

@app.get("/__ping")
def ping(request: Request):
    return {
        "ok": True,
        "time": datetime.now(timezone.utc).isoformat(),
        "path": request.url.path,
        "host": request.headers.get("host"),
    }

@app.get("/", response_class=JSONResponse)
def read_root(request: Request):
    return {"message": "Helpdesk API. Tickets under /api/tickets, realtime events on /ws."}
