from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config.database import dispose_db, init_db
from shared.config.settings import CORS_ALLOW_ORIGINS, DB_CREATE_TABLES
from shared.messaging import close_event_publisher, get_dispatcher, init_event_publisher
from shared.observability import setup_observability
from services.product_service.models import Product # Import to register with Base
from .models import Order, OrderLine # Import to register with Base
from .router import router, public_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    init_event_publisher()
    if DB_CREATE_TABLES:
        await init_db()
    yield
    # Shutdown
    await get_dispatcher().drain(timeout=5.0)
    close_event_publisher()
    await dispose_db()


order_app = FastAPI(title="Order Service", version="1.0.0", lifespan=lifespan)

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(order_app, "order_service")

# --- CORS ---
order_app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@order_app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # An order id that does not parse can never resolve to an order
    if any(tuple(err.get("loc", ()))[:2] == ("path", "order_id") for err in exc.errors()):
        return JSONResponse(status_code=404, content={"detail": "Order not found."})
    logger.info("request.invalid", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=400, content={"detail": "Invalid request."})


@order_app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("request.unhandled_error", path=request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error."})


order_app.include_router(public_router)
order_app.include_router(router)
