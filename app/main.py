import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status

from app.api.v1.catalog import router as catalog_router
from app.api.v1.inventory import router as inventory_router
from app.api.v1.loyalty import router as loyalty_router
from app.api.v1.orders import router as orders_router
from app.api.v1.payments import router as payments_router
from app.api.v1.production import router as production_router
from app.core.config import LOG_LEVEL, PROJECT_NAME, VERSION
from app.core.container import build_services
from app.core.db import close_db, init_db
from app.core.exception_handlers import setup_exception_handlers
from app.events.event_bus import EventBus

logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
log = logging.getLogger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles startup and shutdown events."""
    log.info(f"Starting {PROJECT_NAME} v{VERSION}...")
    await init_db() # Connect to DB and generate schemas

    event_bus = EventBus()
    services = build_services(event_bus)
    services.notifications.register(event_bus)
    app.state.services = services
    yield
    # Let in-flight notifications settle before the connections go away
    await event_bus.drain()
    await close_db()
    log.info(f"{PROJECT_NAME} stopped.")

app = FastAPI(
    title=PROJECT_NAME,
    version=VERSION,
    lifespan=lifespan,
    # Configure API documentation and paths
    docs_url="/docs",
    redoc_url="/redoc"
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Honours an incoming X-Request-ID or assigns one, and echoes it back."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# Include routers for modular API structure
app.include_router(catalog_router, prefix="/api/v1", tags=["Catalogue"])
app.include_router(orders_router, prefix="/api/v1/orders", tags=["Order Management"])
app.include_router(inventory_router, prefix="/api/v1/inventory", tags=["Inventory"])
app.include_router(payments_router, prefix="/api/v1/payments", tags=["Payments"])
app.include_router(loyalty_router, prefix="/api/v1/loyalty", tags=["Loyalty"])
app.include_router(production_router, prefix="/api/v1/production", tags=["Production"])


setup_exception_handlers(app)

@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok", "app_name": PROJECT_NAME}
