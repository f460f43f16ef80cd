"""
FastAPI application for the Gumroad subscriber webhook service.

This application provides:
1. The Gumroad ping endpoint (/webhook/gumroad)
2. Verify endpoints used by the products to check a buyer's email
3. Health and service descriptor endpoints
4. Admin endpoints to list and manually change subscribers

Run with:
    uvicorn api.main:app --port 3000

Components are built once per app by ``create_app`` from a ``Settings``
instance; tests build their own app over a temporary data directory.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from api.deps import get_admin, get_registry, get_settings, get_store
from api.payload import read_payload
from subscribers.admin import SubscriberAdmin
from subscribers.config import Settings
from subscribers.config import get_settings as load_settings
from subscribers.errors import SubscriberServiceError
from subscribers.events import apply_event, parse_webhook
from subscribers.models import HealthReport
from subscribers.registry import ProductRegistry, build_registry
from subscribers.storage import JsonFileStorage
from subscribers.store import SubscriberStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("api")

ADMIN_KEY_HEADER = "X-Admin-Key"

router = APIRouter()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the data directory and log what the service is tracking."""
    settings: Settings = app.state.settings
    registry: ProductRegistry = app.state.registry
    store: SubscriberStore = app.state.store

    store.storage.ensure_data_dir()
    logger.info(f"Unified Webhook Server starting on port {settings.port}")
    logger.info(f"Data directory: {settings.data_dir}")
    logger.info(f"Products: {', '.join(registry.keys())}")
    for product in registry:
        logger.info(f"  - {product.key}: {store.count(product.key)} subscribers")
    yield
    logger.info("Shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the app and its components from ``settings`` (environment by default)."""
    if settings is None:
        settings = load_settings()

    registry = build_registry(settings)
    store = SubscriberStore(JsonFileStorage(settings.data_dir, settings.single_product))

    app = FastAPI(
        title="Unified Gumroad Webhook Server",
        description="Tracks Gumroad subscribers per product from ping webhooks.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.store = store
    app.state.admin = SubscriberAdmin(settings, registry, store)

    @app.exception_handler(SubscriberServiceError)
    async def service_error_handler(request: Request, exc: SubscriberServiceError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    app.include_router(router)
    return app


# =============================================================================
# Routes
# =============================================================================

@router.post("/webhook/gumroad", tags=["Webhook"])
async def gumroad_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    registry: ProductRegistry = Depends(get_registry),
    store: SubscriberStore = Depends(get_store),
):
    """
    Receive a Gumroad ping.

    Adds the buyer to the product's subscribers, or removes them when the
    ping reports a refund, cancellation or ended subscription.
    """
    payload = await read_payload(request)
    logger.info(f"Received Gumroad ping: {sorted(payload)}")
    logger.debug(f"Ping payload: {payload}")

    event = parse_webhook(payload, settings, registry)
    change = await run_in_threadpool(apply_event, store, event)

    return {
        "success": True,
        "product": change.product,
        "action": change.action.value,
        "changed": change.changed,
    }


@router.get("/health", response_model=HealthReport, tags=["Health"])
async def health_check(admin: SubscriberAdmin = Depends(get_admin)):
    """Subscriber counts per product."""
    return await run_in_threadpool(admin.health)


@router.get("/", tags=["Health"])
def service_descriptor(registry: ProductRegistry = Depends(get_registry)):
    return {
        "service": "Unified Gumroad Webhook Server",
        "products": registry.keys(),
        "endpoints": {
            "health": "GET /health",
            "verify": "GET /verify/:product/:email",
            "webhook": "POST /webhook/gumroad",
        },
    }


@router.get("/verify/{product}/{email}", tags=["Verify"])
async def verify_product_subscription(
    product: str,
    email: str,
    admin: SubscriberAdmin = Depends(get_admin),
):
    """Check an email against one product's subscribers."""
    result = await run_in_threadpool(admin.verify, email, product)
    return result.model_dump(exclude_none=True)


@router.get("/verify/{email}", tags=["Verify"])
async def verify_subscription(email: str, admin: SubscriberAdmin = Depends(get_admin)):
    """
    Legacy verify endpoint: checks every registered product and reports the
    first one the email is subscribed to.
    """
    result = await run_in_threadpool(admin.verify, email)
    return result.model_dump(exclude_none=True)


@router.get("/subscribers", tags=["Admin"])
async def list_subscribers(
    admin: SubscriberAdmin = Depends(get_admin),
    admin_key: Optional[str] = Header(default=None, alias=ADMIN_KEY_HEADER),
):
    subscribers = await run_in_threadpool(admin.list_all, admin_key)
    return {"subscribers": subscribers}


@router.post("/subscribers/add", tags=["Admin"])
async def add_subscriber(
    request: Request,
    admin: SubscriberAdmin = Depends(get_admin),
    admin_key: Optional[str] = Header(default=None, alias=ADMIN_KEY_HEADER),
):
    """Manually add a subscriber, bypassing webhook interpretation."""
    admin.authorize(admin_key)
    body = await read_payload(request)
    change = await run_in_threadpool(
        admin.manual_add, admin_key, body.get("email"), body.get("product")
    )
    return {"success": True, "added": change.changed, "product": change.product, "email": change.email}


@router.post("/subscribers/remove", tags=["Admin"])
async def remove_subscriber(
    request: Request,
    admin: SubscriberAdmin = Depends(get_admin),
    admin_key: Optional[str] = Header(default=None, alias=ADMIN_KEY_HEADER),
):
    """Manually remove a subscriber."""
    admin.authorize(admin_key)
    body = await read_payload(request)
    change = await run_in_threadpool(
        admin.manual_remove, admin_key, body.get("email"), body.get("product")
    )
    return {"success": True, "removed": change.changed, "product": change.product, "email": change.email}


app = create_app()
