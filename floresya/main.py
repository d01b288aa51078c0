"""
FloresYa Backend
FastAPI application entry point

- Orders: checkout (guest or authenticated), admin status changes
- Payments: manual payment reports with proof images, admin review
- Rate limiting with SlowAPI
- Error envelope and sanitization middleware
- Health endpoint with DB ping
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from floresya import __version__
from floresya.api.routes import auth, cart, orders, payment_methods, payments, products
from floresya.core.config import settings
from floresya.core.database import create_tables, engine, ping
from floresya.core.error_handler import register_error_handlers
from floresya.core.rate_limit import limiter, rate_limit_exceeded_handler
from floresya.services.email_provider import close_email_provider

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        await create_tables()
        logger.info("Database tables ensured")

    logger.info(f"{settings.APP_NAME} API started ({settings.ENVIRONMENT})")

    yield

    # Close HTTP clients to prevent connection leaks
    await close_email_provider()
    await engine.dispose()
    logger.info("Shutdown complete")


app = FastAPI(
    lifespan=lifespan,
    title="FloresYa API",
    description="""
## FloresYa E-Commerce API

Online flower shop: catalog, cart, checkout and manually verified payments.

### Orders
Guests can check out with an email address. Every status change is recorded
in the order's status history.

### Payments
Customers report a payment (reference number plus an optional proof image).
An admin verifies or rejects it; verification moves the order to `verified`.

### Rate Limits
- Auth endpoints: 5 requests/minute
- Checkout and payment submission: 10 requests/minute
- Everything else: 100 requests/minute per client
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Health", "description": "Health check"},
        {"name": "Authentication", "description": "Registration, login and profile"},
        {"name": "Products", "description": "Product catalog and admin edits"},
        {"name": "Cart", "description": "Shopping cart operations"},
        {"name": "Orders", "description": "Checkout, order history and status management"},
        {"name": "Payments", "description": "Payment submission and verification"},
    ],
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# Error envelope + sanitization (catches unhandled exceptions)
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(cart.router, prefix="/api/cart", tags=["Cart"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])
app.include_router(payment_methods.router, prefix="/api/payment-methods", tags=["Payments"])

# Uploaded payment proofs
app.mount(
    settings.UPLOAD_URL_PREFIX,
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="payment-proofs",
)


@app.get("/health", tags=["Health"])
@limiter.exempt
async def health_check():
    """
    Health check with actual DB ping.
    Returns 503 if database is unreachable.
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    try:
        await ping()
        health_status["database"] = "connected"
    except Exception as e:
        logger.error(f"Health check DB ping failed: {type(e).__name__}: {e}")
        health_status["database"] = f"error: {type(e).__name__}"
        health_status["status"] = "unhealthy"
        return JSONResponse(status_code=503, content=health_status)

    return health_status
