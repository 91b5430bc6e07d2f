import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from storefront.core.config import settings
from storefront.api import auth, products, cart, favorites, orders, analytics

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=f"{settings.SHOP_NAME} - Storefront",
    description="Customer storefront: catalog, cart, checkout, order history and analytics",
    version="1.0.0",
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

# Session middleware holds cart and favorites
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET_KEY,
    max_age=3600 * 24 * 7  # 7 days
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(products.router)
app.include_router(cart.router)
app.include_router(favorites.router)
app.include_router(orders.router)
app.include_router(analytics.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "shop_name": settings.SHOP_NAME,
        "order_store": settings.ORDER_STORE_BACKEND
    }


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.SHOP_NAME} storefront (order store: {settings.ORDER_STORE_BACKEND})")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down storefront")
    from storefront.db.session import engine
    await engine.dispose()
