"""
Alamer Storefront API

FastAPI entry point. Wires the process-wide cart, the Supabase-backed
catalog (when configured) and the site settings.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront import __version__, config
from storefront.logging import get_logger
from storefront.routers import cart_router, checkout_router, products_router
from storefront.routers.deps import get_cart_manager, set_site_settings
from storefront.services.database import init_database, is_database_initialized, reset_database
from storefront.services.settings import load_site_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup: hydrate the cart before the first request
    get_cart_manager()

    if config.is_supabase_configured():
        try:
            db = await init_database()
            set_site_settings(await load_site_settings(db.settings))
        except Exception as e:
            logger.error(f"Supabase unavailable, running without catalog: {e}", exc_info=True)
    else:
        logger.warning("SUPABASE_URL / SUPABASE_ANON_KEY not set. Running in degraded mode.")

    yield

    # Shutdown
    reset_database()


app = FastAPI(
    title="Alamer Storefront",
    description="Cart, checkout and catalog API for the Alamer store",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(products_router, prefix="/api")
app.include_router(cart_router, prefix="/api")
app.include_router(checkout_router, prefix="/api")


# ==================== HEALTH CHECK ====================

@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "ok",
        "service": "alamer-storefront",
        "catalog": is_database_initialized(),
    }
