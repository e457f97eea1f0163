import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles

from app.core.config import Settings, get_settings
from app.core.logging import setup_logging
from app.core.responses import EnvelopeResponse
from app.db.database import create_engine, create_session_factory, init_db
from app.exceptions import register_exception_handlers
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.routers.admin import router as admin_router
from app.routers.analytics import router as analytics_router
from app.routers.auth import router as auth_router
from app.routers.banners import router as banners_router
from app.routers.cart import router as cart_router
from app.routers.categories import router as categories_router
from app.routers.coupons import router as coupons_router
from app.routers.flash_deals import router as flash_deals_router
from app.routers.orders import router as orders_router
from app.routers.payments import router as payments_router
from app.routers.products import router as products_router
from app.routers.reviews import router as reviews_router
from app.routers.users import router as users_router


logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    ``settings`` defaults to the cached environment settings; tests pass
    their own instance. The engine and session factory live on
    ``app.state`` next to the settings.
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    engine = create_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.AUTO_CREATE_TABLES:
            await init_db(engine)
        logger.info("%s started (%s)", settings.APP_NAME, settings.ENVIRONMENT)
        yield
        await engine.dispose()

    prefix = settings.API_PREFIX
    app = FastAPI(
        title=settings.APP_NAME,
        description="E-commerce API: catalog, cart, checkout, payments and store administration.",
        version="1.0.0",
        docs_url=f"{prefix}/docs",
        redoc_url=f"{prefix}/redoc",
        openapi_url=f"{prefix}/openapi.json",
        default_response_class=EnvelopeResponse,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    # added last so it wraps everything, error responses included
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_origin_regex=settings.CORS_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS'],
        allow_headers=["*"],
    )

    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")

    # Register endpoints
    app.include_router(auth_router, prefix=f'{prefix}/auth', tags=["Authentication"])
    app.include_router(users_router, prefix=f'{prefix}/users', tags=["Users"])
    app.include_router(categories_router, prefix=f'{prefix}/categories', tags=["Categories"])
    app.include_router(products_router, prefix=f'{prefix}/products', tags=["Products"])
    app.include_router(cart_router, prefix=f'{prefix}/cart', tags=["Cart"])
    app.include_router(coupons_router, prefix=f'{prefix}/coupons', tags=["Coupons"])
    app.include_router(orders_router, prefix=f'{prefix}/orders', tags=["Orders"])
    app.include_router(payments_router, prefix=f'{prefix}/payments', tags=["Payments"])
    app.include_router(reviews_router, prefix=f'{prefix}/reviews', tags=["Reviews"])
    app.include_router(flash_deals_router, prefix=f'{prefix}/flash-deals', tags=["Flash Deals"])
    app.include_router(banners_router, prefix=f'{prefix}/banners', tags=["Banners"])
    app.include_router(admin_router, prefix=f'{prefix}/admin', tags=["Admin"])
    app.include_router(analytics_router, prefix=f'{prefix}/analytics', tags=["Analytics"])

    # Add a root endpoint for health check
    @app.get("/")
    async def root():
        return {
            "message": settings.APP_NAME,
            "version": "1.0.0",
            "docs": f"{prefix}/docs",
            "status": "running",
        }

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    register_exception_handlers(app)
    return app
