"""
Storefront Application

Checkout service for the marketplace storefront: cart, simulated card
payment, order submission and invoices, exposed to the browser as JSON.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from .core.config import Settings, get_settings
from .core.container import Services, build_services
from .errors import AuthenticationError, InvalidStepError, MarketplaceAPIError
from .routes import auth_router, cart_router, checkout_router

# Load environment variables
load_dotenv()

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(
    app_settings: Optional[Settings] = None,
    services: Optional[Services] = None,
) -> FastAPI:
    """Build the application; prebuilt services replace the default wiring"""
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events"""
        logger.info("Storefront starting up...")
        app.state.services = services or build_services(app_settings)
        logger.info(f"Marketplace API: {app_settings.api_base_url}")

        yield

        logger.info("Storefront shutting down...")
        await app.state.services.close()

    app = FastAPI(
        title=app_settings.app_name,
        description="Marketplace storefront checkout",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict this
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidStepError)
    async def invalid_step_handler(request: Request, exc: InvalidStepError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(AuthenticationError)
    async def authentication_handler(request: Request, exc: AuthenticationError):
        return JSONResponse(status_code=401, content={"detail": exc.message})

    @app.exception_handler(MarketplaceAPIError)
    async def marketplace_handler(request: Request, exc: MarketplaceAPIError):
        status_code = exc.status_code if exc.status_code and exc.status_code < 500 else 502
        return JSONResponse(status_code=status_code, content={"detail": exc.message})

    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(auth_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "storefront",
            "backend": app_settings.api_base_url,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
