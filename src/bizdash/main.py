import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from tortoise import Tortoise
from tortoise.contrib.fastapi import tortoise_exception_handlers

from .core.config import DATABASE_URL
from .core.errors import DashboardError
from .core.logging_config import configure_logging
from .features.auth.router import router as auth_router
from .features.dashboard.router import router as dashboard_router

configure_logging()
logger = logging.getLogger("bizdash.main")  # This logger will inherit from 'bizdash'

MODEL_MODULES = [
    "bizdash.features.organizations.models",
    "bizdash.features.auth.models",
    "bizdash.features.customers.models",
    "bizdash.features.inventory.models",
    "bizdash.features.sales.models",
    "bizdash.features.expenses.models",
    "aerich.models",  # For Aerich migrations
]

TORTOISE_ORM_CONFIG = {
    "connections": {"default": DATABASE_URL},
    "apps": {
        "models": {  # This is an app label, can be anything
            "models": MODEL_MODULES,
            "default_connection": "default",
        }
    },
    # Stored instants are UTC; reports convert them to the organization's zone
    "use_tz": True,
    "timezone": "UTC",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Handles startup and shutdown events, such as connecting to the database.
    """
    logger.info("Starting application...")
    await Tortoise.init(config=TORTOISE_ORM_CONFIG)
    logger.info("Tortoise-ORM has been initialized.")

    yield

    await Tortoise.close_connections()
    logger.info("Tortoise-ORM connections have been closed.")


async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app = FastAPI(
    title="bizdash API",
    description="Dashboard reports for small-business accounting and inventory.",
    version="0.1.0",
    exception_handlers={
        **tortoise_exception_handlers(),
        DashboardError: dashboard_error_handler,
    },
    lifespan=lifespan,
)


@app.get("/")
async def read_root(request: Request):
    """
    Root endpoint for the API.
    """
    client_host = request.client.host if request.client else "unknown client"
    logger.info(f"Root endpoint '/' accessed by {client_host}")
    return {"message": "Welcome to the bizdash API!"}


app.include_router(auth_router, prefix="/api/v1")
app.include_router(dashboard_router, prefix="/api/v1")
