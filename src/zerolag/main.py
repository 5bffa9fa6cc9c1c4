"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from zerolag.auth.router import router as auth_router
from zerolag.chain.router import router as wallet_router
from zerolag.config import get_settings
from zerolag.dependencies import build_staking_contract, reset_services, set_staking_contract
from zerolag.files.router import router as files_router
from zerolag.health.router import router as health_router
from zerolag.ledger.router import router as ledger_router
from zerolag.middleware import setup_middleware
from zerolag.store import close_store, init_store

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_store(settings)
    contract = build_staking_contract()
    set_staking_contract(contract)
    logger.info(
        "app_started",
        environment=settings.environment,
        store=settings.store_backend,
        chain_enabled=contract is not None,
    )

    yield

    reset_services()
    set_staking_contract(None)
    await close_store()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="ZeroLag API",
        description="Wallet sign-in, task staking and proof review for ZeroLag",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(ledger_router)
    app.include_router(files_router)
    app.include_router(wallet_router)

    return app


app = create_app()
