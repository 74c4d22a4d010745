"""Kolla — FastAPI gateway application.

Submission, review and reveal of game assets pledged as loan collateral.
The registry is the only path from HTTP to the asset store.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from kolla.auth import make_api_key_checker
from kolla.config import KollaConfig, load_config
from kolla.errors import (
    FormatError,
    InvalidAssetError,
    InvalidTransitionError,
    KollaError,
    NotFoundError,
    StoreUnavailableError,
    TransactionFailedError,
    UnauthorizedError,
)
from kolla.registry import AssetRegistry
from kolla.reveal import RevealProtocol, RevealSession
from kolla.routes import assets, meta, reveal
from kolla.store.factory import store_from_config

logger = logging.getLogger("kolla")
audit_logger = logging.getLogger("kolla.audit")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: open the asset store. Shutdown: close it."""
    config: KollaConfig = app.state.config
    logger.info(
        "Opening %s asset store %s",
        config.store_backend,
        config.store_url or "(in-process)",
    )
    store = store_from_config(config)
    app.state.registry = AssetRegistry(store)
    app.state.reveal = RevealProtocol(
        RevealSession.start(
            contract_address=config.contract_address,
            chain_id=config.chain_id,
            duration_days=config.duration_days,
        )
    )
    logger.info("Kolla gateway ready")
    yield
    await store.close()
    logger.info("Kolla gateway shut down")


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(UnauthorizedError)
    async def unauthorized_handler(request: Request, exc: UnauthorizedError):
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.exception_handler(InvalidAssetError)
    async def invalid_asset_handler(request: Request, exc: InvalidAssetError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(FormatError)
    async def format_handler(request: Request, exc: FormatError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(InvalidTransitionError)
    async def transition_handler(request: Request, exc: InvalidTransitionError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(TransactionFailedError)
    async def transaction_handler(request: Request, exc: TransactionFailedError):
        return JSONResponse(
            status_code=502,
            content={
                "detail": str(exc),
                "user_rejected": exc.user_rejected,
                "asset_id": exc.asset_id,
            },
        )

    @app.exception_handler(KollaError)
    async def kolla_handler(request: Request, exc: KollaError):
        return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app(config: KollaConfig | None = None) -> FastAPI:
    """Application factory."""
    if config is None:
        config = load_config()

    app = FastAPI(
        title="Kolla",
        description="Collateral asset gateway — submission, review and reveal",
        version=meta.VERSION,
        lifespan=lifespan,
    )
    app.state.config = config

    check_key = make_api_key_checker(config.api_key)

    install_exception_handlers(app)

    # ── Audit middleware ──────────────────────────────────────

    @app.middleware("http")
    async def audit_log(request: Request, call_next):
        start = time.monotonic()
        response = await call_next(request)
        elapsed = time.monotonic() - start
        audit_logger.info(
            "%s %s %d %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
        )
        return response

    # ── Routers ───────────────────────────────────────────────

    app.include_router(meta.router, dependencies=[Depends(check_key)])
    app.include_router(assets.router, dependencies=[Depends(check_key)])
    app.include_router(reveal.router, dependencies=[Depends(check_key)])

    return app
