"""Plano — FastAPI gateway application.

The registry's command surface. Clients list, register, publish and sell
blueprints here, and reveal prices by signing the session challenge.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from plano.auth import make_api_key_checker
from plano.codec import PriceCodec
from plano.config import PlanoConfig, load_config
from plano.errors import (
    AuthDeclinedError,
    DecodeFailure,
    ImmutableFieldError,
    InvalidTransitionError,
    NotAuthorizedError,
    NotConnectedError,
    NotFoundError,
    PlanoError,
    StaleWriteError,
    StoreUnavailableError,
)
from plano.lifecycle import LifecycleManager
from plano.repository import BlueprintRepository
from plano.reveal import ChallengeParameters, RevealAuthenticator, RevealSessions
from plano.routes import lifecycle, meta, read, reveal, store
from plano.store.interface import KeyValueStore
from plano.store.jsonfile import JsonFileStore
from plano.store.memory import InMemoryStore

logger = logging.getLogger("plano")
audit_logger = logging.getLogger("plano.audit")

# Handlers resolve along the exception's MRO, so subclasses without an
# entry inherit their parent's status.
ERROR_STATUS: list[tuple[type[PlanoError], int]] = [
    (NotFoundError, 404),
    (NotAuthorizedError, 403),
    (InvalidTransitionError, 409),
    (ImmutableFieldError, 409),
    (StaleWriteError, 409),
    (NotConnectedError, 401),
    (AuthDeclinedError, 401),
    (DecodeFailure, 422),
    (StoreUnavailableError, 503),
    (PlanoError, 500),
]


def open_store(config: PlanoConfig) -> KeyValueStore:
    if config.store_backend == "file":
        return JsonFileStore(config.store_path)
    return InMemoryStore()


def install_registry(app: FastAPI, store_backend: KeyValueStore, config: PlanoConfig) -> None:
    """Wire repository, lifecycle and reveal sessions onto app state."""
    codec = PriceCodec()
    repository = BlueprintRepository(
        store_backend,
        codec,
        index_append_attempts=config.index_append_attempts,
    )
    params = ChallengeParameters.new_session(
        contract_address=config.contract_address,
        chain_id=config.chain_id,
        duration_days=config.duration_days,
    )
    app.state.store = store_backend
    app.state.repository = repository
    app.state.lifecycle = LifecycleManager(repository)
    app.state.reveal_sessions = RevealSessions(
        RevealAuthenticator(params, codec), repository, max_sessions=config.max_reveal_sessions
    )


def register_exception_handlers(app: FastAPI) -> None:
    def make_handler(status_code: int):
        async def handler(request: Request, exc: PlanoError):
            return JSONResponse(status_code=status_code, content={"detail": str(exc)})

        return handler

    for exc_type, status_code in ERROR_STATUS:
        app.add_exception_handler(exc_type, make_handler(status_code))


def include_routers(app: FastAPI, api_key: str) -> None:
    check_key = make_api_key_checker(api_key)
    for module in (meta, read, store, lifecycle, reveal):
        app.include_router(module.router, dependencies=[Depends(check_key)])


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: open the store and build the registry."""
    config: PlanoConfig = app.state.config
    logger.info("Opening %s store (%s)", config.store_backend, config.store_path)
    store_backend = open_store(config)
    if not store_backend.is_available():
        logger.warning("Store reports unavailable at startup")
    install_registry(app, store_backend, config)
    logger.info(
        "Plano gateway ready (contract %s, chain %d)",
        config.contract_address or "<unset>",
        config.chain_id,
    )
    yield
    logger.info("Plano gateway shut down")


def create_app(config: PlanoConfig | None = None) -> FastAPI:
    """Application factory."""
    if config is None:
        config = load_config()

    app = FastAPI(
        title="Plano",
        description="Blueprint registry gateway with signature-gated price reveal",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config

    register_exception_handlers(app)

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

    include_routers(app, config.api_key)

    return app
