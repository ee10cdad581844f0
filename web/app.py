import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from exceptions import PosEngineException
from jobs.session_cleanup_job import session_cleanup_scheduler
from services.payment import create_payment_service
from services.session import SessionRegistry
from services.stock_lookup import create_stock_lookup_service
from utils.error_handler import handle_service_error, handle_unexpected_error
from web.pos_router import pos_router

logger = logging.getLogger(__name__)


async def _close_collaborator(service) -> None:
    close = getattr(service, "close", None)
    if close is not None:
        await close()


def create_app(registry: SessionRegistry | None = None) -> FastAPI:
    """
    Build the POS FastAPI application.

    Args:
        registry: Pre-built registry (tests). When omitted the lifespan builds
            one from the configured stock lookup and payment backends.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan event handler for startup and shutdown."""
        cleanup_task = None
        stock_lookup = payment_service = None

        # Startup
        if app.state.registry is None:
            if config.STOCK_LOOKUP_BACKEND == "catalog":
                from db import create_db_and_tables
                await create_db_and_tables()
                logging.info("[Startup] Product catalog tables ready")
            stock_lookup = create_stock_lookup_service()
            payment_service = create_payment_service()
            app.state.registry = SessionRegistry(stock_lookup, payment_service)
            logging.info(f"[Startup] Session registry ready (stock: {config.STOCK_LOOKUP_BACKEND}, "
                         f"payment: {config.PAYMENT_BACKEND})")

        cleanup_task = asyncio.create_task(session_cleanup_scheduler(app.state.registry))

        yield

        # Shutdown
        logging.warning('Shutting down..')
        cleanup_task.cancel()
        try:
            await cleanup_task
        except asyncio.CancelledError:
            pass
        for service in (stock_lookup, payment_service):
            if service is not None:
                await _close_collaborator(service)
        logging.warning('Bye!')

    app = FastAPI(title="POS Cart Engine", lifespan=lifespan)
    app.state.registry = registry

    if config.CORS_ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ALLOWED_ORIGINS,
            allow_credentials=False,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
            allow_headers=["Content-Type"],
        )
        logging.info(f"[Startup] CORS middleware enabled for origins: {config.CORS_ALLOWED_ORIGINS}")
    else:
        logging.debug("[Startup] CORS middleware disabled (no allowed origins configured)")

    app.include_router(pos_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint for container monitoring."""
        registry = app.state.registry
        return {
            "status": "healthy",
            "sessions": len(registry) if registry is not None else 0,
        }

    @app.exception_handler(PosEngineException)
    async def engine_exception_handler(request: Request, exc: PosEngineException):
        error = handle_service_error(exc)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def exception_handler(request: Request, exc: Exception):
        error = handle_unexpected_error(exc)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    return app
