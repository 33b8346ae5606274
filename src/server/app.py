"""FastAPI application factory."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from src.scheduler.clock import Clock, utcnow
from src.scheduler.coordinator import BatchRunCoordinator
from src.scheduler.enqueuer import EmailScheduler
from src.scheduler.errors import InvalidScheduleError
from src.scheduler.worker import DeliveryWorker
from src.server.config import ServerConfig, load_config_from_env
from src.server.errors import ApiError
from src.server.middleware.logging import RequestLoggingMiddleware
from src.server.models.responses import ErrorResponse
from src.server.routes.cron import create_cron_router
from src.server.routes.emails import create_emails_router
from src.server.routes.health import create_health_router
from src.state.database import DatabaseManager, StoreUnavailableError
from src.transport import EmailTransport, build_transport

logger = logging.getLogger(__name__)


def _build_transport(config: ServerConfig) -> EmailTransport:
    tc = config.transport
    return build_transport(
        tc.kind,
        api_key=tc.api_key,
        sender=tc.sender,
        api_url=tc.api_url,
        timeout=config.delivery.transport_timeout,
    )


def create_app(
    config: Optional[ServerConfig] = None,
    transport: Optional[EmailTransport] = None,
    clock: Clock = utcnow,
) -> FastAPI:
    """Create and configure the FastAPI application.

    When called without arguments (e.g. via uvicorn --factory), loads
    configuration from environment variables. ``transport`` overrides the
    configured one.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    if config is None:
        config = load_config_from_env()

    db_manager = DatabaseManager(config.db_path, busy_timeout=config.db_busy_timeout)
    if transport is None:
        transport = _build_transport(config)
    delivery = config.delivery
    worker = DeliveryWorker(
        transport,
        timeout=delivery.transport_timeout,
        claim_ttl=delivery.claim_ttl,
        clock=clock,
    )
    scheduler = EmailScheduler(
        db_manager, default_max_attempts=delivery.default_max_attempts, clock=clock,
    )
    coordinator = BatchRunCoordinator(
        db_manager,
        worker,
        send_delay=delivery.send_delay,
        batch_limit=delivery.batch_limit,
        clock=clock,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await db_manager.initialize()
        logger.info("Database initialized at %s", config.db_path)
        logger.info("Email transport: %s", transport.name)
        yield
        await db_manager.close()

    app = FastAPI(
        title="Mail Scheduler",
        description="Durable scheduled email delivery",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(InvalidScheduleError, _invalid_schedule_handler)
    app.add_exception_handler(StoreUnavailableError, _store_unavailable_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(create_emails_router(db_manager, scheduler, coordinator))
    app.include_router(create_cron_router(coordinator, config.cron_secret))
    app.include_router(create_health_router(db_manager))
    return app


def _error(status_code: int, code: str, message: str, details: Optional[dict] = None) -> JSONResponse:
    response = ErrorResponse(code=code, error=message, details=details)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(response.model_dump()))


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return _error(exc.status_code, exc.error_code, exc.message, exc.details)


async def _invalid_schedule_handler(request: Request, exc: InvalidScheduleError) -> JSONResponse:
    return _error(400, exc.error_code, exc.message, exc.details)


async def _store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    logger.error("Store unavailable: %s", exc.message)
    return _error(503, "STORE_UNAVAILABLE", exc.message, exc.details)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(
        400, "INVALID_FORMAT", "Request validation failed",
        {"validation_errors": jsonable_encoder(exc.errors())},
    )
