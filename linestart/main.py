import asyncio
import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from sqlalchemy import Engine
from starlette.middleware.base import BaseHTTPMiddleware

from linestart.api.deps import ServiceContainer
from linestart.api.main import api_router
from linestart.core.config import Settings, get_settings
from linestart.core.db import build_engine, init_db
from linestart.core.observability import (
    bound_actor,
    get_logger,
    set_correlation_id,
    setup_structured_logging,
)
from linestart.core.retry import RetryConfig
from linestart.domain.shared.exceptions import DomainError, ErrorType
from linestart.infrastructure.events.changefeed import ChangeFeedWorker

logger = get_logger(__name__)

ERROR_STATUS = {
    ErrorType.VALIDATION: 422,
    ErrorType.BUSINESS_RULE: 409,
    ErrorType.CONCURRENCY: 409,
    ErrorType.NOT_FOUND: 404,
    ErrorType.CONSISTENCY: 500,
    ErrorType.PERSISTENCE: 503,
}


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Correlation id and actor binding for every request."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        set_correlation_id(correlation_id)
        actor_id = request.headers.get("X-Actor-Id", "")

        start_time = time.time()
        with bound_actor(actor_id):
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_seconds=time.time() - start_time,
            )

        response.headers["X-Correlation-ID"] = correlation_id
        return response


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = ERROR_STATUS.get(exc.error_type, 400)
    if status_code >= 500:
        logger.error("Request failed", path=request.url.path, **exc.to_dict())
    else:
        logger.info("Request rejected", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}"


def create_app(settings: Settings | None = None, engine: Engine | None = None) -> FastAPI:
    settings = settings or get_settings()
    engine = engine or build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_structured_logging(settings)
        init_db(engine)
        container = ServiceContainer.build(engine, settings)
        app.state.container = container

        workers: list[ChangeFeedWorker] = []
        tasks: list[asyncio.Task] = []
        if settings.RUN_CONSUMERS:
            retry = RetryConfig(
                base_delay_seconds=settings.CONSUMER_BACKOFF_BASE_SECONDS,
                max_delay_seconds=settings.CONSUMER_BACKOFF_MAX_SECONDS,
            )
            for consumer in container.consumers:
                worker = ChangeFeedWorker(
                    consumer, settings.CHANGEFEED_POLL_INTERVAL_SECONDS, retry
                )
                workers.append(worker)
                tasks.append(asyncio.create_task(worker.run()))

        logger.info(
            "Application started",
            project_name=settings.PROJECT_NAME,
            environment=settings.ENVIRONMENT,
            consumers=len(workers),
        )
        try:
            yield
        finally:
            for worker in workers:
                worker.stop()
            if tasks:
                await asyncio.gather(*tasks)
            logger.info("Shutting down application")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Work order lifecycle and schedule consistency engine.",
        version="0.1.0",
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )
    app.add_middleware(ObservabilityMiddleware)
    app.add_exception_handler(DomainError, domain_error_handler)
    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app
