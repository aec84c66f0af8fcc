import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from shortlink_app.api.v1 import redirect, urls
from shortlink_app.config import Settings, settings as default_settings
from shortlink_app.dependencies import get_metrics
from shortlink_app.exceptions import AliasInUse, InvalidAlias, InvalidInput, NotFound, StoreError
from shortlink_app.logging_config import get_logger, setup_logging
from shortlink_app.metrics import RequestMetrics
from shortlink_app.processor import ResultConsumer, URLProcessor
from shortlink_app.store import URLStoreFactory, URLStoreStrategy

logger = get_logger(__name__)

ERROR_STATUS = {
    InvalidInput: status.HTTP_400_BAD_REQUEST,
    InvalidAlias: status.HTTP_400_BAD_REQUEST,
    AliasInUse: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
}


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[URLStoreStrategy] = None,
    processor: Optional[URLProcessor] = None,
    metrics: Optional[RequestMetrics] = None
) -> FastAPI:
    """
    Build the FastAPI app and wire its collaborators.

    Anything not injected is created at startup from settings:
    - store via URLStoreFactory (SQL with in-memory fallback)
    - processor with settings.worker_count workers (0 disables probes)
    - a result consumer that logs probe results until shutdown
    """
    settings = settings or default_settings
    metrics = metrics or RequestMetrics()
    setup_logging(settings.log_level, settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s %s (%s)", settings.app_name, settings.app_version, settings.environment)
        own_store = store is None
        app.state.store = store or URLStoreFactory.create(settings)

        app.state.processor = processor
        if app.state.processor is None and settings.worker_count > 0:
            app.state.processor = URLProcessor.from_settings(settings)

        consumer = None
        if app.state.processor is not None:
            consumer = ResultConsumer(app.state.processor)
            consumer.start()

        try:
            yield
        finally:
            logger.info("Shutting down...")
            if app.state.processor is not None:
                app.state.processor.stop()
            if consumer is not None:
                consumer.join(timeout=settings.probe_timeout + 1)
            if own_store:
                app.state.store.close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="A URL shortener service with background link probing",
        debug=settings.debug,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.metrics = metrics

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
        if status_code >= 500:
            logger.error("Store failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"error": str(exc)})

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        request_id = str(uuid.uuid4())
        start_time = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        response.headers["X-Request-ID"] = request_id
        app.state.metrics.record(request.url.path, response.status_code, duration)
        logger.info(
            "[%s] %s %s %d %.3fms",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration * 1000
        )
        return response

    @app.get("/api/health", response_class=PlainTextResponse)
    def health_check():
        """Health check endpoint"""
        return "OK"

    @app.get("/api/metrics", response_class=PlainTextResponse)
    def metrics_report(request_metrics: RequestMetrics = Depends(get_metrics)):
        """Plain-text request metrics for this app instance"""
        return request_metrics.render()

    ######## Include routers
    app.include_router(urls.router)
    app.include_router(redirect.router)

    return app


def run(settings: Optional[Settings] = None) -> None:
    """Serve the app with uvicorn on the configured host and port"""
    settings = settings or default_settings
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


app = create_app()


if __name__ == "__main__":
    run()
