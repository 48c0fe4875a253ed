import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import async_sessionmaker

from minicrm.auth.router import router as auth_router
from minicrm.companies.router import router as companies_router
from minicrm.config import settings
from minicrm.database import async_session_factory
from minicrm.employees.router import router as employees_router
from minicrm.errors import register_exception_handlers
from minicrm.events.bus import EventBus
from minicrm.middleware.error_handler import ErrorHandlerMiddleware
from minicrm.middleware.logging import RequestLoggingMiddleware
from minicrm.middleware.request_size import RequestSizeLimitMiddleware
from minicrm.notifications.handlers import register_handlers
from minicrm.notifications.mail import MailTransport, build_mail_transport
from minicrm.notifications.router import router as notifications_router
from minicrm.pagination_router import router as pagination_router
from minicrm.uploads.router import router as uploads_router
from minicrm.uploads.service import FileUploadService
from minicrm.uploads.storage import PublicStorage

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.PrintLoggerFactory(),
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    worker = asyncio.create_task(app.state.event_bus.run())
    yield
    worker.cancel()
    try:
        await worker
    except asyncio.CancelledError:
        pass
    # Deliver whatever was published after the worker stopped
    remaining = await app.state.event_bus.drain()
    if remaining:
        logger.info("event_bus_drained_on_shutdown", events=remaining)


def create_app(
    session_factory: async_sessionmaker | None = None,
    mail_transport: MailTransport | None = None,
    storage_root: str | Path | None = None,
) -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        docs_url="/docs",
        lifespan=lifespan,
    )

    storage = PublicStorage(storage_root or settings.STORAGE_ROOT, settings.APP_URL)
    storage.root.mkdir(parents=True, exist_ok=True)
    app.state.upload_service = FileUploadService(storage)

    bus = EventBus()
    register_handlers(
        bus,
        session_factory or async_session_factory,
        mail_transport or build_mail_transport(settings),
    )
    app.state.event_bus = bus

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestSizeLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(companies_router, prefix="/api/v1")
    app.include_router(employees_router, prefix="/api/v1")
    app.include_router(notifications_router, prefix="/api/v1")
    app.include_router(uploads_router, prefix="/api/v1")
    app.include_router(pagination_router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.mount("/storage", StaticFiles(directory=str(storage.root)), name="storage")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("minicrm.main:app", host="0.0.0.0", port=8000, reload=True)
