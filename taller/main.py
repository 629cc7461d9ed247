import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from taller.api.router import api_router
from taller.core.config import Settings, get_settings
from taller.core.errors import TallerError
from taller.core.logging_config import LogContext, configure_logging, get_logger
from taller.db.immutability import register_immutability_listeners
from taller.db.session import Storage

logger = get_logger("app")


def create_app(settings: Settings | None = None, storage: Storage | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(level=settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="0.1.0",
        debug=settings.DEBUG,
        description="Inventario de materia prima, herramientas, reparaciones y pedidos del taller.",
    )

    app.state.settings = settings
    app.state.storage = storage or Storage.from_settings(settings)

    register_immutability_listeners()

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        """Asigna un id de request para correlacionar los logs."""
        LogContext.clear()
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        LogContext.set(request_id=request_id)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(TallerError)
    async def taller_error_handler(request: Request, exc: TallerError):
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "request_failed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error_code": exc.code,
                "status_code": exc.status_code,
            },
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code},
        )

    # API
    app.include_router(api_router, prefix="/api")

    # Health-check para infra
    @app.get("/healthz", tags=["health"])
    async def healthz():
        return {
            "status": "ok",
            "env": settings.ENV,
            "version": "0.1.0",
        }

    return app


app = create_app()
