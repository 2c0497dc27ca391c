import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import Settings, settings as default_settings
from infrastructure.db.sqlite import Database, init_db
from infrastructure.web.controllers.transaction_controller import router as transaction_router
from infrastructure.web.controllers.user_controller import router as user_router
from infrastructure.web.responses import envelope, error_response

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    app = FastAPI(title="Khata - personal finance API")
    app.state.settings = settings
    app.state.database = Database(settings.DB_PATH)

    # от CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],  # Allows all HTTP methods (GET, POST, PUT, DELETE, etc.)
        allow_headers=["*"],  # Allows all headers
    )

    @app.on_event("startup")
    def on_startup():
        init_db(app.state.database)
        logger.info("app_started env=%s db_path=%s", settings.APP_ENV, settings.DB_PATH)

    @app.on_event("shutdown")
    def on_shutdown():
        app.state.database.close()

    @app.middleware("http")
    async def log_http_requests(request: Request, call_next):
        logger.info("http_request_received method=%s path=%s", request.method, request.url.path)
        response = await call_next(request)
        logger.info(
            "http_response_sent method=%s path=%s status_code=%s",
            request.method,
            request.url.path,
            response.status_code,
        )
        return response

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = exc.detail
        if exc.status_code == 404 and message == "Not Found":
            message = "API endpoint not found"
        return error_response(exc.status_code, str(message), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = []
        for err in exc.errors():
            loc = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path"))
            errors.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
        return error_response(400, "Validation error", errors=errors)

    @app.exception_handler(Exception)
    async def handle_unexpected_exception(request: Request, exc: Exception):
        logger.exception(
            "unhandled_exception method=%s path=%s exception_type=%s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc_info=exc,
        )
        return error_response(
            500,
            "Something went wrong!",
            error=str(exc) if settings.is_development else None,
        )

    @app.get("/health")
    def health():
        return envelope(True, message="Khata API is running successfully!")

    app.include_router(user_router)
    app.include_router(transaction_router)
    return app


app = create_app()
