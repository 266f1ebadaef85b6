from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.concurrency import asynccontextmanager
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from api import router as api_router
from api.config import Settings, load_settings
from api.errors import GatewayError, InvalidFormat, Internal
from api.health import router as health_router, VERSION
from api.rate_limit import limiter
from api.services.email_service import build_mail_transport
from api.services.session_service import SessionIssuer
from api.services.user_service import UserService
from db.engine import create_db_engine, create_session_factory, init_db
from db.repositories.user_repository import UserRepository
import logging

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    kwargs = {"level": settings.log_level, "format": LOG_FORMAT}
    if settings.log_file:
        kwargs["filename"] = settings.log_file
    logging.basicConfig(**kwargs)


def initialize_admin_user(app: FastAPI):
    """Create admin user from settings if no users exist"""
    settings: Settings = app.state.settings
    if not (settings.admin_email and settings.admin_password):
        logger.info("No admin credentials configured, skipping admin bootstrap")
        return
    db = app.state.session_factory()
    try:
        user_service = UserService(UserRepository(db), SessionIssuer(settings.jwt_secret))
        if user_service.ensure_admin(settings.admin_email, settings.admin_password):
            logger.info(f"Admin user created successfully: {settings.admin_email}")
    finally:
        db.close()


def _error_body(title: str, detail) -> dict:
    return {"success": False, "error": title, "detail": detail}


async def gateway_error_handler(request: Request, exc: GatewayError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.title, exc.detail))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(
        status_code=InvalidFormat.status_code,
        content=_error_body("Validation error", "; ".join(messages)),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=Internal.status_code,
        content=_error_body(Internal.title, "An unexpected error occurred"),
    )


def create_app(settings: Settings = None, mailer=None) -> FastAPI:
    """
    Build the application.

    Settings are loaded from the environment when not given; missing required
    values abort startup. ``mailer`` overrides the transport chosen by settings.
    """
    if settings is None:
        settings = load_settings()
    configure_logging(settings)

    engine = create_db_engine(settings.database_url)
    init_db(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        initialize_admin_user(app)
        yield
        engine.dispose()

    app = FastAPI(
        title="Receipt Gateway",
        version=VERSION,
        description="Send receipt emails on behalf of API key holders",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.mailer = mailer or build_mail_transport(settings)

    # Rate limiting setup
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    allowed_origins = list(settings.cors_origins)
    if allowed_origins == ["*"]:
        logger.warning(
            "CORS is set to allow all origins (*). "
            "Set CORS_ORIGINS environment variable to restrict origins in production."
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
        max_age=600,
    )

    # Security headers middleware
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(health_router)
    app.include_router(api_router)
    return app


app = create_app()
