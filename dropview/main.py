import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dropview.api.api import api_router, tags_metadata
from dropview.config import settings
from dropview.core.exceptions import AppException

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan events with AWS service initialization.

    This handles:
    1. Database connection check
    2. S3 asset store initialization (optional)
    3. Redis/ElastiCache connection (optional)
    """
    logger.info(f"Starting {settings.app_name} (Environment: {settings.environment})")

    try:
        from dropview.core.storage import init_storage

        await init_storage()
    except Exception as e:
        logger.warning(f"Asset store initialization failed: {e}")

    try:
        from dropview.database import engine

        async with engine.begin() as conn:
            await conn.exec_driver_sql("SELECT 1")
        logger.info("Database connection established")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise

    try:
        from dropview.core.cache import init_cache

        await init_cache()
    except Exception as e:
        logger.warning(f"Cache initialization failed, leaderboard served uncached: {e}")

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application")

    try:
        from dropview.core.cache import cleanup_cache

        await cleanup_cache()
    except Exception as e:
        logger.warning(f"Cache cleanup error: {e}")

    try:
        from dropview.database import engine

        await engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.warning(f"Database cleanup error: {e}")

    logger.info("Application shutdown complete")


def _validation_details(exc: RequestValidationError):
    details = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location) or "request"
        details.append(f"{field}: {error.get('msg', 'invalid value')}")
    return details


def create_app() -> FastAPI:
    """
    Application factory pattern.

    Tests build their own instance and override the database session and
    asset store dependencies.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Community, referral and rewards backend for DropView",
        openapi_tags=tags_metadata,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID middleware for tracing
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(process_time)

        return response

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "details": _validation_details(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"error": "Page not found"})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        content = {"error": "Internal server error"}
        if settings.debug:
            content["details"] = [str(exc)]
        return JSONResponse(status_code=500, content=content)

    @app.get("/health")
    async def health_check():
        health_status = {
            "status": "healthy",
            "app_name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "timestamp": time.time(),
        }

        if settings.is_aws_environment:
            health_status["aws"] = {
                "region": settings.aws_region,
                "s3_configured": bool(settings.s3_bucket_name),
                "secrets_manager": settings.use_aws_secrets,
            }

        return health_status

    @app.get("/")
    async def root():
        return {
            "message": f"Welcome to {settings.app_name}!",
            "version": settings.app_version,
        }

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
