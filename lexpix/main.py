"""
FastAPI application entry point.
Main application instance with middleware and route configuration.
"""
from fastapi import FastAPI, Request, status, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
import logging
import asyncio

from lexpix.config import settings
from lexpix.context import AppContext, build_context, get_context
from lexpix.exceptions import LexPixError
from lexpix.routes import auth, cms, cms_catalog, cms_projects, cms_team, public
from lexpix.services.cloudinary_service import validate_cloudinary_config
from lexpix.services.setup_service import setup_database
from lexpix.utils.rate_limit import limiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Credentials (the session cookie) require explicit origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with its response status."""
    method = request.method
    path = request.url.path
    origin = request.headers.get("origin", "No origin header")

    if method == "OPTIONS":
        logger.info(
            f"OPTIONS preflight request to {path}\n"
            f"  Origin: {origin}\n"
            f"  Access-Control-Request-Method: {request.headers.get('access-control-request-method', 'N/A')}"
        )
    else:
        logger.debug(f"Incoming {method} request to {path} from origin: {origin}")

    try:
        response = await call_next(request)
        logger.info(f"Response status: {response.status_code} for {method} {path}")
        return response
    except Exception as e:
        logger.error(
            f"Error processing {method} {path}: {str(e)}\n"
            f"  Error type: {type(e).__name__}",
            exc_info=True
        )
        raise


app.include_router(public.router, prefix="/api", tags=["public"])
app.include_router(auth.router, prefix="/api")
app.include_router(cms.router, prefix="/api")
app.include_router(cms_catalog.router, prefix="/api")
app.include_router(cms_projects.router, prefix="/api")
app.include_router(cms_team.router, prefix="/api")


def add_cors_headers(response: JSONResponse, request: Request) -> JSONResponse:
    """
    Add CORS headers to error responses, which bypass CORSMiddleware when
    raised from a handler. Only configured origins are echoed back.
    """
    origin = request.headers.get("origin")
    if origin and origin in settings.CORS_ORIGINS:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Vary"] = "Origin"
    return response


# Exception Handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions (401, 403, 404, etc.) with CORS headers."""
    logger.error(
        f"HTTPException on {request.method} {request.url.path}:\n"
        f"  Status: {exc.status_code}\n"
        f"  Detail: {exc.detail}"
    )

    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail, "detail": str(exc.detail)}

    response = JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)
    return add_cors_headers(response, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors with per-field detail."""
    logger.error(
        f"Validation error on {request.method} {request.url.path}:\n"
        f"  Errors: {exc.errors()}"
    )
    response = JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Validation error",
            "detail": jsonable_errors(exc)
        }
    )
    return add_cors_headers(response, request)


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors reduced to location, message and type."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


@app.exception_handler(LexPixError)
async def lexpix_exception_handler(request: Request, exc: LexPixError):
    """Errors from the services or shims that no route translated."""
    logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    response = JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "detail": exc.message}
    )
    return add_cors_headers(response, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}:\n"
        f"  Error: {str(exc)}\n"
        f"  Error type: {type(exc).__name__}",
        exc_info=True
    )
    response = JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred"
        }
    )
    return add_cors_headers(response, request)


# Root Endpoints
@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": settings.API_TITLE,
        "status": "healthy",
        "version": settings.API_VERSION
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/health/db")
async def health_check_db(ctx: AppContext = Depends(get_context)):
    """
    Storage backend health check.
    Local mode reports the key-value store; remote mode runs ``SELECT 1``.
    """
    if ctx.mode == "local":
        return {
            "database": "local",
            "status": "healthy",
            "used_bytes": ctx.kv.used_bytes() if ctx.kv is not None else 0
        }
    try:
        from lexpix.database import get_session_factory
        async with get_session_factory()() as session:
            result = await session.execute(text("SELECT 1"))
            return {
                "database": "connected",
                "status": "healthy",
                "result": result.scalar()
            }
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}", exc_info=True)
        return {
            "database": "error",
            "status": "unhealthy",
            "error": "Database connection failed"
        }


@app.get("/health/cloudinary")
async def health_check_cloudinary():
    """
    Cloudinary health check endpoint.
    Validates Cloudinary configuration.
    """
    try:
        if validate_cloudinary_config():
            return {
                "cloudinary": "configured",
                "status": "healthy",
                "cloud_name": settings.CLOUDINARY_CLOUD_NAME
            }
        return {
            "cloudinary": "not_configured",
            "status": "warning",
            "message": "Cloudinary credentials not set in environment variables"
        }
    except Exception as e:
        logger.error(f"Cloudinary health check failed: {str(e)}", exc_info=True)
        return {
            "cloudinary": "error",
            "status": "unhealthy",
            "error": str(e)
        }


@app.on_event("startup")
async def startup_event():
    """
    Build the application context and run database setup.
    Non-blocking: the app starts even if setup fails.
    """
    logger.info(f"CORS allowed origins: {settings.CORS_ORIGINS}")

    if getattr(app.state, "context", None) is None:
        app.state.context = build_context(settings)

    if not await setup_database(app.state.context):
        logger.error(
            "Database setup failed on startup.\n"
            "The application will continue to run, but storage-dependent endpoints may fail."
        )


@app.on_event("shutdown")
async def shutdown_event():
    """Close database connections on application shutdown."""
    context = getattr(app.state, "context", None)
    if context is None or context.mode != "remote":
        return
    try:
        from lexpix.database import close_db
        await close_db()
    except Exception as e:
        # Cancellation during shutdown is expected
        if not isinstance(e, (KeyboardInterrupt, asyncio.CancelledError)):
            logger.warning(f"Error during database shutdown: {str(e)}")
