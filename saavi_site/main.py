"""
FastAPI application entry point.
Main application instance with middleware, route configuration and the static site.
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, FileResponse, RedirectResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from datetime import datetime, timezone
from pathlib import Path
import logging
import asyncio
import time

from saavi_site.config import settings
from saavi_site.database import init_db, close_db, check_db
from saavi_site.schemas import HealthResponse
from saavi_site.services.image_storage import get_uploads_dir
from saavi_site.utils.rate_limit import limiter
from saavi_site.routes import auth, gallery, contact

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()

app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

_wildcard_origins = "*" in settings.CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=not _wildcard_origins,  # Must be False when using wildcard origin
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET,
    max_age=settings.SESSION_MAX_AGE,
    same_site="lax",
    https_only=False,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log each request's outcome; failures are logged with a traceback and re-raised."""
    method = request.method
    path = request.url.path

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


@app.middleware("http")
async def redirect_to_canonical_host(request: Request, call_next):
    """
    301 from the bare domain to CANONICAL_HOST (e.g. saavilite.in -> www.saavilite.in).
    The health check is exempt so probes against either host keep working.
    """
    canonical = settings.CANONICAL_HOST
    if canonical and canonical.startswith("www.") and request.url.path != "/api/health":
        host = request.headers.get("host", "").split(":")[0].lower()
        if host == canonical[4:].lower():
            target = f"https://{canonical}{request.url.path}"
            if request.url.query:
                target += f"?{request.url.query}"
            return RedirectResponse(target, status_code=status.HTTP_301_MOVED_PERMANENTLY)
    return await call_next(request)


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.
    Always answers 200 so the process can be told apart from its database.
    """
    db_ok = await check_db()
    return HealthResponse(
        status="online",
        uptime=round(time.monotonic() - STARTED_AT, 3),
        database="connected" if db_ok else "error",
        timestamp=datetime.now(timezone.utc),
    )


app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(gallery.router, prefix="/api", tags=["gallery"])
app.include_router(contact.router, prefix="/api", tags=["contact"])


@app.api_route("/api/{rest:path}", methods=["GET", "POST", "PUT", "DELETE", "PATCH"], include_in_schema=False)
async def api_not_found(rest: str):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "Endpoint Not Found"}
    )


def _public_dir() -> Path:
    return Path(settings.PUBLIC_DIR).resolve()


def _page(name: str):
    page = _public_dir() / name
    if not page.is_file():
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Not Found"})
    return FileResponse(page)


@app.get("/admin", include_in_schema=False)
async def admin_page():
    return _page("admin.html")


@app.get("/{full_path:path}", include_in_schema=False)
async def site(full_path: str):
    """
    Serve a file from PUBLIC_DIR, falling back to index.html for client-side routes.
    Paths that resolve outside PUBLIC_DIR are never served.
    """
    public_dir = _public_dir()
    if full_path:
        target = (public_dir / full_path).resolve()
        if target.is_relative_to(public_dir) and target.is_file():
            return FileResponse(target)
    return _page("index.html")


# Exception Handlers
def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances that the JSON encoder cannot handle
    return [
        {key: value for key, value in error.items() if key in ("type", "loc", "msg")}
        for error in exc.errors()
    ]


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions (400, 401, 404, ...) as JSON bodies."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"HTTPException on {request.method} {request.url.path}: {exc.status_code} {exc.detail}")

    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail, "detail": str(exc.detail)}

    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Validation error",
            "detail": jsonable_errors(exc)
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}\n"
        f"  Error type: {type(exc).__name__}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred"
        }
    )


def _log_loop_exception(loop, context):
    """Event loop crash handler: logs errors from background tasks, never recovers them."""
    exc = context.get("exception")
    logger.critical(
        f"Unhandled error in event loop: {context.get('message', 'no message')}",
        exc_info=exc
    )


@app.on_event("startup")
async def startup_event():
    """
    Initialize the database, uploads directory and gallery lock.
    Non-blocking: the site still serves pages if the database is unreachable.
    """
    asyncio.get_running_loop().set_exception_handler(_log_loop_exception)
    app.state.gallery_lock = asyncio.Lock()

    uploads_dir = get_uploads_dir()
    uploads_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Serving public files from {_public_dir()} (image storage: {settings.IMAGE_STORAGE})")

    try:
        await init_db()
        logger.info("Database connection established successfully")
    except Exception as e:
        logger.error(
            f"Failed to initialize database on startup: {str(e)}\n"
            f"The site will continue to run, but gallery and auth endpoints will fail."
        )


@app.on_event("shutdown")
async def shutdown_event():
    """Close database connections on application shutdown."""
    try:
        await close_db()
    except Exception as e:
        if not isinstance(e, (KeyboardInterrupt, asyncio.CancelledError)):
            logger.warning(f"Error during database shutdown: {str(e)}")


def run():
    """Console entry point: serve the app with uvicorn on HOST:PORT."""
    import uvicorn

    uvicorn.run("saavi_site.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
