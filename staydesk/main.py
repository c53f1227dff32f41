import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import settings
from .db import init_db
from .exceptions import ConfigurationError, ConflictError, StorageError, TransitionError, ValidationError
from .limiter import limiter
from .routers import admin_views, public_views

# --- Logging configuration ---
_level = logging.DEBUG if getattr(settings, "DEBUG", False) else logging.INFO
logging.basicConfig(
    level=_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# Align uvicorn loggers with our level (useful under Docker Compose)
for _name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(_name).setLevel(_level)
logger = logging.getLogger("staydesk.startup")
logger.info("Starting %s (DEBUG=%s)", settings.APP_NAME, getattr(settings, "DEBUG", False))

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    description=(
        f"{settings.APP_NAME}: room booking requests with admin review.\n\n"
        "Guests request stays under /api; the admin reviews conflicts and "
        "accepts or rejects requests under /api/admin."
    ),
)

@app.on_event("startup")
def startup_event():
    """Runs startup tasks, like ensuring the tables exist."""
    logger.info("Running startup tasks...")
    init_db()
    logger.info("Startup tasks complete.")


# --- Domain errors -> HTTP ---
def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error(422, exc)

@app.exception_handler(TransitionError)
async def transition_error_handler(request: Request, exc: TransitionError):
    return _error(409, exc)

@app.exception_handler(ConflictError)
async def conflict_error_handler(request: Request, exc: ConflictError):
    return _error(409, exc)

@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return _error(503, exc)

@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("Configuration problem: %s", exc)
    return _error(503, exc)


# Add the limiter to the app state
app.state.limiter = limiter
# Add the exception handler for rate limit exceeded errors
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(public_views.router)
app.include_router(admin_views.router)
app.include_router(admin_views.protected)

@app.get("/healthz")
@limiter.exempt
def healthz():
    return {"status": "ok"}
