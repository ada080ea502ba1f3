import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import NotFoundError, StorageError
from .logging_setup import setup_logging
from .repositories import get_repository
from .routers import tasks as tasks_router
from .settings import get_settings

_settings = get_settings()

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "CRUD operations for tasks, with an optional filter by owning user.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging, log the effective configuration and open the store before serving."""
    setup_logging(_settings.log_level)
    logger.info(
        "Starting task API env=%s backend=%s database_url=%s prefix=%s",
        _settings.app_env,
        _settings.persistence_backend,
        "set" if _settings.database_url else "default",
        _settings.api_prefix or "/",
    )
    if get_repository not in app.dependency_overrides:
        get_repository()
    yield


app = FastAPI(
    title="Task Manager API",
    description="REST API for creating, listing, updating and deleting tasks.",
    version="1.0.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# Configure CORS from the CORS_ALLOW_ORIGINS environment variable, with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Report invalid payloads, path and query parameters as a client error.

    Response format:
        {
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": [... one entry per violated rule ...]
        }
    """
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(NotFoundError)
async def not_found_exception_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "NotFoundError", "detail": str(exc)},
    )


@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "StorageError", "message": "Storage backend error"},
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.persistence_backend}


app.include_router(tasks_router.router, prefix=_settings.api_prefix)


# PUBLIC_INTERFACE
def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run(app, host=_settings.host, port=_settings.port, log_config=None)


if __name__ == "__main__":
    run()
