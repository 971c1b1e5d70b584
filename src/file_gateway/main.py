import logging
from textwrap import dedent

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from file_gateway.adapters.storage import LocalImageStorage
from file_gateway.config.settings import Settings, get_settings
from file_gateway.errors import (
    FileGatewayError,
    handle_broad_exceptions,
    handle_file_gateway_errors,
    handle_http_exceptions,
    handle_request_validation_errors,
)
from file_gateway.routers.health import router as health_router
from file_gateway.routers.images import router as images_router

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="File Gateway",
        summary="Upload, list, serve and delete per-user images",
        version="v1",
        description=dedent(
            """\
        | Route | Purpose |
        | --- | --- |
        | `POST /upload` | store one image from the multipart field `image` |
        | `GET /images` | list the URLs of the user's images |
        | `DELETE /delete` | delete an image by its URL |
        | `GET /{upload dir}/{user}/{file}` | serve a stored image |
        """
        ),
        generate_unique_id_function=custom_generate_unique_id,
    )

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    storage = LocalImageStorage(
        root=settings.upload_root,
        base_url=settings.base_url,
        url_path=settings.upload_url_path,
        max_bytes=settings.max_upload_bytes,
    )
    storage.ensure_root()

    app.state.settings = settings
    app.state.storage = storage

    app.include_router(images_router, tags=["images"])
    app.include_router(health_router, tags=["health"])

    app.mount(
        settings.upload_url_path,
        StaticFiles(directory=storage.root),
        name="uploads",
    )

    @app.api_route("/{full_path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def invalid_route(full_path: str):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Invalid route"})

    app.add_exception_handler(
        exc_class_or_status_code=FileGatewayError,
        handler=handle_file_gateway_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=RequestValidationError,
        handler=handle_request_validation_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=StarletteHTTPException,
        handler=handle_http_exceptions,
    )
    app.middleware("http")(handle_broad_exceptions)

    logger.info("Serving %s from %s", settings.upload_url_path, storage.root)
    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}" if route.tags else route.name


def run_server(settings: Settings | None = None) -> None:
    """Start uvicorn in the foreground until the process is terminated."""
    import uvicorn

    settings = settings or get_settings()
    configure_logging(settings.log_level)
    app = create_app(settings)
    logger.info("Server is running on port %s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run_server()
