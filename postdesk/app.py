"""
FastAPI application entry point for the admin backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from postdesk.config import get_settings
from postdesk.errors import PostdeskError
from postdesk.routes import router

logger = logging.getLogger(__name__)


def _invalid_fields(exc: RequestValidationError) -> str:
    names = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        if loc and loc[-1] not in names:
            names.append(loc[-1])
    if not names:
        return "Invalid request body"
    return f"Missing or invalid fields: {', '.join(names)}"


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    app = FastAPI(title="Postdesk Admin API", version="0.1.0")

    @app.exception_handler(PostdeskError)
    async def _postdesk_error_handler(request: Request, exc: PostdeskError):
        if exc.status_code >= 500:
            logger.error(
                "%s %s failed: %s", request.method, request.url.path, exc.message
            )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ):
        return JSONResponse(status_code=400, content={"error": _invalid_fields(exc)})

    @app.exception_handler(Exception)
    async def _unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()


def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run("postdesk.app:app", host="0.0.0.0", port=settings.port, reload=False)


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
