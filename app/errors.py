"""Exception -> HTTP response translation."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from kureno.services.errors import KurenoError

logger: logging.Logger = logging.getLogger(__name__)

_INTERNAL_ERROR = {"error": "Internal server error"}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(KurenoError)
    async def _on_service_error(request: Request, exc: KurenoError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %r", request.method, request.url.path, exc)
            return JSONResponse(status_code=exc.status_code, content=_INTERNAL_ERROR)
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    @app.exception_handler(SQLAlchemyError)
    async def _on_storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Storage failure on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_INTERNAL_ERROR)

    @app.exception_handler(Exception)
    async def _on_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled: %s", exc)
        return JSONResponse(status_code=500, content=_INTERNAL_ERROR)
