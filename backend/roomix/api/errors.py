"""Global error handlers ensuring request_id is included in JSON responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from roomix.domain.common.exceptions import DomainError
from roomix.obs.logging import current_request_id

logger = logging.getLogger(__name__)


def get_request_id(request: Request) -> str:
	return getattr(request.state, "request_id", None) or current_request_id()


def install_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(StarletteHTTPException)
	async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
		payload = {"detail": exc.detail, "request_id": get_request_id(request)}
		return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))

	@app.exception_handler(RequestValidationError)
	async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
		payload = {
			"detail": "validation_error",
			"errors": jsonable_encoder(exc.errors()),
			"request_id": get_request_id(request),
		}
		return JSONResponse(status_code=422, content=payload)

	@app.exception_handler(DomainError)
	async def domain_exc_handler(request: Request, exc: DomainError):  # type: ignore[override]
		if exc.status_code >= 409:
			logger.info("request rejected status=%s reason=%s path=%s", exc.status_code, exc.reason, request.url.path)
		payload = {"detail": exc.reason, "request_id": get_request_id(request)}
		return JSONResponse(status_code=exc.status_code, content=payload)
