"""JSON error bodies for the HTTP surface, always tagged with the request id."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from badger_connect.obs.logging import current_request_id


def _request_id(request: Request) -> str:
	return (
		getattr(request.state, "request_id", None)
		or current_request_id()
		or request.headers.get("X-Request-Id")
		or "unknown"
	)


def _error(request: Request, status_code: int, detail, **extra) -> JSONResponse:
	return JSONResponse(
		status_code=status_code,
		content={"detail": detail, **extra, "request_id": _request_id(request)},
	)


def install_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(StarletteHTTPException)
	async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
		return _error(request, exc.status_code, exc.detail)

	@app.exception_handler(RequestValidationError)
	async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
		return _error(request, 422, "validation_error", errors=exc.errors())
