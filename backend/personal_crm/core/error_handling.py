"""Request-id propagation, request logging, and JSON error envelopes."""

from __future__ import annotations

from time import perf_counter
from typing import TYPE_CHECKING, Any, Final
from uuid import uuid4

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.datastructures import MutableHeaders
from starlette.exceptions import HTTPException as StarletteHTTPException

from personal_crm.core.config import settings
from personal_crm.core.logging import get_logger
from personal_crm.services.errors import CrmError, ErrorKind

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = get_logger(__name__)

REQUEST_ID_HEADER: Final[str] = "X-Request-Id"
_HEALTH_PATHS: Final[frozenset[str]] = frozenset({"/health", "/healthz", "/readyz"})
_INTERNAL_ERROR_DETAIL: Final[str] = "Internal Server Error"
_ERROR_KIND_STATUS: Final[dict[ErrorKind, int]] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.STORE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class RequestIdMiddleware:
    """ASGI middleware that assigns a request id and logs request completion."""

    def __init__(self, app: ASGIApp, *, header_name: str = REQUEST_ID_HEADER) -> None:
        self._app = app
        self._header_name = header_name
        self._header_key = header_name.lower().encode("latin-1")

    def _incoming_request_id(self, scope: Scope) -> str | None:
        for key, value in scope.get("headers", []):
            if key.lower() == self._header_key:
                candidate = value.decode("latin-1").strip()
                return candidate or None
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self._app(scope, receive, send)
            return

        request_id = self._incoming_request_id(scope) or uuid4().hex
        scope.setdefault("state", {})["request_id"] = request_id
        started = perf_counter()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = int(message["status"])
                headers = MutableHeaders(scope=message)
                headers[self._header_name] = request_id
            await send(message)

        try:
            await self._app(scope, receive, send_with_request_id)
        finally:
            self._log_request(scope, request_id=request_id, status_code=status_code, started=started)

    def _log_request(
        self,
        scope: Scope,
        *,
        request_id: str,
        status_code: int,
        started: float,
    ) -> None:
        path = str(scope.get("path", ""))
        if path in _HEALTH_PATHS and not settings.request_log_include_health:
            return
        duration_ms = round((perf_counter() - started) * 1000, 2)
        extra = {
            "request_id": request_id,
            "method": scope.get("method"),
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
        }
        threshold = settings.request_log_slow_ms
        if threshold and duration_ms >= threshold:
            logger.warning(
                "http.request.slow",
                extra={**extra, "slow_threshold_ms": threshold},
            )
            return
        logger.info("http.request.complete", extra=extra)


def _get_request_id(request: Request) -> str | None:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    return None


def _json_safe(value: object) -> object:
    """Coerce validation error payloads into JSON-serializable values."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_json_safe(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def _error_payload(
    *,
    detail: object,
    request_id: str | None,
    code: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"detail": detail}
    if code is not None:
        payload["code"] = code
    if request_id is not None:
        payload["request_id"] = request_id
    return payload


def _json_response(
    request: Request,
    *,
    status_code: int,
    detail: object,
    code: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    request_id = _get_request_id(request)
    response_headers = dict(headers or {})
    if request_id is not None:
        response_headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(detail=detail, request_id=request_id, code=code),
        headers=response_headers,
    )


async def _request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        msg = "Expected RequestValidationError"
        raise TypeError(msg)
    return _json_response(
        request,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=jsonable_encoder(_json_safe(exc.errors())),
    )


async def _response_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, ResponseValidationError):
        msg = "Expected ResponseValidationError"
        raise TypeError(msg)
    logger.error(
        "http.response.validation_failed",
        extra={
            "request_id": _get_request_id(request),
            "path": request.url.path,
            "errors": _json_safe(exc.errors()),
        },
    )
    return _json_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=_INTERNAL_ERROR_DETAIL,
    )


async def _http_exception_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        msg = "Expected StarletteHTTPException"
        raise TypeError(msg)
    return _json_response(
        request,
        status_code=exc.status_code,
        detail=exc.detail,
        headers=exc.headers,
    )


async def _crm_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, CrmError):
        msg = "Expected CrmError"
        raise TypeError(msg)
    status_code = _ERROR_KIND_STATUS[exc.kind]
    if exc.kind is ErrorKind.STORE:
        logger.error(
            "crm.store.failed",
            exc_info=exc,
            extra={"request_id": _get_request_id(request), "path": request.url.path},
        )
        return _json_response(
            request,
            status_code=status_code,
            detail=_INTERNAL_ERROR_DETAIL,
            code=exc.kind.value,
        )
    return _json_response(
        request,
        status_code=status_code,
        detail=exc.message,
        code=exc.kind.value,
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "http.request.unhandled_exception",
        exc_info=exc,
        extra={"request_id": _get_request_id(request), "path": request.url.path},
    )
    return _json_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=_INTERNAL_ERROR_DETAIL,
    )


def install_error_handling(app: FastAPI) -> None:
    """Attach request-id middleware and JSON exception handlers to *app*."""
    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(CrmError, _crm_error_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
