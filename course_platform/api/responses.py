"""Uniform JSON envelope for every response.

Success: {"status": true,  "message": ..., "data": {...}}
Failure: {"status": false, "message": ..., "errors": [...]}   (500 uses "error")

`failure()` classifies an exception by category, first match wins:

1. validation      -> 400 "Validation error"
2. not found       -> 404 "Resource not exists"
3. bad request     -> 400 "Wrong Request Parameters"
4. unauthorized    -> 401 "Verification failed" (token errors carry
                      "Wrong Token" / "Expired Token")
5. anything else   -> 500 "Internal server error"

Errors are raised, never written by handlers, and FastAPI invokes exactly one
exception handler per request, so a request gets exactly one body.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from course_platform.errors import (
    BadRequestError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


def success(message: str, data: Optional[Dict[str, Any]] = None, code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=code,
        content=jsonable_encoder({"status": True, "message": message, "data": data or {}}),
    )


def _body(code: int, message: str, errors: List[str]) -> JSONResponse:
    return JSONResponse(status_code=code, content={"status": False, "message": message, "errors": errors})


def _request_validation_messages(exc: RequestValidationError) -> List[str]:
    out: List[str] = []
    for e in exc.errors():
        loc = [str(p) for p in e.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc)
        msg = str(e.get("msg") or "invalid")
        out.append(f"{field}: {msg}" if field else msg)
    return out


def failure(exc: BaseException) -> JSONResponse:
    if isinstance(exc, ValidationError):
        return _body(400, "Validation error", exc.errors)

    if isinstance(exc, RequestValidationError):
        return _body(400, "Validation error", _request_validation_messages(exc))

    if isinstance(exc, NotFoundError):
        return _body(404, "Resource not exists", [exc.message])

    if isinstance(exc, BadRequestError):
        return _body(400, "Wrong Request Parameters", [exc.message])

    if isinstance(exc, UnauthorizedError):
        return _body(401, "Verification failed", [exc.message])

    if isinstance(exc, StarletteHTTPException) and exc.status_code < 500:
        detail = str(exc.detail)
        if exc.status_code == 404:
            return _body(404, "Resource not exists", [detail])
        if exc.status_code == 401:
            return _body(401, "Verification failed", [detail])
        return _body(exc.status_code, "Wrong Request Parameters", [detail])

    _debug(f"unhandled error: {exc!r}")
    return JSONResponse(
        status_code=500,
        content={"status": False, "message": "Internal server error", "error": [str(exc)]},
    )


def install_error_handlers(app: FastAPI) -> None:
    """Register the envelope handlers and the last-resort middleware.

    Call before adding CORSMiddleware: the `Exception` handler runs in
    ServerErrorMiddleware, outside every user middleware, so without the inner
    catch a 500 would leave without CORS headers.
    """

    async def _handle(_: Request, exc: Exception) -> JSONResponse:
        return failure(exc)

    @app.middleware("http")
    async def _unhandled(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return failure(exc)

    for exc_type in (
        ValidationError,
        NotFoundError,
        BadRequestError,
        UnauthorizedError,
        RequestValidationError,
        StarletteHTTPException,
        Exception,
    ):
        app.add_exception_handler(exc_type, _handle)
