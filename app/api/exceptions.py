import logging
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from app.domain.exceptions import AppError, NotFound, Conflict, Unprocessable, Unauthorized, InvalidInput, Forbidden, \
    InternalError
from app.core.ctx import REQUEST_ID_CTX

logger = logging.getLogger(__name__)

MEDIA_TYPE = "application/problem+json"

# routes whose success body is {success, message, ...}; their problems carry the same two keys
RESULT_ENVELOPE_ROUTES = frozenset({"/tickets/scan"})

_STATUS_BY_CLASS: dict[type[AppError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    Unauthorized: status.HTTP_401_UNAUTHORIZED,
    Forbidden: status.HTTP_403_FORBIDDEN,
    Conflict: status.HTTP_409_CONFLICT,
    InvalidInput: status.HTTP_400_BAD_REQUEST,
    Unprocessable: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InternalError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    AppError: status.HTTP_400_BAD_REQUEST,
}

_TITLES: dict[type[AppError], str] = {
    NotFound: "Not Found",
    Unauthorized: "Unauthorized",
    Forbidden: "Forbidden",
    Conflict: "Conflict",
    InvalidInput: "Bad Request",
    Unprocessable: "Unprocessable Entity",
    InternalError: "Internal Server Error",
    AppError: "Application Error",
}


def _www_authenticate_header(
        scheme: str = "Bearer",
        realm: str | None = "api",
        error: str | None = "invalid_token",
        error_description: str | None = None,
) -> str:
    parts = [scheme]
    attributes = []
    if realm:
        attributes.append(f'realm="{realm}"')
    if error:
        attributes.append(f'error="{error}"')
    if error_description:
        attributes.append(f'error_description="{error_description}"')
    if attributes:
        parts.append(" " + ", ".join(attributes))
    return "".join(parts)


def _lookup(exc: AppError, table: dict, default):
    for cls in type(exc).mro():
        if cls in table:
            return table[cls]
    return default


def _status_for(exc: AppError) -> int:
    return _lookup(exc, _STATUS_BY_CLASS, status.HTTP_400_BAD_REQUEST)


def _title_for(exc: AppError) -> str:
    return _lookup(exc, _TITLES, "Application Error")


def _problem(
    request: Request,
    *,
    http_status: int,
    title: str,
    detail: str | None = None,
    extra: dict | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = {
        "status": http_status,
        "title": title,
        "detail": detail,
        "instance": str(request.url),
    }
    req_id = REQUEST_ID_CTX.get()
    if req_id:
        body["trace_id"] = req_id
    route = request.scope.get("route")
    if getattr(route, "path", None) in RESULT_ENVELOPE_ROUTES:
        body["success"] = False
        body["message"] = detail
    if extra:
        body.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=http_status, content=body, media_type=MEDIA_TYPE, headers=headers or {})


def register_error_handler(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError):
        status_code = _status_for(exc)
        title = _title_for(exc)
        detail = str(exc) or None

        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("Internal error on %s: %s ctx=%s", request.url.path, detail, exc.ctx)
            return _problem(request, http_status=status_code, title=title, detail=detail)

        extra = {"context": exc.ctx} if exc.ctx else None

        headers: dict[str, str] | None = None
        if isinstance(exc, Unauthorized):
            headers = {
                "WWW-Authenticate": _www_authenticate_header(
                    scheme="Bearer", realm="api", error="invalid_token", error_description=detail
                )
            }

        return _problem(
            request,
            http_status=status_code,
            title=title,
            detail=detail,
            extra=extra,
            headers=headers
        )

    @app.exception_handler(SQLAlchemyError)
    async def _db_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s", request.url.path)
        return _problem(
            request,
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            title="Internal Server Error",
            detail="Internal server error"
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return _problem(
            request,
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            title="Internal Server Error",
            detail="Internal server error"
        )
