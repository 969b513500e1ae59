import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Terjadi kesalahan pada server, silakan coba lagi"


class ApiError(Exception):
    """
    Business error raised from services/routers and rendered by the handlers below.
    """

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None, errors: dict | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors or {}


class ValidationFailed(ApiError):
    status_code = 400

    @classmethod
    def from_errors(cls, errors: dict[str, str]) -> "ValidationFailed":
        first = next(iter(errors.values()), "Data tidak valid")
        return cls(first, errors=errors)


class NotAuthorized(ApiError):
    status_code = 403


class NotFound(ApiError):
    status_code = 404


class ClaimConflict(ApiError):
    status_code = 409


class PersistenceError(ApiError):
    status_code = 500


def field_errors(errors: list[dict]) -> dict[str, str]:
    """
    Collapse pydantic error dicts into one message per field (first wins).
    """
    out: dict[str, str] = {}
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "form")]
        field = loc[-1] if loc else "__root__"
        msg = str(err.get("msg", "Data tidak valid"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        out.setdefault(field, msg)
    return out


def _body(message: str, errors: dict | None = None) -> dict:
    body = {"detail": message}
    if errors:
        body["errors"] = errors
    return body


def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, err: ApiError):
        return JSONResponse(status_code=err.status_code, content=_body(err.message, err.errors))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, err: RequestValidationError):
        exc = ValidationFailed.from_errors(field_errors(err.errors()))
        return JSONResponse(status_code=exc.status_code, content=_body(exc.message, exc.errors))

    @app.exception_handler(SQLAlchemyError)
    async def handle_db_error(request: Request, err: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_body(GENERIC_ERROR))
