"""
Domain exceptions and their HTTP mapping.

Services raise these; ``register_exception_handlers`` turns them into JSON
responses.  ``ConflictOnTagCreate`` never leaves the tag service.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BlogError(Exception):
    """Base class for errors raised by the blog services."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class Unauthorized(BlogError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFound(BlogError):
    pass


class ValidationError(BlogError):
    """Create input violates a constraint; *field* names the offending input."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"message": "Validation failed", "errors": {self.field: [self.message]}}


class ConflictOnTagCreate(BlogError):
    """Another transaction inserted the same tag name first."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"tag {name!r} was created concurrently")


def _field_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        # loc is ("body", "title") / ("query", "feed"); keep the field part
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query")]
        field = ".".join(loc) or "body"
        errors.setdefault(field, []).append(err.get("msg", "invalid"))
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    """Install JSON handlers for the domain exceptions on *app*."""

    @app.exception_handler(Unauthorized)
    async def handle_unauthorized(request: Request, exc: Unauthorized):
        # The body is fixed regardless of the internal reason.
        return JSONResponse(status_code=401, content={"message": "Unauthorized"})

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.info("Rejected %s %s: %s=%s", request.method, request.url.path, exc.field, exc.message)
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"message": "Validation failed", "errors": _field_errors(exc)},
        )

    @app.exception_handler(NotFound)
    async def handle_not_found(request: Request, exc: NotFound):
        return JSONResponse(status_code=404, content={"message": exc.message})
