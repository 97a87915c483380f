from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse


class AsteroidsError(Exception):
    """Base class for errors raised by the asteroids service."""


class ConfigurationError(AsteroidsError):
    """A required setting is missing or invalid. Raised at startup only."""

    def __init__(self, setting: str, reason: str = "is not defined"):
        super().__init__(f"{setting} {reason}.")
        self.setting = setting


class InvalidDaysError(AsteroidsError):
    """The `days` query parameter is absent, not an integer or negative."""

    def __init__(self):
        super().__init__("The number of days must be positive.")


class TransportError(AsteroidsError):
    """The NEO feed could not be reached or returned an unreadable body."""


async def invalid_days_handler(request: Request, exc: InvalidDaysError) -> PlainTextResponse:
    return PlainTextResponse(str(exc), status_code=400)


async def transport_error_handler(request: Request, exc: TransportError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": str(exc)})
