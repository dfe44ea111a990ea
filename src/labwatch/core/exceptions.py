"""
Labwatch exception types and their HTTP translations.
"""

import logging
from typing import Any, Dict

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class LabwatchError(Exception):
    """Base class for inventory errors raised by the service layer."""

    status_code = 500
    public_message = "Internal server error"


class DeviceNotFoundError(LabwatchError):
    """Raised when a device id does not exist in the inventory."""

    status_code = 404
    public_message = "PC not found"

    def __init__(self, device_id: int):
        super().__init__(f"Device {device_id} not found")
        self.device_id = device_id


class InvalidStatusError(LabwatchError):
    """Raised when an admin update names an unknown device status."""

    status_code = 400

    def __init__(self, status: str):
        super().__init__(f"Invalid status: {status}")
        self.status = status
        self.public_message = f"Invalid status: {status}"


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


async def labwatch_exception_handler(request: Request, exc: LabwatchError) -> JSONResponse:
    """Translate service-layer errors into the standard error envelope."""
    if exc.status_code >= 500:
        logger.error(f"Error handling {request.method} {request.url.path}: {exc}", exc_info=exc)
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return _error_response(exc.status_code, exc.public_message)


def _is_absent(error: Dict[str, Any]) -> bool:
    if error.get("type") in ("missing", "string_too_short"):
        return True
    return error.get("type") == "string_type" and error.get("input") is None


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Reject malformed request bodies before any side effect.

    A missing, null or blank hostname is reported with the message reporting
    agents expect.
    """
    errors = exc.errors()
    for error in errors:
        if "hostname" in error.get("loc", ()) and _is_absent(error):
            return _error_response(400, "Hostname is required")

    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    logger.info(f"{request.method} {request.url.path} failed validation: {message}")
    return _error_response(400, message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report unexpected failures generically; details go to the log."""
    logger.error(f"Error handling {request.method} {request.url.path}: {exc}", exc_info=exc)
    return _error_response(500, "Internal server error")
