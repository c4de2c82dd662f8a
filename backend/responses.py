"""Standardized response infrastructure for API endpoints.

Provides consistent response format with structured codes and messages.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from fastapi.responses import JSONResponse


class ResponseCode(str, Enum):
    """Response codes for API responses.

    Ranges: 0xxx=Success, 1xxx=Client Error, 2xxx=Server Error
    """

    # Success codes
    SUCCESS = "0000"
    UPDATE_IGNORED = "0001"

    # Client errors
    VALIDATION_ERROR = "1000"
    NOT_FOUND = "1001"
    METHOD_NOT_ALLOWED = "1002"

    # Server errors
    INTERNAL_ERROR = "2000"


# Response messages mapped to codes
RESPONSE_MESSAGES: dict[ResponseCode, str] = {
    ResponseCode.SUCCESS: "Operation completed successfully",
    ResponseCode.UPDATE_IGNORED: "Update has no message to handle",
    ResponseCode.VALIDATION_ERROR: "Request validation failed",
    ResponseCode.NOT_FOUND: "Resource not found",
    ResponseCode.METHOD_NOT_ALLOWED: "Method not allowed",
    ResponseCode.INTERNAL_ERROR: "An internal error occurred",
}

# HTTP status codes for each response code
HTTP_STATUS_MAP: dict[ResponseCode, int] = {
    ResponseCode.SUCCESS: 200,
    ResponseCode.UPDATE_IGNORED: 200,
    ResponseCode.VALIDATION_ERROR: 422,
    ResponseCode.NOT_FOUND: 404,
    ResponseCode.METHOD_NOT_ALLOWED: 405,
    ResponseCode.INTERNAL_ERROR: 500,
}


def get_message(code: ResponseCode) -> str:
    """Get the message for a response code."""
    return RESPONSE_MESSAGES.get(code, "Unknown error")


def get_http_status(code: ResponseCode) -> int:
    """Get HTTP status code for a response code."""
    return HTTP_STATUS_MAP.get(code, 500)


def success_dict(
    code: ResponseCode,
    data: Any = None,
    custom_message: str | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    """Build a standardized success response dictionary."""
    return {
        "code": code.value,
        "success": True,
        "message": custom_message or get_message(code),
        "timestamp": datetime.now(UTC).isoformat(),
        "request_id": request_id,
        "data": data,
    }


def error_dict(
    code: ResponseCode,
    custom_message: str | None = None,
    error_details: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    """Build a standardized error response dictionary."""
    return {
        "code": code.value,
        "success": False,
        "message": custom_message or get_message(code),
        "timestamp": datetime.now(UTC).isoformat(),
        "request_id": request_id,
        "error_details": error_details,
    }


def success_response(
    code: ResponseCode,
    data: Any = None,
    request_id: str | None = None,
) -> JSONResponse:
    """Create a JSONResponse with success format."""
    return JSONResponse(
        content=success_dict(code, data, request_id=request_id),
        status_code=get_http_status(code),
    )
