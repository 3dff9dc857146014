"""
Shared OpenAPI response examples

Used in ``@router`` decorators so Swagger UI shows the common response
envelope for both success and error cases.
"""

from typing import Any, Dict

_META_EXAMPLE = {
    "requestId": "req-uuid-xxx",
    "timestamp": "2025-01-15T10:35:00Z",
}

_ERROR_EXAMPLES: Dict[int, tuple[str, str, str]] = {
    400: ("Bad Request", "ValidationError", "Query is required"),
    401: ("Unauthorized", "HTTP.401", "Could not validate credentials"),
    403: ("Forbidden", "AuthorizationError", "Not allowed to modify this post"),
    404: ("Not Found", "RecordNotFoundError", "Post with id=... not found"),
    422: ("Unprocessable Entity", "ValidationError", "body.content: Field required"),
    429: ("Too Many Requests", "RateLimitExceededError", "Rate limit exceeded"),
    500: ("Internal Server Error", "SearchFailedError", "Search failed"),
    503: ("Service Unavailable", "ServiceUnavailableError", "AI service unavailable"),
}


def success_response_example(
    status_code: int = 200,
    data_example: Any = None,
) -> Dict[int, Dict[str, Any]]:
    """
    Build the success example for one status code

    Args:
        status_code: HTTP status (200, 201, 204, ...)
        data_example: Example value of the ``data`` field
    """
    if status_code == 204:
        # No Content
        return {}

    return {
        status_code: {
            "description": {200: "Success", 201: "Created"}.get(status_code, "Success"),
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": data_example or {},
                        "error": None,
                        "meta": _META_EXAMPLE,
                        "feedback": [],
                    }
                }
            },
        }
    }


def error_response_example(status_code: int) -> Dict[str, Any]:
    description, code, message = _ERROR_EXAMPLES[status_code]
    return {
        "description": description,
        "content": {
            "application/json": {
                "example": {
                    "success": False,
                    "data": None,
                    "error": {
                        "code": code,
                        "message": message,
                        "details": None,
                        "hint": None,
                    },
                    "meta": _META_EXAMPLE,
                    "feedback": [],
                }
            }
        },
    }


def combined_responses(
    status_code: int = 200,
    data_example: Any = None,
    include_errors: list[int] | None = None,
) -> Dict[int, Dict[str, Any]]:
    """
    Success example plus the listed error examples

    Args:
        status_code: Success HTTP status
        data_example: Example value of the ``data`` field
        include_errors: Error statuses to document (default: [400, 401, 500])
    """
    if include_errors is None:
        include_errors = [400, 401, 500]

    responses = success_response_example(status_code, data_example)
    for error_code in include_errors:
        if error_code in _ERROR_EXAMPLES:
            responses[error_code] = error_response_example(error_code)

    return responses
