"""
Error responses for the farm service.

Failures are turned into APIError instances. Data endpoints return stock
messages and keep driver errors in the logs. The initialize endpoint is the
exception: administrators get the migration tool's output (or the error text)
in the message so a failed initialization can be diagnosed from the admin
panel. Every error body has the same shape:

    {"error": "<message>"}                      # most errors
    {"error": "<message>", "message": "<hint>"}  # when there is something to do

Flow:
    1. The helper logs the original exception with its traceback
    2. The endpoint raises the returned APIError; the app factory renders it

Example:
    ```python
    from fincafe.exceptions import handle_database_error, handle_farm_database_error

    try:
        async with farm_session(farm.database_name) as session:
            ...
    except Exception as e:
        raise handle_farm_database_error("fetching farm roles", e)
    ```
"""

from typing import Any

from loguru import logger

from fincafe.database.errors import is_not_provisioned_error

HTTP_400_BAD_REQUEST = 400
HTTP_403_FORBIDDEN = 403
HTTP_404_NOT_FOUND = 404
HTTP_422_UNPROCESSABLE_ENTITY = 422
HTTP_500_INTERNAL_SERVER_ERROR = 500
HTTP_503_SERVICE_UNAVAILABLE = 503

DEFAULT_MESSAGES: dict[int, str] = {
    HTTP_400_BAD_REQUEST: "Invalid request. Please check your input and try again.",
    HTTP_403_FORBIDDEN: "Access denied. You don't have permission to perform this action.",
    HTTP_404_NOT_FOUND: "Resource not found.",
    HTTP_422_UNPROCESSABLE_ENTITY: "Validation error. Please check your request parameters.",
    HTTP_503_SERVICE_UNAVAILABLE: "Service temporarily unavailable. Please try again later.",
}
FALLBACK_MESSAGE = "An error occurred while processing your request. Please try again later."

FARM_NOT_INITIALIZED_ERROR = "Farm database not initialized"
FARM_NOT_INITIALIZED_HINT = "Please initialize the farm database first from the admin panel."
FARM_DATA_ERROR = "Failed to retrieve data. Please try again later."


class APIError(Exception):
    """
    Raised by endpoints; rendered as a JSON error body by the app factory.

    Attributes:
        message (str): Returned to the client as "error".
        status_code (int): Response status. 500 unless given.
        internal_error (Exception | None): What actually went wrong. Kept for
            logging, never serialized.
        hint (str | None): What the client can do about it, returned as "message".

    Example:
        ```python
        if farm is None:
            raise APIError("Farm not found", status_code=404)
        ```
    """

    def __init__(
        self,
        message: str,
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
        internal_error: Exception | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.internal_error = internal_error
        self.hint = hint

    def to_content(self) -> dict[str, Any]:
        content: dict[str, Any] = {"error": self.message}
        if self.hint:
            content["message"] = self.hint
        return content


def create_api_error(
    operation: str,
    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
    internal_error: Exception | None = None,
    user_message: str | None = None,
    hint: str | None = None,
) -> APIError:
    """
    Log a failure and build the APIError describing it to the client.

    Args:
        operation: What was being done (e.g. "initializing farm database").
            Only appears in the log line.
        status_code: Response status. Defaults to 500.
        internal_error: The original exception. Logged with its traceback.
        user_message: Message for the client. Falls back to a stock message
            for the status code.
        hint: Follow-up instruction for the client.

    Returns:
        APIError ready to be raised from a route handler.
    """
    if internal_error is not None:
        logger.opt(exception=internal_error).error(f"{operation} failed: {internal_error}")

    message = user_message or DEFAULT_MESSAGES.get(status_code, FALLBACK_MESSAGE)
    return APIError(message, status_code=status_code, internal_error=internal_error, hint=hint)


def handle_database_error(operation: str, error: Exception) -> APIError:
    """Generic 500 for a failed query."""
    return create_api_error(
        operation,
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        internal_error=error,
        user_message=FARM_DATA_ERROR,
    )


def handle_farm_database_error(operation: str, error: Exception) -> APIError:
    """
    Handle errors raised while querying a farm database.

    A farm whose database (or tables) does not exist yet is not a server fault:
    the client gets 503 and is told to initialize the farm. Everything else is
    a generic database error.

    Args:
        operation: Description of the farm operation that failed.
        error: The exception raised by the farm query.

    Returns:
        APIError with status 503 for not-provisioned farms, 500 otherwise.
    """
    if is_not_provisioned_error(error):
        logger.warning(f"Farm database not initialized during {operation}: {error}")
        return APIError(
            FARM_NOT_INITIALIZED_ERROR,
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
            internal_error=error,
            hint=FARM_NOT_INITIALIZED_HINT,
        )
    return handle_database_error(operation, error)


def handle_validation_error(operation: str, error: Exception) -> APIError:
    """
    Handle validation errors (bad identifiers, malformed input).

    Validation errors are expected, so they are logged at WARNING level and
    the message of the error itself is returned to the client.

    Returns:
        APIError with status code 422.
    """
    logger.warning(f"Rejected input while {operation}: {error}")
    return APIError(
        str(error), status_code=HTTP_422_UNPROCESSABLE_ENTITY, internal_error=error
    )
