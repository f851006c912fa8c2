import logging
from functools import wraps

from fastapi.responses import JSONResponse

from .exceptions import InvalidRequest, SyncError

logger = logging.getLogger(__name__)


def error_response(message: str, status_code: int = 500) -> JSONResponse:
    """Build the ``{"error": message}`` body every failed call returns."""
    return JSONResponse(status_code=status_code, content={"error": message})


def handle_errors(func):
    """
    Decorator to handle exceptions in API endpoints.

    Wraps a plain (non-async) endpoint, which FastAPI runs in its threadpool,
    so that no exception escapes as a stack trace:
    - SyncError subclasses return their status code (500) and message
    - anything else is logged with its traceback and returned as a 500

    Example:
        >>> @app.get("/example")
        >>> @handle_errors
        >>> def example_endpoint():
        >>>     # Your endpoint logic here
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)

        except InvalidRequest as e:
            logger.warning(f"Rejected request: {e.message}")
            return error_response(e.message, e.status_code)

        except SyncError as e:
            logger.error(f"{type(e).__name__}: {e.message}")
            return error_response(e.message, e.status_code)

        except Exception as e:
            logger.exception(f"Unexpected server error in {func.__name__}")
            return error_response(str(e) or type(e).__name__, 500)
    return wrapper
