"""
Centralized error handling utilities.

The bridge translates errors in layers:

1. **Low level** (USB library, sockets, Pillow) raises standard Python exceptions.
2. **Device layer** converts them to `SurfaceBridgeError` subclasses with a
   user message, a technical message and, where useful, a recovery hint.
3. **Process layer** (`app.run_app` and the CLI) formats them for display.

## Handling Patterns

| Pattern | Code |
|---------|------|
| Log and keep going | `@handle_errors(operation_name="blank panel", re_raise=False)` |
| Log and re-raise | `@handle_errors(operation_name="open surface", re_raise=True)` |
| Critical section with auto-logging | `with ErrorContext("initialize devices"): ...` |
| Config parse failure | `raise wrap_pydantic_error(e, str(path)) from e` |

`handle_errors` works on both plain functions and coroutine functions, since
most device operations are async.
"""

import inspect
import logging
from functools import wraps
from typing import Callable, Optional, TypeVar

from .base import SurfaceBridgeError
from .config import ConfigFileInvalidError, ConfigValidationError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def handle_errors(
    *,
    operation_name: str,
    re_raise: bool = True,
    log_level: int = logging.ERROR
) -> Callable:
    """
    Decorator for consistent error handling.

    Args:
        operation_name: Name of the operation for logging (e.g., "blank panel")
        re_raise: Whether to re-raise the exception after handling (otherwise
            the call returns None)
        log_level: Logging level for the error (default: ERROR)

    Example:
        ```python
        @handle_errors(operation_name="blank panel", re_raise=False)
        async def _blank_panel(self):
            await self._surface.clear_panel()
        ```

    Returns:
        Decorated function
    """
    def _report(e: Exception) -> None:
        if isinstance(e, SurfaceBridgeError):
            logger.log(log_level, f"Failed to {operation_name}: {e.technical_message}")
        else:
            logger.log(
                log_level,
                f"Unexpected error during {operation_name}: {e}",
                exc_info=True
            )

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    _report(e)
                    if re_raise:
                        raise
                    return None

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                _report(e)
                if re_raise:
                    raise
                return None

        return wrapper
    return decorator


class ErrorContext:
    """
    Context manager for error handling with automatic logging.

    Example:
        ```python
        with ErrorContext("initialize devices", re_raise=False) as ctx:
            ...

        if ctx.error:
            print(f"Failed: {ctx.error}")
        ```
    """

    def __init__(
        self,
        operation: str,
        logger_instance: Optional[logging.Logger] = None,
        re_raise: bool = True
    ):
        """
        Initialize error context.

        Args:
            operation: Description of the operation
            logger_instance: Logger to use (defaults to module logger)
            re_raise: Whether to re-raise exceptions
        """
        self.operation = operation
        self.logger = logger_instance or logger
        self.re_raise = re_raise
        self.error: Optional[Exception] = None

    def __enter__(self):
        self.logger.debug(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """
        Exit the context and handle any exceptions.

        Returns:
            True if exception should be suppressed, False otherwise
        """
        if exc_type is None:
            self.logger.debug(f"Completed: {self.operation}")
            return False

        self.error = exc_val

        if isinstance(exc_val, SurfaceBridgeError):
            self.logger.error(
                f"Failed to {self.operation}: {exc_val.technical_message}"
            )
        else:
            self.logger.error(
                f"Failed to {self.operation}: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb)
            )

        return not self.re_raise


def wrap_pydantic_error(error: Exception, file_path: str) -> SurfaceBridgeError:
    """
    Convert Pydantic validation errors to SurfaceBridge exceptions.

    Args:
        error: The Pydantic ValidationError
        file_path: Path to the config file that failed validation

    Returns:
        A ConfigurationError with appropriate type and message
    """
    from pydantic import ValidationError

    error_msg = str(error)

    # Valid JSON is a precondition for everything below
    if "Invalid JSON" in error_msg or "json_invalid" in error_msg:
        # Format: "Invalid JSON: <actual error> [type=json_invalid, ..."
        if "Invalid JSON:" in error_msg:
            parse_error = error_msg.split("Invalid JSON:")[1].split("[type=")[0].strip()
        else:
            parse_error = error_msg

        return ConfigFileInvalidError(file_path, parse_error)

    if isinstance(error, ValidationError):
        errors = error.errors()
        if errors:
            if len(errors) == 1:
                first_error = errors[0]
                field = ".".join(str(loc) for loc in first_error.get('loc', ('unknown',)))
                reason = first_error.get('msg', 'validation failed')
                value = first_error.get('input', None)

                return ConfigValidationError(
                    field=field,
                    value=value,
                    error_msg=reason,
                    file_path=file_path
                )

            error_lines = []
            for err in errors:
                field = ".".join(str(loc) for loc in err.get('loc', ('unknown',)))
                msg = err.get('msg', 'validation failed')
                error_lines.append(f"  - {field}: {msg}")

            combined_msg = f"{len(errors)} validation errors:\n" + "\n".join(error_lines)

            return ConfigValidationError(
                field="multiple fields",
                value=None,
                error_msg=combined_msg,
                file_path=file_path
            )

    return ConfigValidationError(
        field="unknown",
        value=None,
        error_msg=error_msg,
        file_path=file_path
    )


def format_error_for_display(error: Exception) -> tuple[str, Optional[str]]:
    """
    Format an exception for user display.

    Returns:
        Tuple of (user_message, recovery_hint or None)
    """
    if isinstance(error, SurfaceBridgeError):
        return error.user_message, error.recovery_hint

    error_type = type(error).__name__
    return f"{error_type}: {error}", None
