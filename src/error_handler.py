"""
Error Handler for StatClash

Decorator that turns exceptions raised by socket handlers into error events
for the requesting client.
"""

import functools
import logging

from src.core.errors import ValidationError
from src.services.error_response_factory import ErrorResponseFactory

logger = logging.getLogger(__name__)


def with_error_handling(func):
    """
    Decorator for Socket.IO event handlers to provide consistent error handling.

    ValidationError subclasses are reported with their own code; anything
    else becomes INTERNAL_ERROR. Nothing is broadcast to the room.

    Args:
        func: Socket.IO event handler function

    Returns:
        Wrapped function with error handling
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        factory = ErrorResponseFactory()
        try:
            return func(*args, **kwargs)
        except ValidationError as e:
            logger.info(f"Rejected {func.__name__}: {e.code.value}")
            factory.emit_validation_error(e)
        except Exception as e:
            error_code, error_message = factory.handle_exception(e, func.__name__)
            factory.emit_error(error_code, error_message)

    return wrapper
