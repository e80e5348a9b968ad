"""Error handling implementation for the async stringifier."""

import logging
from typing import Optional
from .types import (
    ErrorHandlerInterface,
    ErrorResponse,
    ErrorType,
    StringifyError,
)


class ErrorHandler(ErrorHandlerInterface):
    """
    Error handler for stringify operations.

    Every failure of a stringify call is fatal; the handler only classifies
    it and suggests what the caller can change before trying again.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the error handler.

        Args:
            logger: Optional logger instance for error reporting
        """
        self.logger = logger or logging.getLogger(__name__)

    def classify_error(self, error: BaseException) -> ErrorType:
        """Map an exception to its ErrorType; anything foreign came from a transform."""
        if isinstance(error, StringifyError):
            return error.error_type
        return ErrorType.TRANSFORM

    def handle_stringify_error(self, error: BaseException) -> ErrorResponse:
        """
        Describe a failed stringify call.

        Args:
            error: Exception raised by the call

        Returns:
            ErrorResponse with a suggested action
        """
        error_type = self.classify_error(error)
        self.logger.error(f"Stringify error: {error_type.value} - {error}")

        if error_type == ErrorType.CIRCULAR:
            return self._handle_circular_error(error)
        elif error_type == ErrorType.UNREPRESENTABLE:
            return self._handle_unrepresentable_error(error)
        else:
            return self._handle_transform_error(error)

    def _handle_circular_error(self, error: StringifyError) -> ErrorResponse:
        """Handle circular reference errors."""
        return ErrorResponse(
            can_recover=False,
            suggested_action="Remove circular references from the input, or have the transform "
                           "replace the back-reference with a serializable stand-in.",
            partial_results=error.context.get("path"),
        )

    def _handle_unrepresentable_error(self, error: StringifyError) -> ErrorResponse:
        """Handle unrepresentable scalar errors."""
        type_name = error.context.get("type", "value")
        return ErrorResponse(
            can_recover=True,
            suggested_action=f"Convert {type_name} values to a string or number in the transform "
                           f"before they are encoded.",
            partial_results=error.context.get("path"),
        )

    def _handle_transform_error(self, error: BaseException) -> ErrorResponse:
        """Handle failures raised by the user transform."""
        return ErrorResponse(
            can_recover=False,
            suggested_action=f"The transform raised {type(error).__name__}; fix the transform "
                           f"or the data it fetches and retry.",
            partial_results=None,
        )
