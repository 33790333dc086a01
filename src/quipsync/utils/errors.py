"""
Error handling utilities for QuipSync.

Provides the error taxonomy shared by the completion engine, the
orchestration services and the HTTP layer, plus structured error responses.
"""

import logging
import traceback
from typing import Optional, Dict, Any
from flask import jsonify, request

logger = logging.getLogger(__name__)

# Raw provider text and validation diagnostics are cut to this many characters
# before being shown to a user or fed back into a prompt.
MAX_ERROR_DETAIL_CHARS = 800


def truncate_detail(text: Optional[str], limit: int = MAX_ERROR_DETAIL_CHARS) -> str:
    """Return at most ``limit`` characters of ``text`` (empty string for None)."""
    if not text:
        return ""
    return str(text)[:limit]


class APIError(Exception):
    """Base exception for QuipSync errors."""

    kind = "internal"
    stage = "internal"

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize API error.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Short, user-facing description of the failure."""
        return {
            "kind": self.kind,
            "stage": self.stage,
            "message": self.message,
        }


class ValidationError(APIError):
    """Raised when caller input is malformed or missing."""

    kind = "validation"
    stage = "input"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details=details
        )


class ExtractionError(APIError):
    """Raised when article text could not be fetched or parsed from a URL."""

    kind = "extraction"
    stage = "extraction"

    def __init__(self, url: str, reason: Optional[str] = None):
        message = "Could not extract article text from the story URL."
        if reason:
            message = f"{message} {truncate_detail(reason, 200)}"
        super().__init__(
            message=message,
            error_code="EXTRACTION_FAILED",
            status_code=502,
            details={"url": url, "reason": truncate_detail(reason)}
        )


class GenerationError(APIError):
    """Raised when script or style generation fails."""

    kind = "generation"
    stage = "generation"

    def __init__(
        self,
        message: str,
        error_code: str = "GENERATION_FAILED",
        status_code: int = 502,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status_code,
            details=details
        )


class SchemaValidationError(GenerationError):
    """Raised when model output never conformed to the schema within the retry budget."""

    kind = "schema_validation"
    stage = "validation"

    def __init__(self, last_error: str, attempts: int, schema_name: Optional[str] = None):
        detail = truncate_detail(last_error)
        super().__init__(
            message=f"Model output failed validation after {attempts} attempt(s).",
            error_code="SCHEMA_VALIDATION_FAILED",
            status_code=502,
            details={
                "attempts": attempts,
                "schema": schema_name,
                "last_error": detail,
            }
        )
        self.last_error = detail
        self.attempts = attempts


class ProviderError(GenerationError):
    """Raised on transport, auth or timeout failures from the completion provider."""

    kind = "provider"
    stage = "generation"

    def __init__(self, provider: str, message: Optional[str] = None):
        error_message = message or f"Completion provider '{provider}' is currently unavailable."
        super().__init__(
            message=truncate_detail(error_message),
            error_code="PROVIDER_UNAVAILABLE",
            status_code=503,
            details={"provider": provider}
        )
        self.provider = provider


class CacheError(APIError):
    """Raised by cache backends when storage is unavailable. Never fatal."""

    kind = "cache"
    stage = "cache"

    def __init__(self, operation: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"Script cache {operation} failed.",
            error_code="CACHE_UNAVAILABLE",
            status_code=500,
            details={"operation": operation}
        )


class NotFoundError(APIError):
    """Raised when a resource is not found."""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            message=f"{resource_type} '{resource_id}' not found.",
            error_code="NOT_FOUND",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class RateLimitError(APIError):
    """Raised when rate limit is exceeded."""

    def __init__(self, retry_after: Optional[int] = None):
        message = "Rate limit exceeded. Please try again later."
        details = {}
        if retry_after:
            details["retry_after"] = retry_after
            message += f" Retry after {retry_after} seconds."

        super().__init__(
            message=message,
            error_code="RATE_LIMIT_EXCEEDED",
            status_code=429,
            details=details
        )


def build_error_body(error: APIError, include_traceback: bool = False) -> Dict[str, Any]:
    """Build the JSON body for an APIError."""
    body = {
        "error": error.message,
        "error_code": error.error_code,
        "kind": error.kind,
        "stage": error.stage,
    }
    if error.details:
        body["details"] = error.details
    if include_traceback:
        body["traceback"] = traceback.format_exc()
    return body


def create_error_response(
    error: Exception,
    include_traceback: bool = False
) -> tuple:
    """
    Create a standardized error response.

    Args:
        error: Exception instance
        include_traceback: Whether to include traceback in response (for debugging)

    Returns:
        Tuple of (json_response, status_code)
    """
    if isinstance(error, APIError):
        logger.warning(
            f"{type(error).__name__}: {error.message}",
            extra={
                "path": request.path if request else None,
                "method": request.method if request else None,
            }
        )
        return jsonify(build_error_body(error, include_traceback)), error.status_code

    logger.error(
        f"Error: {type(error).__name__}: {str(error)}",
        exc_info=True,
        extra={
            "path": request.path if request else None,
            "method": request.method if request else None,
        }
    )

    # Don't expose internal errors in production
    error_message = str(error)
    if not include_traceback:
        error_message = "An unexpected error occurred. Please try again."

    response = {
        "error": error_message,
        "error_code": "INTERNAL_ERROR",
        "kind": "internal",
        "stage": "internal",
    }
    if include_traceback:
        response["traceback"] = traceback.format_exc()

    return jsonify(response), 500


def register_error_handlers(app, debug: bool = False):
    """
    Register error handlers for the Flask app.

    Args:
        app: Flask application instance
        debug: Whether to include tracebacks in error responses
    """
    @app.errorhandler(APIError)
    def handle_api_error(error: APIError):
        """Handle APIError exceptions."""
        return create_error_response(error, include_traceback=debug)

    @app.errorhandler(404)
    def handle_not_found(error):
        """Handle 404 errors."""
        return create_error_response(
            NotFoundError("Resource", request.path),
            include_traceback=False
        )

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        """Handle 405 Method Not Allowed errors."""
        return jsonify({
            "error": f"Method '{request.method}' not allowed for this endpoint.",
            "error_code": "METHOD_NOT_ALLOWED",
            "kind": "validation",
            "stage": "input",
        }), 405

    @app.errorhandler(429)
    def handle_rate_limit(error):
        """Handle 429 Rate Limit errors."""
        return create_error_response(RateLimitError(), include_traceback=False)

    @app.errorhandler(500)
    def handle_internal_error(error):
        """Handle 500 Internal Server errors."""
        return create_error_response(error, include_traceback=debug)

    @app.errorhandler(Exception)
    def handle_generic_exception(error: Exception):
        """Handle all other exceptions."""
        return create_error_response(error, include_traceback=debug)
