"""Standardized error handling for the Stratus API.

Provides consistent error responses and logging patterns
across all API endpoints.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, Optional, Tuple

from flask import jsonify

from stratus.errors import (
    DecodeError,
    EntityNotFound,
    InvalidOnboardRequest,
    MissingIdentifier,
    StoreError,
    StratusError,
)

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors.

    Usage:
        raise APIError("Resource not found", status_code=404)
        raise APIError("Invalid input", status_code=400, details={"field": "name"})
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}

    def to_response(self) -> Tuple[dict, int]:
        """Convert to Flask JSON response."""
        response = {"error": self.message}
        if self.details:
            response["details"] = self.details
        return jsonify(response), self.status_code


class ValidationError(APIError):
    """Raised for input validation failures."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, status_code=400, details=details)


class NotFoundError(APIError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} '{identifier}' not found"
        super().__init__(message, status_code=404)


def from_stratus_error(error: StratusError) -> APIError:
    """Map a domain error onto the API error carrying its status code."""
    if isinstance(error, InvalidOnboardRequest):
        return ValidationError(error.message, field=error.field)
    if isinstance(error, (MissingIdentifier, DecodeError)):
        return ValidationError(error.message)
    if isinstance(error, EntityNotFound):
        return NotFoundError(error.kind, error.identifier)
    if isinstance(error, StoreError):
        return APIError("Database error", status_code=500)
    return APIError(error.message, status_code=500)


def handle_api_errors(app):
    """Register error handlers with Flask app.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(APIError)
    def handle_api_error(error: APIError):
        return error.to_response()

    @app.errorhandler(StratusError)
    def handle_stratus_error(error: StratusError):
        return from_stratus_error(error).to_response()

    @app.errorhandler(400)
    def handle_bad_request(error):
        return jsonify({"error": "Bad request"}), 400

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def handle_internal_error(error):
        logger.exception("Internal server error")
        return jsonify({"error": "Internal server error"}), 500


def safe_endpoint(operation_name: str):
    """Decorator for standardized error handling on API endpoints.

    Domain errors are converted to API errors; anything unexpected is
    logged and reported without its details.

    Args:
        operation_name: Human-readable name for logging

    Usage:
        @app.route("/instances")
        @safe_endpoint("list instances")
        def list_instances():
            ...
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)
            except APIError:
                # Let API errors pass through to be handled by Flask
                raise
            except StoreError as e:
                logger.error(f"Store error in {operation_name}: {e}")
                raise from_stratus_error(e) from e
            except StratusError as e:
                logger.info(f"Rejected {operation_name}: {e}")
                raise from_stratus_error(e) from e
            except Exception as e:
                # Log unexpected errors but don't expose details
                logger.error(
                    f"Unexpected error in {operation_name}: {type(e).__name__}: {e}",
                    exc_info=True
                )
                return jsonify({"error": f"Error in {operation_name}"}), 500

        return wrapper

    return decorator
