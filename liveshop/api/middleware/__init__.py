"""Middleware for request logging and last-resort error handling."""

from liveshop.api.middleware.error_handling import ErrorHandlingMiddleware
from liveshop.api.middleware.logging import LoggingMiddleware

__all__ = ["ErrorHandlingMiddleware", "LoggingMiddleware"]
