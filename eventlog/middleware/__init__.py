"""Middleware package for request processing."""

from eventlog.middleware.request_logging import SystemLoggingMiddleware

__all__ = ["SystemLoggingMiddleware"]
