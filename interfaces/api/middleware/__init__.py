"""API middleware for error handling and cross-cutting concerns."""

from interfaces.api.middleware.error_handler import handle_use_case_errors
from interfaces.api.middleware.upload_limit import UploadSizeLimitMiddleware

__all__ = ["UploadSizeLimitMiddleware", "handle_use_case_errors"]
