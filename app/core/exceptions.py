# app/core/exceptions.py
from typing import Dict, List, Optional


class AppError(Exception):
    """Base error carrying the HTTP status it maps to"""
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class BadRequestError(AppError):
    status_code = 400
    default_message = "Bad request"


class ValidationError(BadRequestError):
    """Input failed one or more field rules; every failure is listed"""
    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Resource already exists"


class InternalError(AppError):
    status_code = 500


class GitHubAPIError(AppError):
    """Upstream GitHub API failure; status_code mirrors the upstream status"""
    status_code = 502
    default_message = "GitHub API request failed"
