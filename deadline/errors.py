"""
Exceptions raised by the pipelines and API routes.

Every class carries the HTTP status the API layer renders it with.
"""


class DeadlineError(Exception):
    """Base exception for Deadline operations"""
    status_code = 500
    error = "Internal server error"


class AuthError(DeadlineError):
    """Raised when the shared-secret API key is missing or wrong"""
    status_code = 401
    error = "Invalid or missing API key"


class NotFoundError(DeadlineError):
    """Raised when an Event or EventDetails row does not exist"""
    status_code = 404
    error = "Event not found"


class ValidationError(DeadlineError):
    """Raised when a required request parameter is missing or malformed"""
    status_code = 400
    error = "Invalid request"


class UpstreamError(DeadlineError):
    """Raised when the search provider, scraping or the LLM fails a whole run"""
    pass


class ExtractionError(DeadlineError):
    """Raised when the LLM reply cannot be parsed as the expected JSON"""
    pass


class StoreError(DeadlineError):
    """Raised when a store read or write fails"""
    pass
