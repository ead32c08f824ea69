"""
Error types raised by the quote resolution engine.

``ValidationError`` means the request is malformed and should be reported to
the end user. ``ConfigurationError`` means the tenant's catalog is broken and
an operator needs to fix it.
"""
from typing import Optional


class QuoteEngineError(Exception):
    """Base class for all engine errors."""

    code = "quote_engine_error"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "code": self.code, "message": self.message, "details": self.details}


class ValidationError(QuoteEngineError):
    """The quote request is malformed."""

    code = "invalid_request"


class ConfigurationError(QuoteEngineError):
    """The catalog snapshot violates an integrity rule."""

    code = "invalid_catalog"
