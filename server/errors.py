# server/errors.py

from typing import Any


class NewsApiError(Exception):
    """
    Base class for every error the API reports to its callers.
    Carries the HTTP status it maps to and optional field-level details.
    """
    status_code = 500

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        self.message = message
        self.errors = errors or []
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(NewsApiError):
    status_code = 400


class ConflictError(NewsApiError):
    status_code = 400


class PayloadTooLarge(NewsApiError):
    status_code = 400


class UploadFailed(NewsApiError):
    status_code = 400


class InvalidCredentials(NewsApiError):
    status_code = 401

    def __init__(self):
        super().__init__("Invalid credentials")


class Unauthenticated(NewsApiError):
    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class Forbidden(NewsApiError):
    status_code = 403

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class NotFound(NewsApiError):
    status_code = 404


class InternalError(NewsApiError):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
