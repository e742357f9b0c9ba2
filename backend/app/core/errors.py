# backend/app/core/errors.py

from typing import Any, Dict


class ServiceError(Exception):
    """Base error; carries the HTTP status it is reported with."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(ServiceError):
    status_code = 400


class AuthError(ServiceError):
    status_code = 401


class NotFoundError(ServiceError):
    status_code = 404


class QuotaExceededError(ServiceError):
    status_code = 429

    def __init__(self, message: str, current_count: int):
        super().__init__(message)
        self.current_count = current_count

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "limitReached": True}


class GenerationError(ServiceError):
    """The model call failed or its output could not be turned into the schema."""


class CatalogEmptyError(ServiceError):
    pass


class PersistenceError(ServiceError):
    pass


class EmailDeliveryError(ServiceError):
    pass
