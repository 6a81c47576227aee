"""Ошибки сервисов ссылок и аккаунтов.

Каждая ошибка :class:`ApiError` знает свой HTTP-статус; обработчики в
:mod:`sliceurl.main` превращают ее в ответ-конверт.
"""
from typing import Optional


class ApiError(Exception):
    status_code = 500
    default_message = "Internal server error."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(ApiError):
    status_code = 400
    default_message = "Invalid request."


class UnauthorizedError(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "You do not have permission to access this resource"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Conflict"


class RateLimitExceededError(ApiError):
    status_code = 429
    default_message = "Too many requests, please try again later."

    def __init__(self, message: Optional[str] = None, window: int = 60, max_requests: int = 0):
        super().__init__(message)
        self.window = window
        self.max_requests = max_requests

    @property
    def rate_limit(self) -> dict:
        return {
            "window": self.window,
            "maxRequests": self.max_requests,
            "retryAfter": self.window
        }


class InternalError(ApiError):
    status_code = 500


class DuplicateKeyError(Exception):
    """Запись отклонена ограничением уникальности"""
