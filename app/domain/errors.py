from __future__ import annotations

from typing import Any


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_SERVER_ERROR"
    default_message = "Sunucu hatası oluştu"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Geçersiz veri girişi"

    @classmethod
    def for_field(cls, field: str, message: str) -> ValidationError:
        return cls(details={"fieldErrors": {field: [message]}, "formErrors": []})


class DependentsError(AppError):
    status_code = 400
    code = "HAS_DEPENDENTS"
    default_message = "Bu kayda bağlı kayıtlar var. Önce bağlı kayıtları silin."


class AuthenticationError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Oturum gerekli"


class AuthorizationError(AppError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Bu işlem için yetkiniz yok"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Kayıt bulunamadı"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Bu kayıt zaten var"


class RateLimitError(AppError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    default_message = "Çok fazla istek gönderildi. Lütfen daha sonra tekrar deneyin."

    def __init__(self, *, limit: int, remaining: int, reset: float, message: str | None = None) -> None:
        super().__init__(
            message,
            details={"limit": limit, "remaining": remaining, "reset": reset},
        )
        self.reset = reset


class InternalError(AppError):
    pass
