"""Иерархия исключений приложения.

Каждая ошибка несёт сообщение для пользователя, машинный код и детали,
чтобы контроллеры могли показать уведомление без разбора текста.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from enlarger.models.session_model import ErrorKind


class EnlargerError(Exception):
    """Базовая ошибка приложения."""
    def __init__(self, message: str, error_code: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class ValidationError(EnlargerError):
    """Изображение не проходит ограничения по пикселям или размеру файла."""
    def __init__(self, message: str, pixel_count: int, size_bytes: int) -> None:
        super().__init__(
            message=message,
            error_code="IMAGE_TOO_LARGE",
            details={"pixel_count": pixel_count, "size_bytes": size_bytes},
        )


class DecodeError(EnlargerError):
    """Байты не удалось декодировать как изображение."""
    def __init__(self, source: str, reason: Optional[str] = None) -> None:
        super().__init__(
            message=f"Could not read image: {source}",
            error_code="DECODE_FAILED",
            details={"source": source, "reason": reason},
        )


class EnlargeError(EnlargerError):
    """Ошибка сетевого/серверного уровня при увеличении."""
    def __init__(self, kind: ErrorKind, message: str, status: Optional[int] = None) -> None:
        super().__init__(
            message=message,
            error_code=kind.value,
            details={"status": status},
        )
        self.kind = kind
        self.status = status


class HostError(EnlargerError):
    """Хост не смог выполнить операцию с документом или ассетами."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message=message, error_code="HOST_ERROR", details=details)


class InvalidTransition(EnlargerError):
    """Переход провенанса отсутствует в таблице допустимых."""
    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            message=f"Transition {current} -> {target} is not allowed",
            error_code="INVALID_TRANSITION",
            details={"current": current, "target": target},
        )
