from __future__ import annotations

from typing import Any


class ServeMapError(Exception):
    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error_code, "message": self.message}
        payload.update(self.details)
        return payload


class ConfigError(ServeMapError):
    error_code = "config_error"


class SaveDirectoryError(ServeMapError):
    error_code = "save_dir_unreadable"


class InvalidSaveNameError(ServeMapError):
    status_code = 400
    error_code = "invalid_name"


class SaveNotFoundError(ServeMapError):
    status_code = 404
    error_code = "save_not_found"


class SaveReadError(ServeMapError):
    error_code = "save_unreadable"


class ScanTimeoutError(ServeMapError):
    status_code = 503
    error_code = "timeout"
