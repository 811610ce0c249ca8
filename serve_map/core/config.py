from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from serve_map.core.errors import ConfigError
from serve_map.core.paths import get_default_config_path
from serve_map.core.saves.models import VersionPolicy
from serve_map.core.saves.naming import DEFAULT_NAME_PATTERN

SATISFACTORY_CALCULATOR_ORIGIN = "https://satisfactory-calculator.com"


@dataclass(frozen=True, slots=True)
class ServerSettings:
    base_url: str
    save_dir: Path
    port: int = 7778
    host: str = "0.0.0.0"
    cache_ttl_seconds: float = 0.0
    request_timeout_seconds: float = 10.0
    version_policy: VersionPolicy = VersionPolicy.FILENAME_THEN_MTIME
    name_pattern: str = DEFAULT_NAME_PATTERN
    cors_origins: tuple[str, ...] = (SATISFACTORY_CALCULATOR_ORIGIN,)
    map_viewer_url: str = f"{SATISFACTORY_CALCULATOR_ORIGIN}/en/interactive-map?url="
    language: str = "en"
    log_level: str = "INFO"
    log_file: str | None = None


class AppConfig:
    _SUPPORTED_LANGUAGES = {"en", "de"}
    _SUPPORTED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

    _DEFAULTS: dict[str, Any] = {
        "base_url": None,
        "save_dir": None,
        "port": 7778,
        "host": "0.0.0.0",
        "cache_ttl_seconds": 0.0,
        "request_timeout_seconds": 10.0,
        "version_policy": VersionPolicy.FILENAME_THEN_MTIME.value,
        "name_pattern": DEFAULT_NAME_PATTERN,
        "cors_origins": [SATISFACTORY_CALCULATOR_ORIGIN],
        "map_viewer_url": f"{SATISFACTORY_CALCULATOR_ORIGIN}/en/interactive-map?url=",
        "language": "en",
        "log_level": "INFO",
        "log_file": None,
    }

    def __init__(self, config_path: Path | None = None, overrides: Mapping[str, Any] | None = None) -> None:
        self._explicit_path = config_path is not None
        self._config_path = config_path or get_default_config_path()
        self._data: dict[str, Any] = dict(self._DEFAULTS)
        self._load()
        for key, value in (overrides or {}).items():
            if value is not None:
                self._data[key] = value

    def _load(self) -> None:
        if not self._config_path.exists():
            if self._explicit_path:
                raise ConfigError(f"Config file not found: {self._config_path}")
            return

        try:
            loaded = tomllib.loads(self._config_path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"Cannot read config file {self._config_path}: {exc}") from exc
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {self._config_path}: {exc}") from exc

        unknown = sorted(set(loaded) - set(self._DEFAULTS))
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

        self._data.update(loaded)

    def get_base_url(self) -> str:
        value = self._data.get("base_url")
        if not isinstance(value, str) or value.strip() == "":
            raise ConfigError("base_url is required")
        return value.strip().rstrip("/")

    def get_save_dir(self) -> Path:
        value = self._data.get("save_dir")
        if value is None or str(value).strip() == "":
            raise ConfigError("save_dir is required")

        save_dir = Path(str(value)).expanduser()
        if not save_dir.is_dir():
            raise ConfigError(f"Save directory doesn't exist: {save_dir}")
        if not os.access(save_dir, os.R_OK | os.X_OK):
            raise ConfigError(f"Save directory is not readable: {save_dir}")
        return save_dir.resolve()

    def get_port(self) -> int:
        port = self._coerce_int("port")
        if not 1 <= port <= 65535:
            raise ConfigError(f"port must be between 1 and 65535, got {port}")
        return port

    def get_cache_ttl_seconds(self) -> float:
        value = self._coerce_float("cache_ttl_seconds")
        if value < 0:
            raise ConfigError("cache_ttl_seconds must not be negative")
        return value

    def get_request_timeout_seconds(self) -> float:
        value = self._coerce_float("request_timeout_seconds")
        if value <= 0:
            raise ConfigError("request_timeout_seconds must be positive")
        return value

    def get_version_policy(self) -> VersionPolicy:
        value = str(self._data.get("version_policy", "")).strip().lower()
        try:
            return VersionPolicy(value)
        except ValueError as exc:
            choices = ", ".join(policy.value for policy in VersionPolicy)
            raise ConfigError(f"version_policy must be one of: {choices}") from exc

    def get_cors_origins(self) -> tuple[str, ...]:
        origins = self._data.get("cors_origins")
        if isinstance(origins, str):
            origins = [origins]
        if not isinstance(origins, list):
            raise ConfigError("cors_origins must be a list of origins")
        return tuple(str(origin).strip().rstrip("/") for origin in origins if str(origin).strip())

    def get_language(self) -> str:
        language = str(self._data.get("language", self._DEFAULTS["language"])).strip().lower()
        if language not in self._SUPPORTED_LANGUAGES:
            return self._DEFAULTS["language"]
        return language

    def get_log_level(self) -> str:
        level = str(self._data.get("log_level", self._DEFAULTS["log_level"])).strip().upper()
        if level not in self._SUPPORTED_LOG_LEVELS:
            raise ConfigError(f"Unsupported log_level: {level}")
        return level

    def to_settings(self) -> ServerSettings:
        log_file = self._data.get("log_file")
        return ServerSettings(
            base_url=self.get_base_url(),
            save_dir=self.get_save_dir(),
            port=self.get_port(),
            host=str(self._data.get("host") or self._DEFAULTS["host"]),
            cache_ttl_seconds=self.get_cache_ttl_seconds(),
            request_timeout_seconds=self.get_request_timeout_seconds(),
            version_policy=self.get_version_policy(),
            name_pattern=str(self._data.get("name_pattern") or DEFAULT_NAME_PATTERN),
            cors_origins=self.get_cors_origins(),
            map_viewer_url=str(self._data.get("map_viewer_url") or ""),
            language=self.get_language(),
            log_level=self.get_log_level(),
            log_file=str(log_file) if log_file else None,
        )

    def _coerce_int(self, key: str) -> int:
        value = self._data.get(key, self._DEFAULTS[key])
        if isinstance(value, bool):
            raise ConfigError(f"{key} must be an integer")
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{key} must be an integer, got {value!r}") from exc

    def _coerce_float(self, key: str) -> float:
        value = self._data.get(key, self._DEFAULTS[key])
        if isinstance(value, bool):
            raise ConfigError(f"{key} must be a number")
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{key} must be a number, got {value!r}") from exc
