from __future__ import annotations

from pathlib import Path


def _package_root() -> Path:
    return Path(__file__).resolve().parent.parent


def resource_path(relative_path: str) -> Path:
    return (_package_root() / relative_path).resolve()


def get_translations_dir() -> Path:
    return resource_path("i18n/translations")
