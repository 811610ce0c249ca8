from __future__ import annotations

from pathlib import Path

CONFIG_FILE_NAME = "config.toml"


def get_default_config_path() -> Path:
    # The service unit starts us inside a directory holding the generated config.toml.
    return (Path.cwd() / CONFIG_FILE_NAME).resolve()


def get_log_file_path(configured: str | None) -> Path | None:
    if configured is None or configured.strip() == "":
        return None

    log_file = Path(configured).expanduser()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return log_file.resolve()
