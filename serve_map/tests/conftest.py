from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from serve_map.i18n.i18n import initialize_i18n

BASE_MTIME = 1_700_000_000.0


@pytest.fixture(autouse=True)
def english_messages() -> None:
    initialize_i18n("en")


@pytest.fixture
def save_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "saves"
    directory.mkdir()
    return directory


@pytest.fixture
def make_save(save_dir: Path) -> Callable[..., Path]:
    def _make_save(file_name: str, mtime_offset: float = 0.0, content: bytes | None = None) -> Path:
        path = save_dir / file_name
        path.write_bytes(content if content is not None else file_name.encode("utf-8"))
        mtime = BASE_MTIME + mtime_offset
        os.utime(path, (mtime, mtime))
        return path

    return _make_save
