from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from types import MappingProxyType


class VersionPolicy(str, Enum):
    FILENAME_THEN_MTIME = "filename_then_mtime"
    MTIME = "mtime"


@dataclass(frozen=True, slots=True)
class SaveRecord:
    base_name: str
    version_key: datetime
    path: Path
    modified_at: datetime
    size: int
    sequence: int | None = None
    version_source: str = "mtime"

    @property
    def file_name(self) -> str:
        return self.path.name

    def rank(self) -> tuple[datetime, str]:
        return self.version_key, str(self.path)


@dataclass(frozen=True, slots=True)
class SaveGroup:
    base_name: str
    latest: SaveRecord
    candidate_count: int


@dataclass(frozen=True, slots=True)
class SaveScanResult:
    root: Path
    records: tuple[SaveRecord, ...]
    warnings: tuple[str, ...]


class Catalog:
    __slots__ = ("_groups",)

    def __init__(self, groups: Mapping[str, SaveGroup] | None = None) -> None:
        self._groups: Mapping[str, SaveGroup] = MappingProxyType(dict(groups or {}))

    def __repr__(self) -> str:
        return f"Catalog(names={self.names()!r})"

    def __len__(self) -> int:
        return len(self._groups)

    def __contains__(self, base_name: object) -> bool:
        return base_name in self._groups

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Catalog):
            return NotImplemented
        return dict(self._groups) == dict(other._groups)

    def get(self, base_name: str) -> SaveGroup | None:
        return self._groups.get(base_name)

    def names(self) -> list[str]:
        return sorted(self._groups.keys())

    def groups(self) -> list[SaveGroup]:
        return [self._groups[name] for name in self.names()]
