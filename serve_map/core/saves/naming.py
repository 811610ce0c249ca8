from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from serve_map.core.errors import ConfigError

DEFAULT_NAME_PATTERN = (
    r"^(?P<base>.+?)"
    r"(?:_autosave_(?P<seq>\d+)"
    r"|_(?P<stamp>\d{8}[-_]\d{6}|\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}))?"
    r"\.sav$"
)

_STAMP_FORMATS = ("%Y%m%d-%H%M%S", "%Y%m%d_%H%M%S", "%Y-%m-%d_%H-%M-%S")


@dataclass(frozen=True, slots=True)
class ParsedSaveName:
    base_name: str
    sequence: int | None
    stamp: datetime | None


class SaveNameParser(Protocol):
    def parse(self, file_name: str) -> ParsedSaveName | None: ...


class RegexSaveNameParser:
    def __init__(self, pattern: str = DEFAULT_NAME_PATTERN, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("serve_map.scanner.naming")
        try:
            self._regex = re.compile(pattern)
        except re.error as exc:
            raise ConfigError(f"Invalid name_pattern: {exc}") from exc

        if "base" not in self._regex.groupindex:
            raise ConfigError("name_pattern must define a named group 'base'")

    @property
    def pattern(self) -> str:
        return self._regex.pattern

    def parse(self, file_name: str) -> ParsedSaveName | None:
        match = self._regex.match(file_name)
        if match is None:
            return None

        groups = match.groupdict()
        base_name = (groups.get("base") or "").strip()
        if base_name == "":
            return None

        sequence: int | None = None
        raw_sequence = groups.get("seq")
        if raw_sequence:
            sequence = int(raw_sequence)

        stamp: datetime | None = None
        raw_stamp = groups.get("stamp")
        if raw_stamp:
            stamp = self._parse_stamp(raw_stamp)
            if stamp is None:
                self._logger.debug("Ignoring invalid timestamp token in %s", file_name)

        return ParsedSaveName(base_name=base_name, sequence=sequence, stamp=stamp)

    @staticmethod
    def _parse_stamp(raw_stamp: str) -> datetime | None:
        for stamp_format in _STAMP_FORMATS:
            try:
                # Tokens are written in the server's local time.
                return datetime.strptime(raw_stamp, stamp_format).astimezone()
            except ValueError:
                continue
        return None
