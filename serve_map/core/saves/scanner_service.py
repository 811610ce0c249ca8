from __future__ import annotations

import logging
import os
import stat
from datetime import datetime, timezone
from pathlib import Path

from serve_map.core.errors import SaveDirectoryError
from serve_map.core.saves.models import SaveRecord, SaveScanResult, VersionPolicy
from serve_map.core.saves.naming import RegexSaveNameParser, SaveNameParser
from serve_map.i18n.i18n import tr


class SaveScannerService:
    def __init__(
        self,
        parser: SaveNameParser | None = None,
        version_policy: VersionPolicy = VersionPolicy.FILENAME_THEN_MTIME,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger("serve_map.scanner")
        self._parser = parser or RegexSaveNameParser(logger=self._logger)
        self._version_policy = version_policy

    def scan(self, save_dir: Path) -> SaveScanResult:
        root = save_dir.expanduser()
        self._logger.debug("Scanning save directory: %s", root)

        try:
            # One listing per scan; metadata is read per entry afterwards.
            entries = sorted(root.iterdir())
        except OSError as exc:
            self._logger.error("Cannot list save directory %s: %s", root, exc)
            raise SaveDirectoryError(tr("error.save_dir_unreadable", path=root), path=str(root)) from exc

        records: list[SaveRecord] = []
        warnings: list[str] = []
        for entry in entries:
            record = self._scan_entry(entry, warnings)
            if record is not None:
                records.append(record)

        self._logger.debug(
            "Scan finished: entries=%s records=%s warnings=%s",
            len(entries),
            len(records),
            len(warnings),
        )
        return SaveScanResult(root=root, records=tuple(records), warnings=tuple(warnings))

    def _scan_entry(self, entry: Path, warnings: list[str]) -> SaveRecord | None:
        parsed = self._parser.parse(entry.name)
        if parsed is None:
            return None

        try:
            stat_info = self._read_metadata(entry)
        except OSError as exc:
            # A save being written or rotated right now can vanish or be locked.
            self._logger.warning("Skipping %s: %s", entry.name, exc)
            warnings.append(tr("scan.warning.file_stat_failed", file_name=entry.name))
            return None

        if not stat.S_ISREG(stat_info.st_mode):
            return None

        if not os.access(entry, os.R_OK):
            self._logger.warning("Skipping %s: not readable", entry.name)
            warnings.append(tr("scan.warning.file_unreadable", file_name=entry.name))
            return None

        modified_at = datetime.fromtimestamp(stat_info.st_mtime, tz=timezone.utc)
        version_key = modified_at
        version_source = "mtime"
        if parsed.stamp is not None and self._version_policy is VersionPolicy.FILENAME_THEN_MTIME:
            version_key = parsed.stamp
            version_source = "filename"

        return SaveRecord(
            base_name=parsed.base_name,
            version_key=version_key,
            path=entry,
            modified_at=modified_at,
            size=int(stat_info.st_size),
            sequence=parsed.sequence,
            version_source=version_source,
        )

    @staticmethod
    def _read_metadata(entry: Path) -> os.stat_result:
        return entry.stat()
