from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable
from pathlib import Path

from serve_map.core.errors import SaveReadError, ScanTimeoutError
from serve_map.core.saves.catalog_cache import CatalogCache
from serve_map.core.saves.models import Catalog, SaveRecord
from serve_map.core.saves.resolver import SaveResolver
from serve_map.core.saves.scanner_service import SaveScannerService
from serve_map.i18n.i18n import tr


class SaveCatalogService:
    def __init__(
        self,
        save_dir: Path,
        scanner: SaveScannerService | None = None,
        resolver: SaveResolver | None = None,
        cache_ttl_seconds: float = 0.0,
        timeout_seconds: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger("serve_map.catalog")
        self._save_dir = save_dir
        self._scanner = scanner or SaveScannerService()
        self._resolver = resolver or SaveResolver()
        self._timeout_seconds = timeout_seconds
        self._cache = CatalogCache(
            self._scan_in_thread,
            ttl_seconds=cache_ttl_seconds,
            clock=clock,
            logger=self._logger.getChild("cache"),
        )

    def scan_catalog(self) -> Catalog:
        result = self._scanner.scan(self._save_dir)
        for warning in result.warnings:
            self._logger.warning(warning)

        catalog = self._resolver.resolve(result.records)
        self._logger.info(
            "Catalog built: saves=%s files=%s warnings=%s",
            len(catalog),
            len(result.records),
            len(result.warnings),
        )
        return catalog

    async def current_catalog(self) -> Catalog:
        try:
            return await asyncio.wait_for(self._cache.get(), timeout=self._timeout_seconds)
        except asyncio.TimeoutError as exc:
            self._logger.error("Scanning %s timed out after %ss", self._save_dir, self._timeout_seconds)
            raise ScanTimeoutError(tr("error.timeout", seconds=self._timeout_seconds)) from exc

    async def prepare_download(self, record: SaveRecord) -> os.stat_result:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._check_readable, record.path),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            self._logger.error("Opening %s timed out after %ss", record.path, self._timeout_seconds)
            raise ScanTimeoutError(tr("error.timeout", seconds=self._timeout_seconds)) from exc
        except OSError as exc:
            self._logger.error("Cannot open %s: %s", record.path, exc)
            raise SaveReadError(
                tr("error.save_unreadable", name=record.base_name),
                name=record.base_name,
            ) from exc

    async def _scan_in_thread(self) -> Catalog:
        return await asyncio.to_thread(self.scan_catalog)

    @staticmethod
    def _check_readable(path: Path) -> os.stat_result:
        # Opening proves the file is still there and readable; the save may have rotated away.
        with path.open("rb"):
            return path.stat()
