from __future__ import annotations

import logging
from collections.abc import Iterable

from serve_map.core.saves.models import Catalog, SaveGroup, SaveRecord


class SaveResolver:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("serve_map.resolver")

    def resolve(self, records: Iterable[SaveRecord]) -> Catalog:
        partitions: dict[str, list[SaveRecord]] = {}
        for record in records:
            partitions.setdefault(record.base_name, []).append(record)

        groups: dict[str, SaveGroup] = {}
        for base_name, candidates in partitions.items():
            latest = max(candidates, key=SaveRecord.rank)
            groups[base_name] = SaveGroup(
                base_name=base_name,
                latest=latest,
                candidate_count=len(candidates),
            )
            self._logger.debug(
                "Resolved %s -> %s (%s candidates)",
                base_name,
                latest.file_name,
                len(candidates),
            )

        return Catalog(groups)
