from __future__ import annotations

import logging
import mimetypes
import os
from urllib.parse import quote

from starlette.responses import FileResponse
from starlette.types import Receive, Scope, Send

from serve_map.core.saves.models import SaveRecord

_logger = logging.getLogger("serve_map.http")


class SaveFileResponse(FileResponse):
    chunk_size = 256 * 1024

    def __init__(self, record: SaveRecord, stat_result: os.stat_result) -> None:
        media_type, _encoding = mimetypes.guess_type(record.file_name)
        super().__init__(
            path=record.path,
            media_type=media_type or "application/octet-stream",
            filename=record.file_name,
            stat_result=stat_result,
            content_disposition_type="inline",
            headers={
                "X-Save-File": quote(record.file_name),
            },
        )
        self._record = record

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except OSError:
            # Headers are already out, so the client only sees a truncated body.
            _logger.exception("Streaming %s failed", self._record.path)
            raise
