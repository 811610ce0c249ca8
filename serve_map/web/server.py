from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response

from serve_map import __version__
from serve_map.core.config import ServerSettings
from serve_map.core.errors import InvalidSaveNameError, SaveNotFoundError, ServeMapError
from serve_map.core.saves.catalog_service import SaveCatalogService
from serve_map.core.saves.naming import RegexSaveNameParser
from serve_map.core.saves.resolver import SaveResolver
from serve_map.core.saves.scanner_service import SaveScannerService
from serve_map.i18n.i18n import tr
from serve_map.web.rendering import render_index
from serve_map.web.responses import SaveFileResponse

_PATH_SEPARATORS = ("/", "\\")
_RESERVED_NAMES = {"", ".", ".."}


def build_catalog_service(settings: ServerSettings, logger: logging.Logger | None = None) -> SaveCatalogService:
    logger = logger or logging.getLogger("serve_map")
    scanner = SaveScannerService(
        parser=RegexSaveNameParser(settings.name_pattern, logger=logger.getChild("scanner")),
        version_policy=settings.version_policy,
        logger=logger.getChild("scanner"),
    )
    return SaveCatalogService(
        save_dir=settings.save_dir,
        scanner=scanner,
        resolver=SaveResolver(logger=logger.getChild("resolver")),
        cache_ttl_seconds=settings.cache_ttl_seconds,
        timeout_seconds=settings.request_timeout_seconds,
        logger=logger.getChild("catalog"),
    )


def create_app(
    settings: ServerSettings,
    service: SaveCatalogService | None = None,
    logger: logging.Logger | None = None,
) -> FastAPI:
    logger = logger or logging.getLogger("serve_map.http")
    catalog_service = service or build_catalog_service(settings)

    app = FastAPI(title="satisfactory-serve-map", version=__version__, docs_url=None, redoc_url=None)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["POST", "GET", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        allow_credentials=True,
        expose_headers=["X-Save-File"],
    )

    @app.exception_handler(ServeMapError)
    async def handle_serve_map_error(request: Request, exc: ServeMapError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.get("/map", response_class=HTMLResponse)
    async def list_maps() -> HTMLResponse:
        catalog = await catalog_service.current_catalog()
        return HTMLResponse(render_index(catalog, settings.base_url, settings.map_viewer_url))

    @app.get("/map/{name}")
    async def serve_map(name: str) -> Response:
        if name.strip() in _RESERVED_NAMES or any(separator in name for separator in _PATH_SEPARATORS):
            raise InvalidSaveNameError(tr("error.invalid_name"), name=name)

        catalog = await catalog_service.current_catalog()
        group = catalog.get(name)
        if group is None:
            raise SaveNotFoundError(tr("error.save_not_found", name=name), name=name)

        stat_result = await catalog_service.prepare_download(group.latest)
        logger.info("Serving file: %s", group.latest.path)
        return SaveFileResponse(group.latest, stat_result)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.options("/{rest:path}")
    async def all_options(rest: str) -> Response:
        return Response(status_code=204)

    return app
