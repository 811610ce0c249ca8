from __future__ import annotations

import argparse
from pathlib import Path

import uvicorn

from serve_map import __version__
from serve_map.core.config import AppConfig, ServerSettings
from serve_map.core.errors import ConfigError
from serve_map.core.logging import setup_logging
from serve_map.core.paths import get_log_file_path
from serve_map.i18n.i18n import initialize_i18n
from serve_map.web.server import create_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="satisfactory_serve_map",
        description="Serve the latest Satisfactory save of every session over HTTP.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.toml (default: ./config.toml)")
    parser.add_argument("-s", "--save-dir", default=None, help="Directory containing save files")
    parser.add_argument("-p", "--port", type=int, default=None, help="Port to run the server on")
    parser.add_argument("--base-url", default=None, help="Base URL for constructing map links")
    parser.add_argument("--host", default=None, help="Interface to bind")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    return parser


def load_settings(argv: list[str] | None = None) -> ServerSettings:
    args = build_parser().parse_args(argv)
    config = AppConfig(
        config_path=args.config,
        overrides={
            "save_dir": args.save_dir,
            "port": args.port,
            "base_url": args.base_url,
            "host": args.host,
            "log_level": args.log_level,
        },
    )
    return config.to_settings()


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    try:
        settings = load_settings(argv)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc.message)
        return 1

    logger = setup_logging(settings.log_level, get_log_file_path(settings.log_file))
    initialize_i18n(settings.language)

    logger.info("Server starting with configuration:")
    logger.info("  Save directory: %s", settings.save_dir)
    logger.info("  Base URL: %s", settings.base_url)
    logger.info("  Port: %s", settings.port)
    logger.info("  Cache TTL: %ss", settings.cache_ttl_seconds)
    logger.info("Endpoints available:")
    logger.info("  - /map          : Lists all saves")
    logger.info("  - /map/<name>   : Serves the latest save file")

    app = create_app(settings, logger=logger.getChild("http"))
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
