import logging
import sys
from typing import Optional

import uvicorn

from api import build_context, create_app
from app_config import AppConfigurationError, load_app_config, resolve_config_path
from server import ServerConfigurationError, UIServer, UIServerConfig
from storage import StorageConfigurationError, build_store


def setup_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Configure logging for the application."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("pomorange")


def start_ui_server(app_config, logger: logging.Logger) -> Optional[UIServer]:
    """Start the websocket UI server, or return ``None`` to run API-only."""
    api = app_config.api
    try:
        ui_server_config = UIServerConfig.from_settings(
            app_config.ui_server,
            api_base_url=f"http://{api.host}:{api.port}",
        )
    except ServerConfigurationError as error:
        logger.error("UI server configuration error: %s", error)
        logger.warning("Continuing without UI server.")
        return None

    if not ui_server_config.enabled:
        logger.info("UI server disabled in config")
        return None

    ui_server = UIServer(
        config=ui_server_config,
        logger=logging.getLogger("ui_server"),
    )
    try:
        logger.info("Starting UI server...")
        ui_server.start(timeout_seconds=5.0)
    except RuntimeError as error:
        logger.error("UI server startup failed: %s", error)
        logger.warning("Continuing without UI server.")
        return None

    logger.info("UI server ready at http://%s:%d", ui_server.host, ui_server.port)
    return ui_server


def main() -> int:
    """Run the Pomorange API and UI server until interrupted."""
    logger = setup_logging(level=logging.INFO)

    try:
        config_path = resolve_config_path()
        app_config = load_app_config(str(config_path))
        logger.info("Loaded runtime config: %s", config_path)
    except AppConfigurationError as error:
        logger.error("App configuration error: %s", error)
        return 1

    logging.getLogger().setLevel(app_config.logging.level)

    try:
        store = build_store(
            app_config.storage.backend,
            app_config.storage.path,
            logger=logging.getLogger(f"storage.{app_config.storage.backend}"),
        )
    except StorageConfigurationError as error:
        logger.error("Storage configuration error: %s", error)
        return 1
    logger.info(
        "Using %s storage at %s",
        app_config.storage.backend,
        app_config.storage.path,
    )

    ui_server = start_ui_server(app_config, logger)
    context = build_context(
        store,
        api_settings=app_config.api,
        timer_settings=app_config.timer,
        ui_server=ui_server,
        logger=logging.getLogger("api"),
    )
    app = create_app(context)

    try:
        uvicorn.run(
            app,
            host=app_config.api.host,
            port=app_config.api.port,
            log_level=app_config.logging.level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as error:
        logger.error("Unexpected error: %s", error, exc_info=True)
        return 1
    finally:
        if ui_server:
            logger.info("Stopping UI server...")
            try:
                ui_server.stop(timeout_seconds=5.0)
            except Exception as error:
                logger.error("Error stopping UI server: %s", error, exc_info=True)

    return 0


if __name__ == "__main__":
    sys.exit(main())
