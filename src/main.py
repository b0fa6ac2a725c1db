import logging
import signal
import sys
from typing import Callable, Optional

from app_config import AppConfigurationError, load_app_config, resolve_config_path
from audio import AudioConfigurationError
from focus_mode import FocusModeConfigurationError
from history import HistoryConfigurationError, HistoryStoreError
from preferences import PreferencesConfigurationError
from runtime import RuntimeEngine, RuntimeHooks, build_runtime_context
from server import ServerConfigurationError, UIServer, UIServerConfig


def setup_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Configure logging for the application."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("flow_timer")


def setup_signal_handlers(request_stop: Callable[[], None]) -> None:
    """Set up graceful shutdown on SIGTERM and SIGINT."""
    logger = logging.getLogger("flow_timer")

    def signal_handler(signum: int, frame) -> None:
        del frame
        logger.info("%s received, stopping...", signal.Signals(signum).name)
        request_stop()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)


def start_ui_server(app_config, logger: logging.Logger) -> Optional[UIServer]:
    """Start the optional UI server; failures leave the timer running headless."""
    try:
        ui_server_config = UIServerConfig.from_settings(app_config.ui_server)
    except ServerConfigurationError as error:
        logger.error("UI server configuration error: %s", error)
        logger.warning("Continuing without UI server.")
        return None

    if not ui_server_config.enabled:
        logger.info("UI server disabled via ui_server.enabled=false")
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
    """Run the focus timer until a termination signal arrives."""
    logger = setup_logging(level=logging.INFO)

    try:
        config_path = resolve_config_path()
        app_config = load_app_config(str(config_path), missing_ok=True)
    except AppConfigurationError as error:
        logger.error("App configuration error: %s", error)
        return 1

    logging.getLogger().setLevel(app_config.logging.level)
    if app_config.source_file:
        logger.info("Loaded runtime config: %s", app_config.source_file)
    else:
        logger.info("No config file at %s; using defaults", config_path)

    ui_server = start_ui_server(app_config, logger)

    try:
        context = build_runtime_context(app_config, logger=logger, ui_server=ui_server)
    except (
        AudioConfigurationError,
        FocusModeConfigurationError,
        HistoryConfigurationError,
        HistoryStoreError,
        PreferencesConfigurationError,
    ) as error:
        logger.error("Startup configuration error: %s", error)
        if ui_server is not None:
            ui_server.stop(timeout_seconds=5.0)
        return 1

    if ui_server is not None:
        ui_server.set_command_sink(context.commands.put)

    engine = RuntimeEngine(
        context,
        RuntimeHooks(setup_signal_handlers=setup_signal_handlers),
    )
    return engine.run()


if __name__ == "__main__":
    sys.exit(main())
