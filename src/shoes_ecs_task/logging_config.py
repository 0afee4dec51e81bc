# src/shoes_ecs_task/logging_config.py
"""
Logging configuration for the ECS task plugin.

A shoes host reads the plugin's stdout for its handshake, so every log
handler here writes to stderr or to a file, never to stdout.

Key concepts:

    **Display filter**: When ``console_enabled=False`` (the default), the
    console handler still exists but only passes log records that carry
    ``extra={"display": True}``. Operational messages ("Plugin ready")
    reach the host's log even in quiet mode; per-request chatter does not.

    **File logging**: Off by default. ``file_mode="per_run"`` writes a new
    timestamped file per process; ``file_mode="single"`` appends to one
    file rotated by ``RotatingFileHandler``.

Environment overrides follow the pattern ``SHOES_ECS_TASK_LOG_<KEY>``:

    SHOES_ECS_TASK_LOG_CONSOLE_ENABLED=true
    SHOES_ECS_TASK_LOG_CONSOLE_LEVEL=DEBUG
    SHOES_ECS_TASK_LOG_FILE_ENABLED=true
    SHOES_ECS_TASK_LOG_FILE_DIRECTORY=/var/log/shoes

Usage:
    from shoes_ecs_task.logging_config import configure_logging, log_display

    configure_logging(config=logging_config_from_env())
    log_display(logger, logging.INFO, "Plugin %s ready", name)
"""

import logging
import os
import sys
from collections.abc import Mapping
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

APP_NAME = "shoes-ecs-task"
ENV_PREFIX = "SHOES_ECS_TASK_LOG_"

DEFAULT_LOGGING_CONFIG: dict[str, Any] = {
    "console_enabled": False,
    "console_level": "INFO",
    "console_format": "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    "file_enabled": False,
    "file_level": "DEBUG",
    "file_directory": "~/.local/share/shoes-ecs-task/logs",
    "file_mode": "per_run",
    "file_name_pattern": "{app}_{timestamp:%Y%m%d_%H%M%S}.log",
    "file_single_name": "{app}.log",
    "file_format": "%(asctime)s [%(levelname)-8s] %(name)-30s - %(message)s (%(filename)s:%(lineno)d)",
    "rotation_max_bytes": 10 * 1024 * 1024,  # 10 MB
    "rotation_backup_count": 5,
    "display_min_level": "INFO",
    "components": {
        "shoes_ecs_task": "DEBUG",
        "boto3": "WARNING",
        "botocore": "WARNING",
        "urllib3": "WARNING",
        "asyncio": "WARNING",
    },
}


def _parse_env_value(value: str) -> Any:
    """
    Parse an environment variable value to bool, int or string.

    Args:
        value: String value from environment

    Returns:
        Parsed value
    """
    if value.lower() in ("true", "yes", "1", "on"):
        return True
    if value.lower() in ("false", "no", "0", "off"):
        return False

    try:
        return int(value)
    except ValueError:
        return value


def logging_config_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """
    Collect logging overrides from ``SHOES_ECS_TASK_LOG_*`` variables.

    Only keys present in DEFAULT_LOGGING_CONFIG are accepted; others are
    ignored.

    Args:
        environ: Source mapping (default: ``os.environ``)

    Returns:
        Dictionary of overrides (may be empty)
    """
    if environ is None:
        environ = os.environ

    overrides: dict[str, Any] = {}
    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        config_key = key[len(ENV_PREFIX) :].lower()
        if config_key in DEFAULT_LOGGING_CONFIG and config_key != "components":
            overrides[config_key] = _parse_env_value(value)

    return overrides


def _resolve_level(level: str | int, default: int) -> int:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    return level if isinstance(level, int) else default


class DisplayFilter(logging.Filter):
    """
    Controls which records reach the console handler.

    With the console globally enabled every record passes and the
    handler's own level does the filtering. Otherwise only records with
    ``record.display = True`` at or above ``display_min_level`` pass.
    """

    def __init__(self, console_globally_enabled: bool = False, display_min_level: int = logging.INFO):
        super().__init__()
        self.console_globally_enabled = console_globally_enabled
        self.display_min_level = display_min_level

    def filter(self, record: logging.LogRecord) -> bool:
        if self.console_globally_enabled:
            return True

        if getattr(record, "display", False):
            return record.levelno >= self.display_min_level

        return False


class LoggingManager:
    """
    Singleton owning the plugin's root handlers.

    Ensures logging is configured once and allows runtime level changes.
    """

    _instance: "LoggingManager | None" = None
    _configured: bool = False
    _log_file_path: Path | None = None
    _console_handler: logging.Handler | None = None
    _file_handler: logging.Handler | None = None

    def __new__(cls) -> "LoggingManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def get_instance(cls) -> "LoggingManager":
        return cls()

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def get_log_file_path(cls) -> Path | None:
        return cls._log_file_path

    def configure(
        self,
        app_name: str = APP_NAME,
        config: dict[str, Any] | None = None,
        force_reconfigure: bool = False,
    ) -> Path | None:
        """
        Install console and file handlers on the root logger.

        Args:
            app_name: Name used in log file names
            config: Overrides merged over DEFAULT_LOGGING_CONFIG
            force_reconfigure: Reconfigure even if already configured

        Returns:
            Path to the log file, or None if file logging is disabled
        """
        if LoggingManager._configured and not force_reconfigure:
            return LoggingManager._log_file_path

        log_config = {**DEFAULT_LOGGING_CONFIG, **(config or {})}

        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()
        root_logger.setLevel(logging.DEBUG)

        console_globally_enabled = bool(log_config.get("console_enabled", False))
        display_filter = DisplayFilter(
            console_globally_enabled=console_globally_enabled,
            display_min_level=_resolve_level(log_config["display_min_level"], logging.INFO),
        )
        console_handler = logging.StreamHandler(sys.stderr)
        if console_globally_enabled:
            console_handler.setLevel(_resolve_level(log_config["console_level"], logging.INFO))
        else:
            # The filter is the only gate in quiet mode
            console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(log_config["console_format"]))
        console_handler.addFilter(display_filter)
        root_logger.addHandler(console_handler)
        LoggingManager._console_handler = console_handler

        LoggingManager._file_handler = None
        LoggingManager._log_file_path = None
        if log_config.get("file_enabled", False):
            file_handler, log_file_path = self._create_file_handler(log_config, app_name)
            if file_handler:
                root_logger.addHandler(file_handler)
                LoggingManager._file_handler = file_handler
                LoggingManager._log_file_path = log_file_path

        components = log_config.get("components", DEFAULT_LOGGING_CONFIG["components"])
        for component_name, level_str in components.items():
            logging.getLogger(component_name).setLevel(_resolve_level(level_str, logging.INFO))

        LoggingManager._configured = True
        return LoggingManager._log_file_path

    def _create_file_handler(
        self, config: dict[str, Any], app_name: str
    ) -> tuple[logging.Handler | None, Path | None]:
        """Create the per-run or rotating file handler."""
        log_dir = Path(os.path.expanduser(config["file_directory"]))
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            sys.stderr.write(f"Warning: Cannot create log directory {log_dir}: {e}\n")
            return None, None

        if config.get("file_mode", "per_run") == "single":
            log_file_path = log_dir / config["file_single_name"].format(app=app_name)
            try:
                handler: logging.Handler = RotatingFileHandler(
                    log_file_path,
                    maxBytes=config["rotation_max_bytes"],
                    backupCount=config["rotation_backup_count"],
                    encoding="utf-8",
                )
            except OSError as e:
                sys.stderr.write(f"Warning: Cannot create log file {log_file_path}: {e}\n")
                return None, None
        else:
            timestamp = datetime.now()
            try:
                filename = config["file_name_pattern"].format(app=app_name, timestamp=timestamp)
            except (KeyError, ValueError):
                filename = f"{app_name}_{timestamp.strftime('%Y%m%d_%H%M%S')}.log"
            log_file_path = log_dir / filename
            try:
                handler = logging.FileHandler(log_file_path, encoding="utf-8")
            except OSError as e:
                sys.stderr.write(f"Warning: Cannot create log file {log_file_path}: {e}\n")
                return None, None

        handler.setLevel(_resolve_level(config["file_level"], logging.DEBUG))
        handler.setFormatter(logging.Formatter(config["file_format"]))
        return handler, log_file_path

    def set_console_level(self, level: str | int) -> None:
        """Change the console handler's level at runtime."""
        if LoggingManager._console_handler is not None:
            LoggingManager._console_handler.setLevel(_resolve_level(level, logging.INFO))

    def set_component_level(self, component: str, level: str | int) -> None:
        """Change one logger's level at runtime."""
        logging.getLogger(component).setLevel(_resolve_level(level, logging.INFO))


def configure_logging(
    app_name: str = APP_NAME,
    config: dict[str, Any] | None = None,
    force_reconfigure: bool = False,
) -> Path | None:
    """
    Configure plugin logging. Call once, early in startup.

    Example:
        configure_logging(config={"console_enabled": True, "console_level": "DEBUG"})
    """
    return LoggingManager.get_instance().configure(
        app_name=app_name, config=config, force_reconfigure=force_reconfigure
    )


def log_display(logger: logging.Logger, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
    """Log a message that reaches the console even in quiet mode."""
    extra = kwargs.pop("extra", None) or {}
    extra["display"] = True
    kwargs["extra"] = extra
    logger.log(level, msg, *args, **kwargs)


def get_log_file_path() -> Path | None:
    return LoggingManager.get_log_file_path()


def set_console_level(level: str | int) -> None:
    LoggingManager.get_instance().set_console_level(level)


def set_component_level(component: str, level: str | int) -> None:
    LoggingManager.get_instance().set_component_level(component, level)
