# tests/test_logging_config.py
"""
Tests for the logging configuration module.

Covers:
    - Display filter behavior in quiet and verbose mode
    - stderr-only console output
    - File logging modes
    - Environment overrides
"""

import logging

import pytest

from shoes_ecs_task.logging_config import (
    DEFAULT_LOGGING_CONFIG,
    DisplayFilter,
    LoggingManager,
    configure_logging,
    get_log_file_path,
    log_display,
    logging_config_from_env,
    set_component_level,
    set_console_level,
)


def _record(level: int = logging.INFO, display: bool = False) -> logging.LogRecord:
    record = logging.LogRecord("shoes_ecs_task.test", level, __file__, 1, "message", None, None)
    if display:
        record.display = True
    return record


class TestDisplayFilter:
    def test_quiet_mode_blocks_plain_records(self):
        assert DisplayFilter().filter(_record()) is False

    def test_quiet_mode_passes_display_records(self):
        assert DisplayFilter().filter(_record(display=True)) is True

    def test_display_min_level(self):
        display_filter = DisplayFilter(display_min_level=logging.WARNING)

        assert display_filter.filter(_record(logging.INFO, display=True)) is False
        assert display_filter.filter(_record(logging.ERROR, display=True)) is True

    def test_enabled_console_passes_everything(self):
        assert DisplayFilter(console_globally_enabled=True).filter(_record(logging.DEBUG)) is True


@pytest.mark.usefixtures("reset_logging_manager")
class TestConfigureLogging:
    def test_quiet_console_shows_only_display_messages(self, capsys):
        configure_logging()
        logger = logging.getLogger("shoes_ecs_task.test")

        logger.info("request chatter")
        log_display(logger, logging.INFO, "Plugin %s ready", "shoes_grpc")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Plugin shoes_grpc ready" in captured.err
        assert "request chatter" not in captured.err

    def test_verbose_console_writes_to_stderr(self, capsys):
        configure_logging(config={"console_enabled": True, "console_level": "DEBUG"})

        logging.getLogger("shoes_ecs_task.test").debug("polling task")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "polling task" in captured.err

    def test_sdk_loggers_quieted(self):
        configure_logging()

        assert logging.getLogger("botocore").level == logging.WARNING
        assert logging.getLogger("shoes_ecs_task").level == logging.DEBUG

    def test_no_file_by_default(self):
        assert configure_logging() is None
        assert get_log_file_path() is None

    def test_single_file_mode(self, tmp_path):
        log_path = configure_logging(
            config={"file_enabled": True, "file_mode": "single", "file_directory": str(tmp_path)}
        )

        logging.getLogger("shoes_ecs_task.test").debug("written to file")
        LoggingManager._file_handler.flush()

        assert log_path == tmp_path / "shoes-ecs-task.log"
        assert "written to file" in log_path.read_text(encoding="utf-8")

    def test_per_run_file_mode(self, tmp_path):
        log_path = configure_logging(
            config={"file_enabled": True, "file_directory": str(tmp_path)}
        )

        assert log_path.parent == tmp_path
        assert log_path.name.startswith("shoes-ecs-task_")
        assert log_path.suffix == ".log"

    def test_configured_once(self):
        configure_logging()
        handler = LoggingManager._console_handler

        configure_logging(config={"console_enabled": True})
        assert LoggingManager._console_handler is handler

        configure_logging(config={"console_enabled": True}, force_reconfigure=True)
        assert LoggingManager._console_handler is not handler

    def test_runtime_level_changes(self):
        configure_logging(config={"console_enabled": True})

        set_console_level("ERROR")
        set_component_level("botocore", "DEBUG")

        assert LoggingManager._console_handler.level == logging.ERROR
        assert logging.getLogger("botocore").level == logging.DEBUG


class TestLoggingConfigFromEnv:
    def test_parses_known_keys(self):
        overrides = logging_config_from_env(
            {
                "SHOES_ECS_TASK_LOG_CONSOLE_ENABLED": "true",
                "SHOES_ECS_TASK_LOG_CONSOLE_LEVEL": "DEBUG",
                "SHOES_ECS_TASK_LOG_ROTATION_BACKUP_COUNT": "3",
                "SHOES_ECS_TASK_LOG_FILE_ENABLED": "off",
            }
        )

        assert overrides == {
            "console_enabled": True,
            "console_level": "DEBUG",
            "rotation_backup_count": 3,
            "file_enabled": False,
        }

    def test_ignores_unknown_and_unrelated_keys(self):
        overrides = logging_config_from_env(
            {
                "SHOES_ECS_TASK_LOG_COMPONENTS": "botocore=DEBUG",
                "SHOES_ECS_TASK_LOG_NOPE": "1",
                "ECS_TASK_CLUSTER": "runners",
            }
        )

        assert overrides == {}

    def test_reads_os_environ_by_default(self, monkeypatch):
        monkeypatch.setenv("SHOES_ECS_TASK_LOG_CONSOLE_LEVEL", "WARNING")

        assert logging_config_from_env()["console_level"] == "WARNING"

    def test_defaults_are_quiet(self):
        assert DEFAULT_LOGGING_CONFIG["console_enabled"] is False
        assert DEFAULT_LOGGING_CONFIG["file_enabled"] is False
