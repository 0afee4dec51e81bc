# tests/conftest.py
"""
Pytest fixtures for the ECS task plugin tests.

This module provides fixtures for:
    - Configuration environments and AppConfig instances
    - A mock boto3 ECS client
    - Launchers wired to the mock client with short timings
    - Resetting the logging singleton between tests
"""

import logging
from unittest.mock import MagicMock

import pytest

from shoes_ecs_task.config import AppConfig
from shoes_ecs_task.launcher import ECSTaskLauncher
from shoes_ecs_task.logging_config import LoggingManager

TASK_ARN = "arn:aws:ecs:ap-northeast-1:123456789012:task/runners/0f1e2d3c4b5a69788796a5b4c3d2e1f0"


# ==============================================================================
# Configuration Fixtures
# ==============================================================================

@pytest.fixture
def ecs_environ() -> dict:
    """Complete configuration environment (waiting enabled)."""
    return {
        "ECS_TASK_CLUSTER": "runners",
        "ECS_TASK_DEFINITION_ARN": "myshoes-runner:3",
        "ECS_TASK_SUBNET_ID": "subnet-0abc1234",
        "ECS_TASK_REGION": "ap-northeast-1",
    }


@pytest.fixture
def app_config() -> AppConfig:
    """AppConfig that waits for RUNNING."""
    return AppConfig(
        cluster="runners",
        task_definition="myshoes-runner:3",
        subnet_id="subnet-0abc1234",
        region="ap-northeast-1",
    )


@pytest.fixture
def no_wait_config(app_config: AppConfig) -> AppConfig:
    """AppConfig that returns right after RunTask."""
    return AppConfig(
        cluster=app_config.cluster,
        task_definition=app_config.task_definition,
        subnet_id=app_config.subnet_id,
        region=app_config.region,
        no_wait=True,
    )


# ==============================================================================
# Mock ECS Client
# ==============================================================================

def task_record(last_status: str, **extra) -> dict:
    """Build a minimal ECS task record."""
    return {"taskArn": TASK_ARN, "lastStatus": last_status, **extra}


@pytest.fixture
def mock_ecs_client():
    """Create a mock ECS client whose task starts RUNNING on the first poll."""
    mock_client = MagicMock()

    mock_client.run_task.return_value = {
        "tasks": [task_record("PROVISIONING")],
        "failures": [],
    }
    mock_client.describe_tasks.return_value = {
        "tasks": [task_record("RUNNING")],
        "failures": [],
    }

    return mock_client


@pytest.fixture
def client_factory(mock_ecs_client):
    """Client factory returning the mock client; records requested regions."""
    factory = MagicMock(return_value=mock_ecs_client)
    return factory


@pytest.fixture
def launcher(app_config, client_factory) -> ECSTaskLauncher:
    """Waiting launcher with fast polling."""
    return ECSTaskLauncher(
        app_config, client_factory=client_factory, wait_timeout=1.0, poll_interval=0.01
    )


@pytest.fixture
def no_wait_launcher(no_wait_config, client_factory) -> ECSTaskLauncher:
    """Launcher that skips the wait for RUNNING."""
    return ECSTaskLauncher(
        no_wait_config, client_factory=client_factory, wait_timeout=1.0, poll_interval=0.01
    )


# ==============================================================================
# Logging
# ==============================================================================

def _reset_logging():
    LoggingManager._instance = None
    LoggingManager._configured = False
    LoggingManager._log_file_path = None
    LoggingManager._console_handler = None
    LoggingManager._file_handler = None

    root = logging.getLogger()
    for handler in root.handlers[:]:
        if handler.__class__.__module__.startswith("_pytest"):
            continue
        root.removeHandler(handler)
        handler.close()


@pytest.fixture
def reset_logging_manager():
    """Reset the logging manager singleton between tests."""
    _reset_logging()
    yield
    _reset_logging()
