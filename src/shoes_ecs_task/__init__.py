# src/shoes_ecs_task/__init__.py
"""
shoes-ecs-task - a myshoes provider plugin that runs each runner as an
Amazon ECS Fargate task.

Main Components:
    - to_one_line: Flattens a runner setup script into one command line
    - AppConfig / load_app_config: Immutable configuration from ECS_TASK_*
    - ECSTaskLauncher: RunTask plus an optional wait for RUNNING
    - ECSTaskHandler: AddInstance / DeleteInstance
    - PluginRegistry: Service-name registration for hosting adapters

Usage:
    >>> from shoes_ecs_task import ECSTaskHandler, AddInstanceRequest
    >>> handler = ECSTaskHandler.from_environ()
    >>> response = await handler.add_instance(AddInstanceRequest(setup_script=script))
"""

from importlib.metadata import PackageNotFoundError, version

from .config import AppConfig, load_app_config
from .exceptions import (
    ConfigurationError,
    EmptyTaskListError,
    HandshakeError,
    InstanceError,
    LaunchError,
    LaunchTimeoutError,
    MissingConfiguration,
    ShoesECSError,
)
from .handler import ECSTaskHandler
from .launcher import ECSTaskLauncher, TaskLaunchState
from .models import (
    SHOES_TYPE,
    AddInstanceRequest,
    AddInstanceResponse,
    DeleteInstanceRequest,
    DeleteInstanceResponse,
)
from .registry import PLUGIN_NAME, SHOES_HANDSHAKE, PluginRegistry, bootstrap, default_registry
from .script import flatten, to_one_line

try:
    __version__ = version("shoes-ecs-task")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    # Script
    "to_one_line",
    "flatten",
    # Configuration
    "AppConfig",
    "load_app_config",
    # Launcher / handler
    "ECSTaskLauncher",
    "TaskLaunchState",
    "ECSTaskHandler",
    # Models
    "SHOES_TYPE",
    "AddInstanceRequest",
    "AddInstanceResponse",
    "DeleteInstanceRequest",
    "DeleteInstanceResponse",
    # Registry
    "PLUGIN_NAME",
    "SHOES_HANDSHAKE",
    "PluginRegistry",
    "bootstrap",
    "default_registry",
    # Exceptions
    "ShoesECSError",
    "MissingConfiguration",
    "ConfigurationError",
    "LaunchError",
    "EmptyTaskListError",
    "LaunchTimeoutError",
    "HandshakeError",
    "InstanceError",
]
