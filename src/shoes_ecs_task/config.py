# src/shoes_ecs_task/config.py
"""
Configuration for the ECS task backend.

The backend is configured entirely through five environment variables,
read once when the plugin is registered:

    ECS_TASK_CLUSTER         (required) Cluster name or ARN
    ECS_TASK_DEFINITION_ARN  (required) Task definition family, family:revision or ARN
    ECS_TASK_SUBNET_ID       (required) Subnet the task's ENI attaches to
    ECS_TASK_REGION          (required) AWS region, e.g. "ap-northeast-1"
    ECS_TASK_NO_WAIT         (optional) "true" to skip waiting for RUNNING

The resulting AppConfig is immutable and passed explicitly to every
component that needs it; nothing re-reads the environment afterwards.

Example:
    >>> config = load_app_config({
    ...     "ECS_TASK_CLUSTER": "runners",
    ...     "ECS_TASK_DEFINITION_ARN": "myshoes-runner:3",
    ...     "ECS_TASK_SUBNET_ID": "subnet-0abc",
    ...     "ECS_TASK_REGION": "ap-northeast-1",
    ... })
    >>> config.no_wait
    False
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from .exceptions import MissingConfiguration

logger = logging.getLogger(__name__)

ENV_CLUSTER = "ECS_TASK_CLUSTER"
ENV_TASK_DEFINITION = "ECS_TASK_DEFINITION_ARN"
ENV_SUBNET_ID = "ECS_TASK_SUBNET_ID"
ENV_REGION = "ECS_TASK_REGION"
ENV_NO_WAIT = "ECS_TASK_NO_WAIT"

# Checked in this order; the first missing key is reported.
REQUIRED_ENV_KEYS = (ENV_CLUSTER, ENV_TASK_DEFINITION, ENV_SUBNET_ID, ENV_REGION)


@dataclass(frozen=True)
class AppConfig:
    """
    Parameters needed to address ECS for every request.

    Attributes:
        cluster: Cluster to run tasks in
        task_definition: Pre-registered task definition to run
        subnet_id: Subnet for the task's network interface
        region: AWS region the ECS client is bound to
        no_wait: If True, return as soon as RunTask succeeds instead of
            waiting for the task to reach RUNNING
    """

    cluster: str
    task_definition: str
    subnet_id: str
    region: str
    no_wait: bool = False

    def __post_init__(self):
        """Validate that every required field is non-empty."""
        for name, key in zip(
            ("cluster", "task_definition", "subnet_id", "region"), REQUIRED_ENV_KEYS
        ):
            if not getattr(self, name):
                raise MissingConfiguration(key)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _parse_bool_flag(value: str | None) -> bool:
    """Only a case-insensitive ``"true"`` enables a flag."""
    return (value or "").lower() == "true"


def load_app_config(environ: Mapping[str, str] | None = None) -> AppConfig:
    """
    Build an AppConfig from a key-value source.

    Required keys are checked in a fixed order (cluster, task definition,
    subnet, region) and the first one that is absent or empty fails
    immediately; missing keys are not aggregated.

    Args:
        environ: Source mapping (default: ``os.environ``)

    Returns:
        AppConfig instance

    Raises:
        MissingConfiguration: If a required key is absent or empty
    """
    if environ is None:
        environ = os.environ

    values = {}
    for key in REQUIRED_ENV_KEYS:
        value = environ.get(key, "")
        if value == "":
            raise MissingConfiguration(key)
        values[key] = value

    config = AppConfig(
        cluster=values[ENV_CLUSTER],
        task_definition=values[ENV_TASK_DEFINITION],
        subnet_id=values[ENV_SUBNET_ID],
        region=values[ENV_REGION],
        no_wait=_parse_bool_flag(environ.get(ENV_NO_WAIT)),
    )
    logger.debug(
        f"Loaded ECS task config: cluster={config.cluster}, "
        f"region={config.region}, no_wait={config.no_wait}"
    )
    return config
