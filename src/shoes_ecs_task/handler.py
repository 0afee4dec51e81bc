# src/shoes_ecs_task/handler.py
"""
Request handler implementing the shoes plugin contract on ECS.

AddInstance flattens the setup script and launches one Fargate task.
DeleteInstance does nothing: the task ends when its runner exits and ECS
reclaims it.

Usage:
    >>> handler = ECSTaskHandler.from_environ()
    >>> response = await handler.add_instance(AddInstanceRequest(setup_script=script))
    >>> response.cloud_id
    'arn:aws:ecs:ap-northeast-1:123456789012:task/runners/0f1e2d...'
"""

import logging
from collections.abc import Mapping

from .config import AppConfig, load_app_config
from .exceptions import InstanceError
from .launcher import ECSTaskLauncher
from .models import (
    SHOES_TYPE,
    AddInstanceRequest,
    AddInstanceResponse,
    DeleteInstanceRequest,
    DeleteInstanceResponse,
)
from .script import to_one_line

logger = logging.getLogger(__name__)


class ECSTaskHandler:
    """
    Serves AddInstance/DeleteInstance for one process.

    The handler is stateless apart from its configuration and launcher,
    both read-only, so concurrent requests need no synchronization.
    """

    def __init__(self, config: AppConfig, launcher: ECSTaskLauncher | None = None):
        """
        Initialize the handler.

        Args:
            config: Application configuration, loaded once at startup
            launcher: Optional launcher (default: ECSTaskLauncher(config))
        """
        self._config = config
        self._launcher = launcher or ECSTaskLauncher(config)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "ECSTaskHandler":
        """
        Load configuration and build a handler.

        Raises:
            MissingConfiguration: If a required parameter is unset
        """
        return cls(load_app_config(environ))

    @property
    def config(self) -> AppConfig:
        return self._config

    async def add_instance(self, request: AddInstanceRequest) -> AddInstanceResponse:
        """
        Launch an ECS task running the request's setup script.

        Args:
            request: AddInstance request

        Returns:
            Response carrying the task ARN

        Raises:
            InstanceError: With code INTERNAL if the task could not be launched
        """
        command = to_one_line(request.setup_script)
        logger.info(
            f"AddInstance: runner={request.runner_name or '-'}, "
            f"labels={request.labels}, command length={len(command)}"
        )

        try:
            task_arn = await self._launcher.launch(command)
        except Exception as e:
            logger.error(f"AddInstance failed for runner {request.runner_name or '-'}: {e}")
            raise InstanceError.from_exception("runTask()", e) from e

        return AddInstanceResponse(cloud_id=task_arn, shoes_type=SHOES_TYPE, ip_address="")

    async def delete_instance(
        self, request: DeleteInstanceRequest | None = None
    ) -> DeleteInstanceResponse:
        """Acknowledge deletion; ECS removes finished tasks on its own."""
        logger.debug(f"DeleteInstance: {getattr(request, 'cloud_id', None) or '-'} (no-op)")
        return DeleteInstanceResponse()
