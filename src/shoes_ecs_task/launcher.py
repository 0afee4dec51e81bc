# src/shoes_ecs_task/launcher.py
"""
ECS task launcher using the boto3 SDK.

The launcher runs exactly one Fargate task per request and, unless the
configuration says otherwise, blocks until ECS reports the task RUNNING.

Launch Flow:
    1. Create an ECS client bound to the configured region
    2. RunTask with the runner container's command overridden to
       ``bash -c <setup script>``
    3. Extract the ARN of the single returned task
    4. Return immediately if ``no_wait`` is set (state SUBMITTED)
    5. Otherwise poll DescribeTasks until RUNNING, a failure acceptor
       matches, or the wait ceiling (5 minutes) elapses

State machine (wait enabled):
    SUBMITTED -> RUNNING                  (success)
    SUBMITTED -> FAILED                   (stopped, missing, poll error, timeout)

The launcher never stops a task, not even one it failed to confirm, and it
never retries. Blocking SDK calls run in the default executor so that the
poll can be cancelled by the caller at any point.

Usage:
    >>> launcher = ECSTaskLauncher(load_app_config())
    >>> task_arn = await launcher.launch("echo hi;./run.sh")

Requirements:
    - boto3 package (pip install boto3)
    - AWS credentials resolvable by the default credential chain
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from .config import AppConfig
from .exceptions import (
    ConfigurationError,
    EmptyTaskListError,
    LaunchError,
    LaunchTimeoutError,
)

logger = logging.getLogger(__name__)

LAUNCH_TYPE = "FARGATE"
ASSIGN_PUBLIC_IP = "ENABLED"
RUNNER_CONTAINER_NAME = "runner"

# Upper bound on the wait for RUNNING
DEFAULT_WAIT_TIMEOUT = 5 * 60

# Poll cadence comes from this SDK waiter's model
TASKS_RUNNING_WAITER = "tasks_running"
DEFAULT_POLL_INTERVAL = 6.0

STATUS_RUNNING = "RUNNING"
STATUS_STOPPED = "STOPPED"
FAILURE_MISSING = "MISSING"


class TaskLaunchState(Enum):
    """
    State of a launched task from this process's point of view.

    SUBMITTED is terminal when waiting is disabled.
    """

    SUBMITTED = "submitted"
    RUNNING = "running"
    FAILED = "failed"


@dataclass
class TaskStatusSnapshot:
    """Outcome of evaluating one DescribeTasks response."""

    state: TaskLaunchState
    last_status: str | None = None
    reason: str | None = None


def default_client_factory(region: str) -> Any:
    """Create an ECS client bound to ``region`` from a fresh boto3 session."""
    session = boto3.session.Session(region_name=region)
    return session.client("ecs")


def evaluate_describe_tasks(response: dict[str, Any]) -> TaskStatusSnapshot:
    """
    Apply the ``tasks_running`` waiter acceptors to a DescribeTasks response.

    Keep in sync with the ``tasks_running`` waiter in botocore's ECS waiter model.

    Acceptors, in order:
        - any failure with reason MISSING -> FAILED
        - any task with lastStatus STOPPED -> FAILED
        - every task with lastStatus RUNNING -> RUNNING
        - otherwise the task is still pending (SUBMITTED)

    Args:
        response: DescribeTasks response dictionary

    Returns:
        TaskStatusSnapshot describing the evaluated state
    """
    for failure in response.get("failures") or []:
        if failure.get("reason") == FAILURE_MISSING:
            return TaskStatusSnapshot(TaskLaunchState.FAILED, reason=FAILURE_MISSING)

    tasks = response.get("tasks") or []
    last_status = tasks[0].get("lastStatus") if tasks else None

    for task in tasks:
        if task.get("lastStatus") == STATUS_STOPPED:
            return TaskStatusSnapshot(
                TaskLaunchState.FAILED,
                last_status=STATUS_STOPPED,
                reason=task.get("stoppedReason") or "task stopped",
            )

    if tasks and all(task.get("lastStatus") == STATUS_RUNNING for task in tasks):
        return TaskStatusSnapshot(TaskLaunchState.RUNNING, last_status=STATUS_RUNNING)

    return TaskStatusSnapshot(TaskLaunchState.SUBMITTED, last_status=last_status)


class ECSTaskLauncher:
    """
    Launches runner tasks on ECS Fargate.

    The launcher holds only the immutable AppConfig and its settings; a new
    ECS client is created per launch, so one instance can serve concurrent
    requests.

    Attributes:
        _config: Application configuration
        _client_factory: Callable creating an ECS client for a region
        _wait_timeout: Ceiling in seconds for the RUNNING wait
        _poll_interval: Seconds between polls (None: use the SDK waiter's delay)
    """

    def __init__(
        self,
        config: AppConfig,
        client_factory: Callable[[str], Any] | None = None,
        wait_timeout: float = DEFAULT_WAIT_TIMEOUT,
        poll_interval: float | None = None,
    ):
        """
        Initialize the launcher.

        Args:
            config: Application configuration
            client_factory: Optional factory ``region -> ECS client``
                (default: boto3 session client)
            wait_timeout: Maximum seconds to wait for RUNNING
            poll_interval: Optional fixed poll interval in seconds
        """
        self._config = config
        self._client_factory = client_factory or default_client_factory
        self._wait_timeout = wait_timeout
        self._poll_interval = poll_interval

    @property
    def config(self) -> AppConfig:
        return self._config

    def build_run_task_input(self, command: str) -> dict[str, Any]:
        """
        Build the RunTask parameters for a flattened setup command.

        Args:
            command: One-line shell command for the runner container

        Returns:
            Keyword arguments for ``client.run_task``
        """
        return {
            "cluster": self._config.cluster,
            "taskDefinition": self._config.task_definition,
            "launchType": LAUNCH_TYPE,
            "networkConfiguration": {
                "awsvpcConfiguration": {
                    "subnets": [self._config.subnet_id],
                    "assignPublicIp": ASSIGN_PUBLIC_IP,
                }
            },
            "overrides": {
                "containerOverrides": [
                    {
                        "name": RUNNER_CONTAINER_NAME,
                        "command": ["bash", "-c", command],
                    }
                ]
            },
        }

    async def launch(self, command: str) -> str:
        """
        Launch one task and optionally wait until it is RUNNING.

        Args:
            command: One-line shell command for the runner container

        Returns:
            ARN of the launched task

        Raises:
            ConfigurationError: If the ECS client or credentials cannot be set up
            LaunchError: If RunTask is rejected or the task fails while waiting
            EmptyTaskListError: If RunTask returns no task
            LaunchTimeoutError: If RUNNING is not reached before the ceiling
        """
        client = await self._create_client()
        task_arn = await self._run_task(client, command)

        if self._config.no_wait:
            logger.info(f"Task {task_arn} {TaskLaunchState.SUBMITTED.value}, not waiting")
            return task_arn

        await self._wait_until_running(client, task_arn)
        return task_arn

    async def _create_client(self) -> Any:
        """
        Create the ECS client for this launch in the default executor.

        Raises:
            ConfigurationError: If the client cannot be created
        """
        try:
            return await asyncio.get_event_loop().run_in_executor(
                None, self._client_factory, self._config.region
            )
        except (BotoCoreError, ValueError) as e:
            raise ConfigurationError(
                f"Failed to create ECS client for region '{self._config.region}': {e}",
                region=self._config.region,
            ) from e

    async def _run_task(self, client: Any, command: str) -> str:
        """
        Submit RunTask and return the single task's ARN.

        Raises:
            ConfigurationError: If AWS credentials cannot be resolved
            LaunchError: If the call fails or returns more than one task
            EmptyTaskListError: If the call returns no task
        """
        run_task_input = self.build_run_task_input(command)
        details = {
            "cluster": self._config.cluster,
            "task_definition": self._config.task_definition,
        }

        try:
            response = await asyncio.get_event_loop().run_in_executor(
                None, lambda: client.run_task(**run_task_input)
            )
        except NoCredentialsError as e:
            raise ConfigurationError(
                f"Failed to resolve AWS credentials: {e}", region=self._config.region
            ) from e
        except (ClientError, BotoCoreError) as e:
            logger.error(f"RunTask failed: {e}")
            raise LaunchError(f"client.run_task() failed: {e}", details=details) from e

        tasks = response.get("tasks") or []
        if not tasks:
            failures = response.get("failures") or []
            reasons = ", ".join(f.get("reason", "unknown") for f in failures)
            raise EmptyTaskListError(
                f"RunTask returned no tasks: {reasons or 'no failure reported'}",
                failures=failures,
                details=details,
            )
        if len(tasks) > 1:
            raise LaunchError(
                f"RunTask returned {len(tasks)} tasks, expected exactly one",
                details={**details, "task_arns": [t.get("taskArn") for t in tasks]},
            )

        task_arn = tasks[0]["taskArn"]
        logger.info(
            f"Submitted ECS task {task_arn} "
            f"(cluster: {self._config.cluster}, definition: {self._config.task_definition})"
        )
        return task_arn

    def _resolve_poll_interval(self, client: Any) -> float:
        """Return the configured interval, else the SDK waiter's delay."""
        if self._poll_interval is not None:
            return self._poll_interval

        try:
            return float(client.get_waiter(TASKS_RUNNING_WAITER).config.delay)
        except (BotoCoreError, AttributeError, TypeError, ValueError) as e:
            logger.debug(f"Could not read '{TASKS_RUNNING_WAITER}' waiter delay: {e}")
            return DEFAULT_POLL_INTERVAL

    async def _wait_until_running(self, client: Any, task_arn: str) -> None:
        """
        Poll DescribeTasks until the task is RUNNING.

        Cancelling the calling coroutine stops the poll immediately; the
        task itself keeps running.

        Raises:
            LaunchError: If the task stops, goes missing, or polling fails
            LaunchTimeoutError: If the ceiling elapses first
        """
        interval = self._resolve_poll_interval(client)
        logger.info(
            f"Waiting up to {self._wait_timeout}s for task {task_arn} to reach RUNNING "
            f"(poll interval: {interval}s)"
        )

        try:
            await self._poll_until_running(client, task_arn, interval)
        except asyncio.CancelledError:
            logger.warning(f"Wait for task {task_arn} cancelled; task left as is")
            raise

    async def _poll_until_running(self, client: Any, task_arn: str, interval: float) -> None:
        loop = asyncio.get_event_loop()
        deadline = loop.time() + self._wait_timeout
        last_status = None

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise self._timeout_error(task_arn, last_status)

            try:
                response = await asyncio.wait_for(
                    loop.run_in_executor(
                        None,
                        lambda: client.describe_tasks(
                            cluster=self._config.cluster, tasks=[task_arn]
                        ),
                    ),
                    timeout=remaining,
                )
            except asyncio.TimeoutError:
                raise self._timeout_error(task_arn, last_status)
            except (ClientError, BotoCoreError) as e:
                raise LaunchError(
                    f"client.describe_tasks() failed while waiting: {e}", cloud_id=task_arn
                ) from e

            snapshot = evaluate_describe_tasks(response)
            last_status = snapshot.last_status or last_status

            if snapshot.state is TaskLaunchState.RUNNING:
                logger.info(f"Task {task_arn} is {TaskLaunchState.RUNNING.value}")
                return
            if snapshot.state is TaskLaunchState.FAILED:
                raise LaunchError(
                    f"Task did not reach RUNNING: {snapshot.reason}",
                    details={"last_status": last_status},
                    cloud_id=task_arn,
                )

            logger.debug(f"Task {task_arn} status: {last_status}")
            await asyncio.sleep(min(interval, max(deadline - loop.time(), 0)))

    def _timeout_error(self, task_arn: str, last_status: str | None) -> LaunchTimeoutError:
        logger.error(
            f"Task {task_arn} not RUNNING after {self._wait_timeout}s "
            f"(last status: {last_status}); task left as is"
        )
        return LaunchTimeoutError(
            f"Task not RUNNING within {self._wait_timeout}s",
            timeout_seconds=self._wait_timeout,
            last_status=last_status,
            cloud_id=task_arn,
        )
