# src/shoes_ecs_task/exceptions.py
"""
Exceptions for the ECS task provisioning backend.

Every failure the backend can produce is a typed exception carrying a
human-readable message, an optional details dictionary and, once a task
has been submitted, the task ARN it concerns. The request handler collapses
per-request failures into a single ``InstanceError`` category for the host,
but keeps the original exception as its cause.

Exception Hierarchy:
    ShoesECSError (base)
    ├── MissingConfiguration - Required startup parameter absent/empty
    ├── ConfigurationError - ECS client could not be set up for a request
    ├── LaunchError - RunTask rejected, or the task failed while waiting
    │   └── EmptyTaskListError - RunTask returned no task record
    ├── LaunchTimeoutError - RUNNING state not confirmed in time
    ├── HandshakeError - Host handshake cookie mismatch
    └── InstanceError - Coarse failure reported across the host boundary
"""

from typing import Any

# Failure category reported to the host for every per-request error
INTERNAL = "INTERNAL"


class ShoesECSError(Exception):
    """
    Base exception for all ECS backend errors.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary with additional context
        cloud_id: ARN of the affected task (if one was submitted)
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        cloud_id: str | None = None,
    ):
        """
        Initialize the error.

        Args:
            message: Human-readable error description
            details: Optional dictionary with additional context
            cloud_id: ARN of the affected task
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cloud_id = cloud_id

    def __str__(self) -> str:
        """Return formatted error message."""
        base_msg = self.message
        if self.cloud_id:
            base_msg = f"[Task {self.cloud_id.rsplit('/', 1)[-1]}] {base_msg}"
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            base_msg = f"{base_msg} ({detail_str})"
        return base_msg

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception to dictionary for logging/CLI output."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "cloud_id": self.cloud_id,
        }


class MissingConfiguration(ShoesECSError):
    """
    Raised when a required configuration parameter is absent or empty.

    This is a startup-time condition: the process must not become ready
    to serve requests.

    Attributes:
        key: Name of the missing parameter (e.g. ``ECS_TASK_CLUSTER``)
    """

    def __init__(self, key: str, message: str | None = None, **kwargs):
        super().__init__(message or f"must set {key}", **kwargs)
        self.key = key

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception to dictionary."""
        result = super().to_dict()
        result["key"] = self.key
        return result


class ConfigurationError(ShoesECSError):
    """
    Raised when an ECS client cannot be established for a request.

    This can occur due to:
    - A malformed region name
    - Credential resolution failure in the AWS SDK

    Unlike MissingConfiguration, this is surfaced per request and is not
    fatal to the process.

    Attributes:
        region: The region the client was bound to
    """

    def __init__(self, message: str, region: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.region = region

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception to dictionary."""
        result = super().to_dict()
        result["region"] = self.region
        return result


class LaunchError(ShoesECSError):
    """
    Raised when a task could not be launched.

    This covers a rejected RunTask call (permissions, quotas, malformed
    input), an error while polling DescribeTasks, and a task that stopped
    before it reached RUNNING. No retry is attempted.
    """

    pass


class EmptyTaskListError(LaunchError):
    """
    Raised when RunTask succeeds but returns no task record.

    ECS reports the reason per task in its ``failures`` list (for example
    ``RESOURCE:ENI`` or ``MISSING``); those entries are kept here.

    Attributes:
        failures: The ``failures`` entries returned by RunTask
    """

    def __init__(self, message: str, failures: list[dict[str, Any]] | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.failures = failures or []

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception to dictionary."""
        result = super().to_dict()
        result["failures"] = self.failures
        return result


class LaunchTimeoutError(ShoesECSError):
    """
    Raised when a submitted task is not confirmed RUNNING in time.

    The remote task is left as it is; it may still start or fail on its own.

    Attributes:
        timeout_seconds: The ceiling that was exceeded
        last_status: The last ``lastStatus`` reported for the task
    """

    def __init__(
        self,
        message: str,
        timeout_seconds: float | None = None,
        last_status: str | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.timeout_seconds = timeout_seconds
        self.last_status = last_status

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception to dictionary."""
        result = super().to_dict()
        result.update({"timeout_seconds": self.timeout_seconds, "last_status": self.last_status})
        return result


class HandshakeError(ShoesECSError):
    """Raised when the process was not started by a shoes host."""

    pass


class InstanceError(ShoesECSError):
    """
    Failure reported across the host boundary.

    The host only sees one category (``code``, always ``INTERNAL`` today)
    plus the underlying message. The typed cause stays available through
    ``__cause__`` and ``error_type`` so adapters can expose more detail.

    Attributes:
        code: Failure category for the host
        error_type: Class name of the underlying exception
    """

    def __init__(self, message: str, code: str = INTERNAL, error_type: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.code = code
        self.error_type = error_type

    @classmethod
    def from_exception(cls, operation: str, exc: BaseException) -> "InstanceError":
        """Wrap an exception raised while serving ``operation``."""
        return cls(f"failed to {operation}: {exc}", error_type=exc.__class__.__name__)

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception to dictionary."""
        result = super().to_dict()
        result.update({"code": self.code, "error_type": self.error_type})
        return result
