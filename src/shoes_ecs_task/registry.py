# src/shoes_ecs_task/registry.py
"""
Plugin registry: maps the service names a shoes host asks for to handler
factories, and holds the handshake the host uses to recognize a plugin.

A hosting adapter (gRPC server, test harness, CLI) calls ``bootstrap`` once
at startup. Configuration is loaded there, so a missing parameter stops the
process before any request is served.

Usage:
    >>> handlers = bootstrap()
    >>> handler = handlers[PLUGIN_NAME]
    >>> await handler.delete_instance(DeleteInstanceRequest(cloud_id=arn))
"""

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from .exceptions import HandshakeError
from .handler import ECSTaskHandler

logger = logging.getLogger(__name__)

# Service name the host dispenses
PLUGIN_NAME = "shoes_grpc"

HandlerFactory = Callable[[Mapping[str, str]], ECSTaskHandler]


@dataclass(frozen=True)
class HandshakeConfig:
    """
    Values a host and plugin must agree on before talking.

    Attributes:
        protocol_version: Plugin protocol version
        magic_cookie_key: Environment variable set by the host
        magic_cookie_value: Expected value of that variable
    """

    protocol_version: int
    magic_cookie_key: str
    magic_cookie_value: str


SHOES_HANDSHAKE = HandshakeConfig(
    protocol_version=1,
    magic_cookie_key="SHOES_PLUGIN_MAGIC_COOKIE",
    magic_cookie_value="are_you_a_shoes?",
)


def verify_handshake(
    environ: Mapping[str, str] | None = None, handshake: HandshakeConfig = SHOES_HANDSHAKE
) -> None:
    """
    Check that the process was launched by a shoes host.

    Raises:
        HandshakeError: If the magic cookie is missing or wrong
    """
    if environ is None:
        environ = os.environ

    if environ.get(handshake.magic_cookie_key) != handshake.magic_cookie_value:
        raise HandshakeError(
            "This binary is a plugin. These are not meant to be executed directly. "
            "Please execute the program that consumes these plugins, which will "
            "load any plugins automatically",
            details={"cookie_key": handshake.magic_cookie_key},
        )


class PluginRegistry:
    """
    Name-to-factory registry for request handlers.

    Thread Safety:
        Registration is expected at import/startup time only.
    """

    def __init__(self):
        self._factories: dict[str, HandlerFactory] = {}

    def register(self, name: str, factory: HandlerFactory) -> None:
        """
        Register a handler factory under a service name.

        Raises:
            ValueError: If the name is already registered
        """
        if name in self._factories:
            raise ValueError(f"Plugin '{name}' is already registered")
        self._factories[name] = factory
        logger.debug(f"Registered plugin '{name}'")

    def names(self) -> list[str]:
        return sorted(self._factories)

    def create(self, name: str, environ: Mapping[str, str] | None = None) -> ECSTaskHandler:
        """
        Build the handler registered under ``name``.

        Args:
            name: Service name
            environ: Configuration source (default: ``os.environ``)

        Raises:
            ValueError: If no plugin is registered under ``name``
            MissingConfiguration: If the handler's configuration is incomplete
        """
        factory = self._factories.get(name)
        if factory is None:
            raise ValueError(f"Unknown plugin '{name}'. Available: {self.names()}")

        handler = factory(os.environ if environ is None else environ)
        logger.info(f"Plugin '{name}' ready")
        return handler

    def create_all(self, environ: Mapping[str, str] | None = None) -> dict[str, ECSTaskHandler]:
        """Build every registered handler; any failure aborts startup."""
        return {name: self.create(name, environ) for name in self.names()}


def default_registry() -> PluginRegistry:
    """Registry with the ECS task handler under ``PLUGIN_NAME``."""
    registry = PluginRegistry()
    registry.register(PLUGIN_NAME, ECSTaskHandler.from_environ)
    return registry


def bootstrap(
    environ: Mapping[str, str] | None = None, registry: PluginRegistry | None = None
) -> dict[str, ECSTaskHandler]:
    """
    Verify the host handshake and build all handlers.

    Raises:
        HandshakeError: If not launched by a shoes host
        MissingConfiguration: If a required parameter is unset
    """
    verify_handshake(environ)
    return (registry or default_registry()).create_all(environ)
