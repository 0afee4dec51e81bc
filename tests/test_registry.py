# tests/test_registry.py
"""
Tests for the plugin registry and host handshake.
"""

from unittest.mock import MagicMock

import pytest

from shoes_ecs_task.exceptions import HandshakeError, MissingConfiguration
from shoes_ecs_task.handler import ECSTaskHandler
from shoes_ecs_task.registry import (
    PLUGIN_NAME,
    SHOES_HANDSHAKE,
    PluginRegistry,
    bootstrap,
    default_registry,
    verify_handshake,
)


@pytest.fixture
def host_environ(ecs_environ) -> dict:
    """Configuration plus the magic cookie a shoes host sets."""
    return {**ecs_environ, "SHOES_PLUGIN_MAGIC_COOKIE": "are_you_a_shoes?"}


class TestHandshake:
    def test_handshake_values(self):
        assert SHOES_HANDSHAKE.protocol_version == 1
        assert SHOES_HANDSHAKE.magic_cookie_key == "SHOES_PLUGIN_MAGIC_COOKIE"
        assert SHOES_HANDSHAKE.magic_cookie_value == "are_you_a_shoes?"

    def test_valid_cookie(self, host_environ):
        verify_handshake(host_environ)

    def test_missing_cookie(self):
        with pytest.raises(HandshakeError) as exc_info:
            verify_handshake({})

        assert "not meant to be executed directly" in str(exc_info.value)

    def test_wrong_cookie(self):
        with pytest.raises(HandshakeError):
            verify_handshake({"SHOES_PLUGIN_MAGIC_COOKIE": "are_you_a_plugin?"})


class TestPluginRegistry:
    def test_register_and_create(self, ecs_environ):
        handler = MagicMock()
        factory = MagicMock(return_value=handler)
        registry = PluginRegistry()
        registry.register("custom", factory)

        assert registry.create("custom", ecs_environ) is handler
        factory.assert_called_once_with(ecs_environ)

    def test_duplicate_name_rejected(self):
        registry = PluginRegistry()
        registry.register("custom", MagicMock())

        with pytest.raises(ValueError, match="already registered"):
            registry.register("custom", MagicMock())

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown plugin"):
            PluginRegistry().create("missing", {})

    def test_create_reads_os_environ_by_default(self, ecs_environ, monkeypatch):
        for key, value in ecs_environ.items():
            monkeypatch.setenv(key, value)

        handler = default_registry().create(PLUGIN_NAME)

        assert handler.config.subnet_id == "subnet-0abc1234"

    def test_default_registry(self):
        assert default_registry().names() == ["shoes_grpc"]


class TestBootstrap:
    def test_builds_handlers(self, host_environ):
        handlers = bootstrap(host_environ)

        assert list(handlers) == [PLUGIN_NAME]
        assert isinstance(handlers[PLUGIN_NAME], ECSTaskHandler)
        assert handlers[PLUGIN_NAME].config.cluster == "runners"

    def test_missing_configuration_aborts_startup(self, host_environ):
        del host_environ["ECS_TASK_CLUSTER"]

        with pytest.raises(MissingConfiguration) as exc_info:
            bootstrap(host_environ)

        assert str(exc_info.value) == "must set ECS_TASK_CLUSTER"

    def test_handshake_checked_before_configuration(self):
        with pytest.raises(HandshakeError):
            bootstrap({})

    def test_custom_registry(self, host_environ):
        factory = MagicMock(return_value="handler")
        registry = PluginRegistry()
        registry.register("other", factory)

        assert bootstrap(host_environ, registry=registry) == {"other": "handler"}
