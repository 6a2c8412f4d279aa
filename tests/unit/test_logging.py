"""Unit tests for structlog configuration."""

from __future__ import annotations

import logging

import pytest
import structlog

from doccache.config.settings import Settings
from doccache.providers.cache.memory_cache import MemoryCacheProvider
from doccache.services.caching_methods import create_caching_methods
from doccache.utils.logging import configure_from_settings, configure_logging, get_logger
from tests.fakes import FakeCollection


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    def test_sets_root_level(self) -> None:
        configure_logging("WARNING")
        assert logging.getLogger().level == logging.WARNING

    def test_production_renders_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging("INFO", app_env="production")
        structlog.get_logger().info("cache_hit", key="db:mongo:users:1")
        out = capsys.readouterr().out
        assert '"event": "cache_hit"' in out
        assert '"key": "db:mongo:users:1"' in out

    def test_level_filters_debug_events(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging("INFO", json_output=True)
        structlog.get_logger().debug("cache_miss", key="k")
        assert capsys.readouterr().out == ""

    def test_from_settings(self) -> None:
        configure_from_settings(Settings(_env_file=None, log_level="ERROR", app_env="production"))
        assert logging.getLogger().level == logging.ERROR


class TestGetLogger:
    def test_does_not_configure_logging(self) -> None:
        structlog.reset_defaults()
        get_logger("doccache.test")
        assert not structlog.is_configured()

    def test_host_handlers_survive_library_use(self) -> None:
        host_handler = logging.NullHandler()
        logging.getLogger().addHandler(host_handler)

        create_caching_methods(FakeCollection({}), cache=MemoryCacheProvider())

        assert host_handler in logging.getLogger().handlers
