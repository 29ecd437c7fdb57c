import logging

import pytest
import structlog
from marketplace.utils.logging import add_service, configure_logging, get_log_level, wants_json


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    config = structlog.get_config()
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    structlog.configure(**config)


class TestLogSettings:
    def test_level_follows_environment(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("ENV", raising=False)
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        monkeypatch.setenv("PROTEAN_ENV", "production")

        assert get_log_level() == "INFO"

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")

        assert get_log_level() == "ERROR"

    @pytest.mark.parametrize(
        "env, fmt, expected",
        [
            ("production", "", True),
            ("development", "", False),
            ("production", "console", False),
            ("development", "json", True),
        ],
    )
    def test_format_selection(self, monkeypatch, env, fmt, expected):
        monkeypatch.delenv("ENV", raising=False)
        monkeypatch.setenv("ENVIRONMENT", env)
        monkeypatch.setenv("LOG_FORMAT", fmt)

        assert wants_json() is expected


def test_events_are_stamped_with_service():
    assert add_service(None, "info", {"event": "order_placed"})["service"] == "marketplace"
    assert add_service(None, "info", {"service": "gateway"})["service"] == "gateway"


class TestConfigureLogging:
    def test_writes_rotating_files(self, monkeypatch, tmp_path, restore_logging):
        monkeypatch.delenv("LOG_TO_FILE", raising=False)

        configure_logging(log_dir=str(tmp_path), log_file_prefix="orders")

        assert (tmp_path / "orders.log").exists()
        assert (tmp_path / "orders_error.log").exists()
        assert len(logging.getLogger().handlers) == 3

    def test_files_can_be_turned_off(self, monkeypatch, tmp_path, restore_logging):
        monkeypatch.setenv("LOG_TO_FILE", "false")

        configure_logging(log_dir=str(tmp_path / "unused"))

        assert not (tmp_path / "unused").exists()
        assert len(logging.getLogger().handlers) == 1
