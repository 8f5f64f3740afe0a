"""Tests for the file-only logger."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from blogger_mcp.config import Config
from blogger_mcp.server import logger as logger_module
from blogger_mcp.server.logger import get_logger


@pytest.fixture
def fresh_log_files(tmp_data_dir, monkeypatch):
    """Rebuild the package handlers on the temp log files, restore them afterwards."""
    root = logging.getLogger(logger_module.ROOT_NAME)
    saved = list(root.handlers)
    for handler in saved:
        root.removeHandler(handler)

    yield tmp_data_dir / "logs", monkeypatch

    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)
    for handler in saved:
        root.addHandler(handler)


def _flush():
    for handler in logging.getLogger(logger_module.ROOT_NAME).handlers:
        handler.flush()


class TestLogger:
    def test_writes_to_files_not_stdout(self, fresh_log_files, capsys):
        log_dir, _ = fresh_log_files
        log = get_logger("test.files")
        log.warning("hello from the tracker")
        log.error("something broke")
        _flush()

        main_log = (log_dir / "blogger-mcp.log").read_text()
        error_log = (log_dir / "blogger-mcp-errors.log").read_text()
        assert "hello from the tracker" in main_log
        assert "[blogger_mcp.test.files]" in main_log
        assert "something broke" in error_log
        assert "hello from the tracker" not in error_log

        captured = capsys.readouterr()
        assert captured.out == ""

    def test_handlers_live_on_package_logger(self, fresh_log_files):
        first = get_logger("test.one")
        second = get_logger("test.two")
        assert first.handlers == [] and second.handlers == []
        assert first.propagate and second.propagate

        root = logging.getLogger(logger_module.ROOT_NAME)
        assert root.propagate is False
        assert all(isinstance(h, RotatingFileHandler) for h in root.handlers)
        assert [h.level for h in root.handlers] == [logging.DEBUG, logging.ERROR]

    def test_repeated_calls_do_not_add_handlers(self, fresh_log_files):
        get_logger("test.once")
        get_logger("test.once")
        get_logger("test.other")
        assert len(logging.getLogger(logger_module.ROOT_NAME).handlers) == 2

    def test_rotation_keeps_every_line_across_loggers(self, fresh_log_files):
        log_dir, monkeypatch = fresh_log_files
        monkeypatch.setattr(Config, "LOG_MAX_BYTES", 300)
        monkeypatch.setattr(Config, "LOG_BACKUPS", 100)

        loggers = [get_logger("test.rot.a"), get_logger("test.rot.b")]
        for i in range(80):
            loggers[i % 2].warning(f"line-{i:03d}")
        _flush()

        text = "".join(p.read_text() for p in log_dir.glob("blogger-mcp.log*"))
        assert len(list(log_dir.glob("blogger-mcp.log.*"))) > 1
        for i in range(80):
            assert f"line-{i:03d}" in text
