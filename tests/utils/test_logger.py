"""Tests for the application logger utility."""

from __future__ import annotations

import logging
import logging.handlers

import pytest


def _file_handlers() -> list[logging.Handler]:
    return [
        h
        for h in logging.getLogger("krishiva_cli").handlers
        if isinstance(h, logging.handlers.RotatingFileHandler)
    ]


def _drop_file_handlers() -> None:
    logger = logging.getLogger("krishiva_cli")
    for handler in _file_handlers():
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture(autouse=True)
def reset_logger():
    """Reset the logger singleton and its file handler between tests."""
    import krishiva_cli.utils.logger as logger_mod

    original = logger_mod._logger
    logger_mod._logger = None
    _drop_file_handlers()

    yield

    _drop_file_handlers()
    logger_mod._logger = original


def test_get_logger_creates_log_file(isolated_dirs):
    from krishiva_cli.utils.logger import get_logger

    logger = get_logger()

    assert (isolated_dirs["logs"] / "krishiva.log").exists()
    assert logger.name == "krishiva_cli"
    assert not logger.propagate


def test_module_records_reach_the_file(isolated_dirs):
    from krishiva_cli.utils.logger import get_logger

    get_logger()
    logging.getLogger("krishiva_cli.services.sync_service").info("sync pass 1 started")
    for handler in _file_handlers():
        handler.flush()

    content = (isolated_dirs["logs"] / "krishiva.log").read_text(encoding="utf-8")
    assert "sync pass 1 started" in content
    assert "[krishiva_cli.services.sync_service]" in content


def test_child_names(isolated_dirs):
    from krishiva_cli.utils.logger import get_logger

    assert get_logger("sync").name == "krishiva_cli.sync"
    assert get_logger("krishiva_cli.database").name == "krishiva_cli.database"


def test_handler_added_once(isolated_dirs):
    import krishiva_cli.utils.logger as logger_mod

    logger_mod.get_logger()
    logger_mod._logger = None
    logger_mod.get_logger()

    assert len(_file_handlers()) == 1


def test_foreign_handler_does_not_suppress_file(isolated_dirs):
    from krishiva_cli.utils.logger import get_logger

    capture = logging.handlers.MemoryHandler(capacity=10)
    package_logger = logging.getLogger("krishiva_cli")
    package_logger.addHandler(capture)
    try:
        get_logger().info("written beside a capture handler")
        for handler in _file_handlers():
            handler.flush()

        assert len(_file_handlers()) == 1
        content = (isolated_dirs["logs"] / "krishiva.log").read_text(encoding="utf-8")
        assert "written beside a capture handler" in content
    finally:
        package_logger.removeHandler(capture)
        capture.close()
