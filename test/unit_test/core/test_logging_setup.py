from __future__ import annotations

import logging
import sys

import pytest

from langfuse_prompt_mcp.core.logging_config import JSON_FORMAT, get_logger, setup_logging


@pytest.fixture(autouse=True)
def _restore_root_handlers():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_writes_to_stderr_only() -> None:
    setup_logging("warning", "json")
    root = logging.getLogger()

    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    assert handler.stream is sys.stderr
    assert handler.level == logging.WARNING
    assert handler.formatter._fmt == JSON_FORMAT


def test_third_party_loggers_are_quietened() -> None:
    setup_logging()
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("mcp").level == logging.WARNING
    assert get_logger("langfuse_prompt_mcp.tools").name == "langfuse_prompt_mcp.tools"
