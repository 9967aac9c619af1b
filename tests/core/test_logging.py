from __future__ import annotations

import logging

import pytest

from coursekit.core.logging import _ContainerFormatter, _JsonFormatter, setup_logging


def _record(level: int, msg: str = "hello", pathname: str = "svc.py", lineno: int = 1):
    return logging.LogRecord(
        name="coursekit.test",
        level=level,
        pathname=pathname,
        lineno=lineno,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


@pytest.mark.parametrize("name", ["uvicorn", "httpx", "botocore", "boto3"])
def test_setup_logging_quiets_third_party_at_debug(name: str) -> None:
    setup_logging("debug")
    assert logging.getLogger(name).level == logging.WARNING


def test_setup_logging_allows_uvicorn_at_error() -> None:
    setup_logging("error")
    assert logging.getLogger("uvicorn").level == logging.ERROR


def test_setup_logging_selects_json_formatter() -> None:
    setup_logging("info", json_format=True)
    (handler,) = logging.getLogger().handlers
    assert isinstance(handler.formatter, _JsonFormatter)

    setup_logging("info")
    (handler,) = logging.getLogger().handlers
    assert isinstance(handler.formatter, _ContainerFormatter)


def test_formatter_excludes_location_for_info() -> None:
    output = _ContainerFormatter().format(_record(logging.INFO, pathname="test.py"))
    assert "hello" in output
    assert "[test.py:" not in output


def test_formatter_includes_location_for_warning() -> None:
    output = _ContainerFormatter().format(
        _record(logging.WARNING, "store timeout", pathname="progress_store.py", lineno=42)
    )
    assert "store timeout" in output
    assert "[progress_store.py:42]" in output
