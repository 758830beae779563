"""Tests for engine logging as a well-behaved library."""

import importlib
import io
import pytest
from loguru import logger
import asynchelpers.lib.log
from asynchelpers.config.settings import appsettings
from asynchelpers.lib.log import LOG, log_disable, log_enable


@pytest.fixture
def host_sink() -> io.StringIO:
    """A sink the host application installed before using the engine."""
    output = io.StringIO()
    handler_id = logger.add(output, format="{message}")
    yield output
    logger.remove(handler_id)


@pytest.fixture
def loud(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(appsettings, "beQuiet", False)


def test_import_keeps_host_handlers(host_sink: io.StringIO) -> None:
    importlib.reload(asynchelpers.lib.log)
    logger.info("host message")
    assert "host message" in host_sink.getvalue()
    assert "ASYNCHELPERS" not in host_sink.getvalue()


def test_engine_silent_until_enabled(host_sink: io.StringIO, loud: None) -> None:
    LOG("engine detail")
    assert "engine detail" not in host_sink.getvalue()


def test_log_enable_routes_only_engine_records(host_sink: io.StringIO, loud: None) -> None:
    engine_sink = io.StringIO()
    handler_id = log_enable(engine_sink)
    try:
        LOG("engine detail")
        logger.info("host message")
    finally:
        log_disable(handler_id)

    assert "engine detail" in engine_sink.getvalue()
    assert "host message" not in engine_sink.getvalue()
    assert "host message" in host_sink.getvalue()

    LOG("after disable")
    assert "after disable" not in engine_sink.getvalue()
    assert "after disable" not in host_sink.getvalue()


def test_be_quiet_suppresses_engine_records(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(appsettings, "beQuiet", True)
    engine_sink = io.StringIO()
    handler_id = log_enable(engine_sink)
    try:
        LOG("quiet please")
    finally:
        log_disable(handler_id)
    assert engine_sink.getvalue() == ""
