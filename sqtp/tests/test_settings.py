import io
import logging
from contextlib import contextmanager

import pytest
from pydantic import ValidationError as PydanticValidationError

from sqtp import logging_utils
from sqtp.client import SQTPClient
from sqtp.config.settings import ClientSettings, get_settings
from sqtp.logging_utils import (
    CorrelationIdFilter,
    JsonFormatter,
    correlation_id_ctx,
    correlation_scope,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("SQTP_BASE_URL", "SQTP_TIMEOUT", "SQTP_TRACE"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    s = ClientSettings()
    assert s.BASE_URL == "http://localhost:8080"
    assert s.TIMEOUT == 30.0
    assert s.TRACE is False
    assert s.TRACE_SINK is None


def test_trailing_slash_is_stripped():
    assert ClientSettings(BASE_URL="http://h/db/main///").BASE_URL == "http://h/db/main"


def test_empty_base_url_rejected():
    with pytest.raises(PydanticValidationError):
        ClientSettings(BASE_URL="  ")


def test_timeout_must_be_positive():
    with pytest.raises(PydanticValidationError):
        ClientSettings(TIMEOUT=0)


def test_environment_prefix(monkeypatch):
    monkeypatch.setenv("SQTP_BASE_URL", "http://env.test/db/x/")
    monkeypatch.setenv("SQTP_TIMEOUT", "2.5")
    monkeypatch.setenv("SQTP_TRACE", "true")
    s = get_settings()
    assert s.BASE_URL == "http://env.test/db/x"
    assert s.TIMEOUT == 2.5
    assert s.TRACE is True
    assert get_settings() is s


def test_settings_are_frozen():
    s = ClientSettings()
    with pytest.raises(PydanticValidationError):
        s.TIMEOUT = 1


def test_client_overrides_given_settings():
    base = ClientSettings(BASE_URL="http://a.test", TIMEOUT=3)
    c = SQTPClient("http://b.test/db/", settings=base)
    assert c.base_url == "http://b.test/db"
    assert c.settings.TIMEOUT == 3
    assert base.BASE_URL == "http://a.test"


def test_correlation_scope_binds_and_resets():
    assert correlation_id_ctx.get() == "-"
    with correlation_scope("abc") as cid:
        assert cid == "abc"
        assert correlation_id_ctx.get() == "abc"
    assert correlation_id_ctx.get() == "-"


def test_json_formatter_carries_event_and_correlation_id():
    record = logging.LogRecord("sqtp.trace", logging.DEBUG, __file__, 1, "sqtp.%s", ("request",), None)
    record.event = {"method": "SQTP-SELECT"}
    with correlation_scope("cid-1"):
        CorrelationIdFilter().filter(record)
    out = JsonFormatter().format(record)
    assert '"msg": "sqtp.request"' in out
    assert '"correlation_id": "cid-1"' in out
    assert '"method": "SQTP-SELECT"' in out


def test_client_overrides_are_validated():
    with pytest.raises(PydanticValidationError):
        SQTPClient(settings=ClientSettings(), TIMEOUT=0)


def test_client_overrides_keep_trace_sink():
    def sink(stage, event):
        pass

    c = SQTPClient(settings=ClientSettings(TRACE_SINK=sink), TRACE=True)
    assert c.settings.TRACE is True
    assert c.settings.TRACE_SINK is sink


@contextmanager
def _fresh_root(monkeypatch, *handlers):
    root = logging.getLogger()
    with monkeypatch.context() as m:
        m.setattr(logging_utils, "_CONFIGURED", False)
        m.setattr(root, "handlers", list(handlers))
        m.setattr(root, "filters", [])
        m.setattr(root, "level", root.level)
        yield root


def test_setup_logging_adds_correlation_format_once(monkeypatch):
    monkeypatch.delenv("SQTP_LOG_JSON", raising=False)
    handler = logging.StreamHandler(io.StringIO())
    handler.setFormatter(logging.Formatter("%(message)s"))
    with _fresh_root(monkeypatch, handler) as root:
        setup_logging(logging.DEBUG)
        setup_logging(logging.DEBUG)
        assert "%(correlation_id)s" in handler.formatter._fmt
        assert len(root.filters) == 1
        assert len(handler.filters) == 1
        assert root.level == logging.DEBUG
        with correlation_scope("cid-9"):
            logging.getLogger("sqtp.demo").info("hello")
    assert "[cid-9] sqtp.demo: hello" in handler.stream.getvalue()


def test_setup_logging_installs_handler_when_none(monkeypatch):
    monkeypatch.delenv("SQTP_LOG_JSON", raising=False)
    with _fresh_root(monkeypatch) as root:
        setup_logging()
        assert len(root.handlers) == 1
        assert "%(correlation_id)s" in root.handlers[0].formatter._fmt
        assert root.level == logging.INFO


def test_setup_logging_json_switch(monkeypatch):
    monkeypatch.setenv("SQTP_LOG_JSON", "1")
    handler = logging.StreamHandler(io.StringIO())
    with _fresh_root(monkeypatch, handler):
        setup_logging()
        assert isinstance(handler.formatter, JsonFormatter)
        with correlation_scope("cid-j"):
            logging.getLogger("sqtp.demo").warning("as json")
    assert '"correlation_id": "cid-j"' in handler.stream.getvalue()
    assert '"msg": "as json"' in handler.stream.getvalue()
