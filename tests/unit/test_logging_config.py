"""Tests for logging configuration helpers."""

import json
import logging
import sys
import threading
from pathlib import Path

from oneshot_http.bootstrap.logging_setup import (
    CorrelationIdFilter,
    JsonFormatter,
    configure_logging,
    redact_sensitive,
)
from oneshot_http.domain.correlation_id import (
    CorrelationLoggerAdapter,
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="oneshot_http.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Test message",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_configure_logging_stream_handler():
    """Configure stdout handler and validate formatter output."""
    logger = configure_logging("DEBUG", "stdout")

    assert logger.logger.name == "oneshot_http"
    assert logger.logger.level == logging.DEBUG
    assert len(logger.logger.handlers) == 1

    handler = logger.logger.handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    formatted = handler.formatter.format(
        _record(correlation_id="test-id-123", component="server")
    )
    log_data = json.loads(formatted)
    assert log_data["component"] == "server"
    assert log_data["message"] == "Test message"
    assert log_data["correlation_id"] == "test-id-123"


def test_configure_logging_replaces_previous_handlers():
    configure_logging("INFO", "stdout")
    logger = configure_logging("INFO", "stdout")
    assert len(logger.logger.handlers) == 1


def test_configure_logging_file_destination(tmp_path: Path):
    """Configure file handler and verify writes are persisted."""
    destination = tmp_path / "logs" / "server.log"
    logger = configure_logging("WARNING", destination.as_posix())

    assert logger.logger.level == logging.WARNING
    handler = logger.logger.handlers[0]
    assert handler.baseFilename == destination.as_posix()

    logging.getLogger("oneshot_http.server").warning("file log test")
    handler.flush()
    assert "file log test" in destination.read_text()


def test_configure_logging_plain_text_format(tmp_path: Path):
    destination = tmp_path / "plain.log"
    configure_logging("INFO", destination.as_posix(), use_json=False)

    logging.getLogger("oneshot_http.server").info("plain message")
    logging.getLogger("oneshot_http").handlers[0].flush()

    contents = destination.read_text()
    assert "[-] oneshot_http.server :: plain message" in contents


def test_correlation_id_filter_inserts_placeholder_when_missing():
    record = _record()
    assert not hasattr(record, "correlation_id")
    assert CorrelationIdFilter().filter(record)
    assert record.correlation_id == "-"


def test_json_formatter_includes_allowlisted_extras_only():
    formatter = JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")
    output = formatter.format(
        _record(
            correlation_id="abc",
            component="transport.worker",
            event="request_complete",
            status_code=200,
            route="/echo/x",
            unrelated="dropped",
        )
    )
    log_data = json.loads(output)
    assert log_data["event"] == "request_complete"
    assert log_data["status_code"] == 200
    assert log_data["route"] == "/echo/x"
    assert "unrelated" not in log_data
    assert list(log_data) == sorted(log_data)


def test_json_formatter_redacts_sensitive_strings():
    formatter = JsonFormatter()
    output = formatter.format(_record(route="/echo/password=hunter2"))
    assert json.loads(output)["route"] == "[REDACTED]"


def test_json_formatter_includes_exception():
    formatter = JsonFormatter()
    try:
        raise ValueError("broken")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()
    log_data = json.loads(formatter.format(record))
    assert "ValueError: broken" in log_data["exception"]


def test_redact_sensitive_passes_safe_values():
    assert redact_sensitive("") == ""
    assert redact_sensitive("/user-agent") == "/user-agent"
    assert redact_sensitive("Authorization: Bearer x") == "[REDACTED]"
    assert redact_sensitive("0123456789abcdef0123456789abcdef") == "[REDACTED]"


def test_adapter_injects_correlation_id_and_component(caplog):
    caplog.set_level(logging.INFO)
    adapter = CorrelationLoggerAdapter(
        logging.getLogger("oneshot_http.pipeline.router"), {}
    )
    with correlation_scope("cid-1"):
        adapter.info("hello", extra={"event": "adapter_check"})
    adapter.info("after", extra={"event": "unbound"})

    record = next(
        r for r in caplog.records if getattr(r, "event", None) == "adapter_check"
    )
    assert record.correlation_id == "cid-1"
    assert record.component == "pipeline.router"
    unbound = next(
        r for r in caplog.records if getattr(r, "event", None) == "unbound"
    )
    assert unbound.correlation_id == "-"


def test_correlation_ids_are_isolated_between_threads():
    results = {}

    def worker(worker_id: str):
        with correlation_scope(f"worker-{worker_id}"):
            results[worker_id] = get_correlation_id()

    threads = [threading.Thread(target=worker, args=(str(i),)) for i in range(3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results == {str(i): f"worker-{i}" for i in range(3)}
    assert generate_correlation_id() != generate_correlation_id()


def test_correlation_scope_restores_previous_value():
    assert get_correlation_id() is None
    with correlation_scope() as outer:
        assert get_correlation_id() == outer
        with correlation_scope("inner"):
            assert get_correlation_id() == "inner"
        assert get_correlation_id() == outer
    assert get_correlation_id() is None
