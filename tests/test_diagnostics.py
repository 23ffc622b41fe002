import logging
from pathlib import Path

from logship.adapters.diagnostics.logger import LoggingDiagnostics
from logship.ports.diagnostics import DiagnosticsPort


def test_satisfies_diagnostics_port():
    assert isinstance(LoggingDiagnostics(), DiagnosticsPort)


def test_default_logger_name():
    assert LoggingDiagnostics().logger.name == "logship"


def test_error_without_payload(caplog):
    with caplog.at_level(logging.ERROR, logger="logship"):
        LoggingDiagnostics().error("publish failed")
    assert caplog.records[-1].getMessage() == "publish failed"
    assert caplog.records[-1].exc_info is None


def test_error_with_exception_attaches_traceback(caplog):
    exc = RuntimeError("boom")
    with caplog.at_level(logging.ERROR, logger="logship"):
        LoggingDiagnostics().error("publish failed", exc)
    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    assert record.exc_info is not None
    assert record.exc_info[1] is exc


def test_error_with_plain_payload(caplog):
    with caplog.at_level(logging.ERROR, logger="logship"):
        LoggingDiagnostics().error("publish failed", "HTTP 503")
    assert caplog.records[-1].getMessage() == "publish failed: HTTP 503"


def test_debug_is_silent_above_debug_level(caplog):
    with caplog.at_level(logging.INFO, logger="logship"):
        LoggingDiagnostics().debug("quiet")
    assert caplog.records == []


def test_debug_overflow_message(caplog):
    with caplog.at_level(logging.DEBUG, logger="logship"):
        LoggingDiagnostics().debug_overflow(Path("/tmp/a-1.json"), 12, 900, 512)
    message = caplog.records[-1].getMessage()
    assert "900 bytes" in message
    assert "offset 12" in message
    assert "/tmp/a-1.json" in message
    assert "512 bytes" in message


def test_debug_file_action_with_counters(caplog):
    with caplog.at_level(logging.DEBUG, logger="logship"):
        LoggingDiagnostics().debug_file_action(
            "complete", Path("/tmp/a-1.json"), {"lines_ok": 3, "lines_error": 0}
        )
    message = caplog.records[-1].getMessage()
    assert message.startswith("Buffer file complete: /tmp/a-1.json")
    assert "lines_ok=3" in message
    assert "lines_error=0" in message


def test_debug_file_action_without_counters(caplog):
    with caplog.at_level(logging.DEBUG, logger="logship"):
        LoggingDiagnostics().debug_file_action("delete", Path("/tmp/a-1.json"), {})
    assert caplog.records[-1].getMessage() == "Buffer file delete: /tmp/a-1.json"


def test_custom_logger(caplog):
    logger = logging.getLogger("app.shipping")
    with caplog.at_level(logging.ERROR, logger="app.shipping"):
        LoggingDiagnostics(logger=logger).error("oops")
    assert caplog.records[-1].name == "app.shipping"
