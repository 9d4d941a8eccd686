"""Tests for the default logging capability."""

import io
import logging

import pytest

from httpfront.log import (
    LoggerLike,
    LogFormatter,
    create_console_logger,
    resolve_level,
    uvicorn_log_config,
)


@pytest.mark.unit
class TestResolveLevel:
    """Tests for resolve_level()."""

    def test_names(self):
        assert resolve_level("debug") == logging.DEBUG
        assert resolve_level("WARNING") == logging.WARNING

    def test_numeric_passthrough(self):
        assert resolve_level(15) == 15

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            resolve_level("verbose")


@pytest.mark.unit
class TestLogFormatter:
    """Tests for LogFormatter."""

    def _record(self, **extra):
        record = logging.LogRecord(
            "test", logging.INFO, __file__, 1, "listener bound", None, None
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_plain_message(self):
        line = LogFormatter().format(self._record())

        assert line.endswith("[I] listener bound")

    def test_extra_fields_sorted(self):
        line = LogFormatter().format(
            self._record(url="http://127.0.0.1:3000", server_id="connector-0")
        )

        assert line.endswith(
            "listener bound [server_id:connector-0] [url:http://127.0.0.1:3000]"
        )

    def test_exception_rendered_by_class(self):
        line = LogFormatter().format(self._record(exception=OSError("in use")))

        assert "[exception:OSError]" in line


@pytest.mark.unit
class TestConsoleLogger:
    """Tests for create_console_logger()."""

    def test_writes_to_stream(self):
        stream = io.StringIO()
        lg = create_console_logger("test.console", level="debug", stream=stream)

        lg.info("load router file", extra={"file": "status.py"})

        assert "[I] load router file [file:status.py]" in stream.getvalue()

    def test_respects_level(self):
        stream = io.StringIO()
        lg = create_console_logger("test.console.level", level="warning", stream=stream)

        lg.info("hidden")
        lg.warning("shown")

        assert "hidden" not in stream.getvalue()
        assert "shown" in stream.getvalue()

    def test_does_not_propagate_or_stack_handlers(self):
        lg = create_console_logger("test.console.handlers", stream=io.StringIO())
        lg = create_console_logger("test.console.handlers", stream=io.StringIO())

        assert lg.propagate is False
        assert len(lg.handlers) == 1

    def test_satisfies_capability(self):
        assert isinstance(create_console_logger("test.console.cap"), LoggerLike)


@pytest.mark.unit
def test_uvicorn_log_config_only_sets_levels():
    config = uvicorn_log_config("info")

    assert config["disable_existing_loggers"] is False
    assert config["handlers"] == {}
    assert config["loggers"]["uvicorn.error"] == {"level": "INFO"}
