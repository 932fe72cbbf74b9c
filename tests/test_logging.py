"""Tests for the structured logger and its standard logging bridge."""

import io
import logging

import pytest

from pyconstval.analysis.diagnostics import CollectingSink, Diagnostic, DiagnosticKind
from pyconstval.api import create_evaluator
from pyconstval.logging import (
    ConstValLogger,
    LogEntry,
    LogLevel,
    PythonLoggingBridge,
    setup_python_logging,
)


def make_logger(level=LogLevel.NORMAL):
    stream = io.StringIO()
    return ConstValLogger(level=level, color=False, stream=stream), stream


class TestLogLevel:
    @pytest.mark.parametrize(
        "name, level",
        [("quiet", LogLevel.QUIET), (" Verbose ", LogLevel.VERBOSE), (4, LogLevel.TRACE)],
    )
    def test_parse(self, name, level):
        assert LogLevel.parse(name) is level

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            LogLevel.parse("chatty")


class TestConstValLogger:
    def test_entries_kept_below_level(self):
        logger, stream = make_logger()
        logger.debug("hidden", category="evaluator")
        logger.info("shown")
        assert [e.message for e in logger.get_entries()] == ["hidden", "shown"]
        assert logger.get_entries(level=LogLevel.DEBUG)[0].category == "evaluator"
        assert "hidden" not in stream.getvalue()
        assert "• shown" in stream.getvalue()

    def test_warning_and_error_text(self):
        logger, stream = make_logger(LogLevel.QUIET)
        logger.warning("careful", category="config")
        logger.error("broken")
        [warning] = logger.get_entries(category="config")
        assert warning.message == "⚠ careful"
        assert "✗ broken" in stream.getvalue()
        assert "careful" not in stream.getvalue()

    def test_counters_and_clear(self):
        logger, _ = make_logger()
        assert logger.count("calls") == 1
        assert logger.count("calls", 2) == 3
        assert logger.get_count("calls") == 3
        logger.info("x")
        logger.clear()
        assert logger.get_count("calls") == 0
        assert logger.get_entries() == []

    def test_timer(self):
        logger, _ = make_logger()
        with logger.timer("fold"):
            pass
        [entry] = logger.get_entries(category="timing")
        assert entry.level is LogLevel.VERBOSE
        assert entry.message.startswith("fold: ")

    def test_file_output(self, tmp_path):
        path = tmp_path / "out.log"
        logger = ConstValLogger(color=False, stream=io.StringIO(), file_path=path)
        logger.info("to file")
        logger.close()
        assert "to file" in path.read_text(encoding="utf-8")

    def test_entry_format(self):
        entry = LogEntry(LogLevel.VERBOSE, "msg", category="cache")
        assert entry.format(color=False, show_time=False) == "→ [cache] msg"


class TestPythonLogging:
    def test_bridge_levels(self):
        target, _ = make_logger(LogLevel.TRACE)
        pylogger = logging.getLogger("pyconstval.tests.bridge")
        pylogger.propagate = False
        pylogger.setLevel(logging.DEBUG)
        handler = PythonLoggingBridge(target)
        pylogger.addHandler(handler)
        try:
            pylogger.debug("d")
            pylogger.warning("w")
            pylogger.error("e")
        finally:
            pylogger.removeHandler(handler)
        entries = target.get_entries(category="python")
        assert [e.level for e in entries] == [LogLevel.DEBUG, LogLevel.NORMAL, LogLevel.QUIET]
        assert entries[1].message == "⚠ w"

    def test_setup_is_idempotent(self):
        logger = setup_python_logging()
        setup_python_logging()
        bridges = [h for h in logger.handlers if isinstance(h, PythonLoggingBridge)]
        assert len(bridges) == 1

    def test_bridge_defaults_to_global_logger(self, quiet_logger):
        record = logging.LogRecord("pyconstval", logging.INFO, __file__, 1, "hi", None, None)
        PythonLoggingBridge().emit(record)
        assert quiet_logger.get_entries(category="python")[0].message == "hi"


class TestAnalysisLogging:
    def test_sink_echoes_diagnostics(self, quiet_logger):
        sink = CollectingSink()
        sink.report(Diagnostic(DiagnosticKind.CLASS_NOT_FOUND, 0, ("demo.K",)))
        [entry] = quiet_logger.get_entries(category="diagnostic")
        assert entry.level is LogLevel.VERBOSE

    def test_evaluator_traces(self, quiet_logger, builder):
        quiet_logger.set_level(LogLevel.TRACE)
        total = builder.binary("+", builder.literal(1), builder.literal(2))
        create_evaluator(builder.arena).evaluate(total)
        assert quiet_logger.get_entries(category="evaluator")
