# tests/unit/test_diagnostics.py
import io
import logging

from odeity.runtime.diagnostics import LoggingSink, NullSink, TextHistoryWriter
from odeity.utils.logger import ROOT_LOGGER, get_logger, set_level


def test_text_history_writer_format():
    buf = io.StringIO()
    w = TextHistoryWriter(buf)
    w.record(0.5, 0.125)
    w.record(1.0, 0.5, 7)
    lines = buf.getvalue().splitlines()
    assert len(lines) == 2
    t, h = lines[0].split()
    assert float(t) == 0.5 and float(h) == 0.125
    assert lines[1].split()[2] == "7"
    assert "e-01" in lines[0]


def test_logging_sink_forwards(caplog):
    sink = LoggingSink()
    with caplog.at_level(logging.DEBUG, logger=ROOT_LOGGER):
        sink.debug("rejected")
        sink.info("hello")
        sink.warning("careful")
    levels = [(r.levelno, r.getMessage()) for r in caplog.records]
    assert (logging.DEBUG, "rejected") in levels
    assert (logging.INFO, "hello") in levels
    assert (logging.WARNING, "careful") in levels
    assert all(r.name == "odeity.integrator" for r in caplog.records)


def test_null_sink_accepts_everything():
    sink = NullSink()
    sink.debug("x")
    sink.info("y")
    sink.warning("z")


def test_get_logger_nests_names():
    assert get_logger().name == ROOT_LOGGER
    assert get_logger("odeity.cli").name == "odeity.cli"
    assert get_logger("external").name == "odeity.external"


def test_set_level_controls_children():
    root = logging.getLogger(ROOT_LOGGER)
    old = root.level
    try:
        set_level("WARNING")
        assert not get_logger("odeity.integrator").isEnabledFor(logging.INFO)
        set_level(logging.DEBUG)
        assert get_logger("odeity.integrator").isEnabledFor(logging.DEBUG)
    finally:
        root.setLevel(old)
