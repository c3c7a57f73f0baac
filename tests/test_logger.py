import io
import sys

import pytest

from dbsqlcore import logger


@pytest.fixture
def output():
    buffer = io.StringIO()
    logger.set_log_output(buffer)
    logger.set_log_level("warn")
    yield buffer
    logger.set_log_output(sys.stderr)
    logger.set_log_level("warn")


def test_warn_level_hides_debug(output):
    logger.get_logger().debug("hidden message")
    assert output.getvalue() == ""
    logger.get_logger().warn("visible message")
    assert "visible message" in output.getvalue()


def test_set_log_level_enables_debug(output):
    logger.set_log_level("debug")
    logger.get_logger().debug("value %d", 7)
    assert "value 7" in output.getvalue()


def test_disabled_hides_everything(output):
    logger.set_log_level("disabled")
    logger.get_logger().error("nothing")
    assert output.getvalue() == ""


def test_unknown_level_raises():
    with pytest.raises(ValueError):
        logger.set_log_level("verbose")


def test_with_context_adds_fields(output):
    log = logger.with_context("conn-1", "corr-1", "query-1")
    log.warn("hello")
    text = output.getvalue()
    assert "hello" in text
    for needle in ("connId", "conn-1", "corrId", "corr-1", "queryId", "query-1"):
        assert needle in text


def test_err_without_error_logs_at_info(output):
    log = logger.get_logger()
    log.err(None, "no problem")
    assert output.getvalue() == ""
    logger.set_log_level("info")
    log.err(None, "no problem")
    assert "no problem" in output.getvalue()


def test_err_with_error_includes_it(output):
    logger.get_logger().err(ValueError("boom"), "cancel failed")
    text = output.getvalue()
    assert "cancel failed" in text
    assert "boom" in text


def test_track_and_duration(output):
    logger.set_log_level("debug")
    msg, start = logger.track("Run operation")
    assert msg == "Run operation"
    logger.duration(msg, start)
    assert "Run operation elapsed time" in output.getvalue()


def test_method_track_and_duration(output):
    logger.set_log_level("debug")
    log = logger.with_context("c", "r", "")
    msg, start = log.track("op")
    log.duration(msg, start)
    assert "op elapsed time" in output.getvalue()