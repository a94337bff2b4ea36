import logging

import pytest

from semsearch.utils.timing import Timer, time_function


def test_timer_records_elapsed_and_logs(caplog):
    with caplog.at_level(logging.INFO, logger="semsearch.utils.timing"):
        with Timer("block") as timer:
            sum(range(1000))
    assert timer.elapsed_time is not None and timer.elapsed_time >= 0.0
    assert timer.elapsed_ms == pytest.approx(timer.elapsed_time * 1000.0)
    assert "block completed in" in caplog.text


def test_timer_can_be_silent(caplog):
    with caplog.at_level(logging.INFO, logger="semsearch.utils.timing"):
        with Timer("quiet", log=False):
            pass
    assert "quiet" not in caplog.text


def test_time_function_preserves_result_and_name(caplog):
    @time_function
    def double(value):
        return value * 2

    with caplog.at_level(logging.INFO, logger="semsearch.utils.timing"):
        assert double(21) == 42
    assert double.__name__ == "double"
    assert "double completed in" in caplog.text
