"""Unit tests for the console logger."""

import io

from fitsocial.utils.logger import FitSocialLogger


def make_logger(min_level: str = "INFO"):
    stream = io.StringIO()
    return FitSocialLogger("workout", enable_colors=False, min_level=min_level, stream=stream), stream


def test_line_format_with_context_and_extras():
    logger, stream = make_logger()
    logger.info("Workout logged", context="create", user_id=1, exercises=["Bench Press"])

    line = stream.getvalue().strip()
    assert "[WORKOUT/CREATE] [INFO] Workout logged" in line
    assert line.endswith('| user_id=1, exercises=["Bench Press"]')


def test_messages_below_threshold_are_dropped():
    logger, stream = make_logger("WARNING")
    logger.info("quiet")
    logger.success("also quiet")
    logger.warning("loud")

    output = stream.getvalue()
    assert "quiet" not in output
    assert "[WARNING] loud" in output


def test_success_sits_between_info_and_warning():
    logger, stream = make_logger("INFO")
    logger.debug("hidden")
    logger.success("done")

    output = stream.getvalue()
    assert "hidden" not in output
    assert "[SUCCESS] done" in output


def test_unknown_level_falls_back_to_info():
    logger, stream = make_logger("LOUD")
    logger.debug("hidden")
    logger.info("shown")

    assert stream.getvalue().count("\n") == 1
