"""
Tests for logger setup and progress reporting
"""

import logging

import pytest

from ChangeProjection.logger import (
    BANNER_WIDTH,
    ROOT_LOGGER_NAME,
    ProgressLogger,
    get_logger,
    log_banner,
    log_stage,
    set_level,
    setup_logger,
)


def messages(caplog):
    return [record.getMessage() for record in caplog.records]


def test_progress_logs_once_per_crossed_interval(caplog):
    logger = get_logger("tests.progress")
    caplog.set_level(logging.INFO, logger=logger.name)
    progress = ProgressLogger(logger, total=10, interval=3, unit="vertices")

    logged = [progress.update(done) for done in (1, 3, 4, 7, 9, 10)]

    assert logged == [False, True, False, True, True, False]
    assert messages(caplog) == [
        "  3/10 vertices (30%)",
        "  7/10 vertices (70%)",
        "  9/10 vertices (90%)",
    ]


def test_progress_respects_level(caplog):
    logger = get_logger("tests.progress_debug")
    caplog.set_level(logging.INFO, logger=logger.name)
    progress = ProgressLogger(logger, total=100, interval=10, level=logging.DEBUG)

    assert progress.update(50)
    assert messages(caplog) == []


@pytest.mark.parametrize("interval", [0, -5])
def test_progress_rejects_non_positive_interval(interval):
    with pytest.raises(ValueError):
        ProgressLogger(get_logger("tests"), total=10, interval=interval)


def test_banner_and_stage(caplog):
    logger = get_logger("tests.banner")
    caplog.set_level(logging.INFO, logger=logger.name)

    log_banner(logger, "RUN")
    log_stage(logger, "Stage 1: Visibility Estimation")

    assert messages(caplog) == [
        "=" * BANNER_WIDTH,
        "RUN",
        "=" * BANNER_WIDTH,
        "\n--- Stage 1: Visibility Estimation ---",
    ]


def test_get_logger_is_under_package_root():
    assert get_logger("spatial.voxel_grid").name == f"{ROOT_LOGGER_NAME}.spatial.voxel_grid"


def test_setup_logger_keeps_handlers_unless_forced(tmp_path):
    name = "ChangeProjectionTests.setup"
    log_file = tmp_path / "logs" / "run.log"

    logger = setup_logger(name, level="debug", log_file=str(log_file), console=False)
    assert logger.level == logging.DEBUG
    assert [type(h) for h in logger.handlers] == [logging.FileHandler]

    # Second setup without force is a no-op
    setup_logger(name, level="ERROR", console=True)
    assert logger.level == logging.DEBUG
    assert [type(h) for h in logger.handlers] == [logging.FileHandler]

    logger.info("written to file")
    setup_logger(name, level=logging.WARNING, console=True, force=True)
    assert logger.level == logging.WARNING
    assert [type(h) for h in logger.handlers] == [logging.StreamHandler]
    assert "written to file" in log_file.read_text()

    setup_logger(name, console=False, force=True)
    assert logger.handlers == []


def test_unknown_level_is_rejected():
    with pytest.raises(ValueError, match="VERBOSE"):
        setup_logger("ChangeProjectionTests.level", level="VERBOSE", console=False, force=True)
    with pytest.raises(ValueError):
        set_level("loud")


def test_set_level_changes_package_root():
    root = logging.getLogger(ROOT_LOGGER_NAME)
    previous = root.level
    try:
        set_level("debug")
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(previous)
