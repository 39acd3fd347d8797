"""
Tests for structlog setup.
"""

import json
from pathlib import Path
import sys

import pytest
import structlog

# Add the daily_scheduler package to the path
sys.path.append(str(Path(__file__).parent.parent))

from daily_scheduler.errors import RunWarnings
from daily_scheduler.logging import get_logger, setup_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_json_output_goes_to_stderr(capsys):
    setup_logging(json_output=True)

    get_logger("daily_scheduler.tests").info("run started", slots=6)

    captured = capsys.readouterr()
    record = json.loads(captured.err.strip())
    assert captured.out == ""
    assert record["event"] == "run started"
    assert record["level"] == "info"
    assert record["slots"] == 6
    assert "timestamp" in record


def test_level_filters_lower_records(capsys):
    setup_logging(json_output=True, log_level="warning")
    logger = get_logger("daily_scheduler.tests")

    logger.info("dropped")
    logger.warning("kept")

    lines = capsys.readouterr().err.strip().splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["kept"]


def test_run_warnings_are_logged_with_context(capsys):
    setup_logging(json_output=True)
    warnings = RunWarnings()

    warnings.warn("pin_conflict", "Pinned Canteen for J1 lost slot 2 to Arts", bunk="J1", slot=2)

    record = json.loads(capsys.readouterr().err.strip())
    assert record["level"] == "warning"
    assert record["code"] == "pin_conflict"
    assert record["bunk"] == "J1"
    assert record["slot"] == 2


def test_unknown_level_falls_back_to_info(capsys):
    setup_logging(json_output=True, log_level="chatty")
    logger = get_logger("daily_scheduler.tests")

    logger.debug("dropped")
    logger.info("kept")

    lines = capsys.readouterr().err.strip().splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["kept"]
