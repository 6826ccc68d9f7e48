"""
Tests for logging setup.
"""

import logging
import logging.handlers

import pytest
from flask import Flask

from poolkeeper.utils.logging_config import GRADING_LOGGERS, setup_logging


@pytest.fixture
def file_logging_app(tmp_path):
    app = Flask(__name__)
    app.config.update(LOG_TO_FILE=True, LOG_TO_CONSOLE=False, LOG_DIR=str(tmp_path), LOG_LEVEL="INFO")
    yield app
    for name in ("",) + GRADING_LOGGERS:
        target = logging.getLogger(name)
        for handler in target.handlers[:]:
            if not isinstance(handler, logging.handlers.RotatingFileHandler):
                continue
            handler.close()
            target.removeHandler(handler)


class TestSetupLogging:
    def test_grade_writes_go_to_grading_log(self, file_logging_app, tmp_path):
        setup_logging(file_logging_app)

        logging.getLogger("poolkeeper.services.grade_override_service").info("Pick 7 overridden")
        logging.getLogger("poolkeeper.services.standings_service").info("standings read")

        grading_log = (tmp_path / "grading.log").read_text()
        assert "Pick 7 overridden" in grading_log
        assert "standings read" not in grading_log
        assert "standings read" in (tmp_path / "poolkeeper.log").read_text()

    def test_repeated_setup_does_not_duplicate_handlers(self, file_logging_app):
        setup_logging(file_logging_app)
        setup_logging(file_logging_app)

        for name in GRADING_LOGGERS:
            assert len(logging.getLogger(name).handlers) == 1
