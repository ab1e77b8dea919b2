#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""Tests for logging_utils and the exception hierarchy."""

import logging

from factorrisk.cli import exitcodes
from factorrisk.exceptions import (
    FactorRiskError,
    InvalidArgument,
    RenderingFailure,
    UpstreamComputationFailure,
)
from factorrisk.logging_utils import get_logger, setup_logging


class TestSetupLogging:

    def test_configures_package_logger(self):
        logger = setup_logging("DEBUG")
        assert logger.name == "factorrisk"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_second_call_only_changes_level(self):
        setup_logging("INFO")
        logger = setup_logging("ERROR")
        assert len(logger.handlers) == 1
        assert logger.level == logging.ERROR
        assert logger.handlers[0].level == logging.ERROR

    def test_log_file(self, tmp_path):
        path = tmp_path / "factorrisk.log"
        logger = setup_logging("INFO", log_file=str(path), reset=True)
        get_logger("report").info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in path.read_text(encoding="utf-8")

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logging("LOUD").level == logging.INFO


class TestGetLogger:

    def test_prefixes_package(self):
        assert get_logger("report").name == "factorrisk.report"

    def test_keeps_package_names(self):
        assert get_logger("factorrisk.models").name == "factorrisk.models"


class TestExceptions:

    def test_exit_codes(self):
        assert FactorRiskError("x").exit_code == exitcodes.FAILURE
        assert InvalidArgument("x").exit_code == exitcodes.INVALID_ARGS
        assert UpstreamComputationFailure("x").exit_code == exitcodes.UPSTREAM_FAILURE
        assert RenderingFailure("x").exit_code == exitcodes.RENDERING_FAILURE

    def test_explicit_exit_code(self):
        assert FactorRiskError("x", exit_code=9).exit_code == 9

    def test_hierarchy(self):
        err = InvalidArgument("bad token")
        assert isinstance(err, FactorRiskError)
        assert isinstance(err, ValueError)
        assert err.message == "bad token"
        assert str(err) == "bad token"
