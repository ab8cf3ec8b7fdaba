"""Tests for logging setup"""
import logging

from helpdesk.utils.logger import PACKAGE_LOGGER, get_logger, setup_logger


def test_module_loggers_share_one_package_handler():
    """Test module loggers propagate to one package handler"""
    first = get_logger("helpdesk.services.jira")
    second = get_logger("helpdesk.routes.sync")

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    assert first.name == "helpdesk.services.jira"
    assert second.parent is package_logger or second.parent.name.startswith(PACKAGE_LOGGER)
    assert len(package_logger.handlers) == 1


def test_level_override_and_unknown_level():
    """Test level override and unknown level fallback"""
    setup_logger(level="debug")
    assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG

    setup_logger(level="chatty")
    assert logging.getLogger(PACKAGE_LOGGER).level == logging.INFO


def test_http_client_logs_are_quiet():
    """Test HTTP client loggers are turned down"""
    get_logger("helpdesk.main")
    assert logging.getLogger("httpx").level == logging.WARNING
