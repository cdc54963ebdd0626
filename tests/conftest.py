import logging
import os

import pytest

from payments_engine.logging_config import ROOT_LOGGER_NAME


FIXTURES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "fixtures")


@pytest.fixture
def fixture_path():
    """Absolute path of a file under tests/fixtures"""
    def _path(name):
        return os.path.join(FIXTURES_DIR, name)
    return _path


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging so caplog keeps seeing records in later tests"""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
