from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def _reset_mvcamera_logger():
    # default_logger() binds its handler to the sys.stderr of the test that
    # created it; drop it so later tests never write to a closed capture.
    yield
    logger = logging.getLogger("mvcamera")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
