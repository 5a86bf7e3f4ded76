import logging

import pytest


@pytest.fixture(autouse=True)
def debug_logging(caplog):
    # Exercise the debug records, including their formatting.
    caplog.set_level(logging.DEBUG, logger='acme_session')
    yield caplog
