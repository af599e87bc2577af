import logging

import pytest

from rereso.schemas import LogSchemas
from rereso.schemas import RereSoSchemas

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


@pytest.fixture(scope='module')
def rereso_schemas() -> RereSoSchemas:
    return RereSoSchemas()


@pytest.fixture(scope='module')
def log_schemas() -> LogSchemas:
    return LogSchemas()
