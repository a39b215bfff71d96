import logging

import pytest

from identity_sync.data import Change, ResourceData
from identity_sync.utils.retry import RetryStrategy

from fakes import FakeClock, FakeManagementAPI


@pytest.fixture
def api():
    return FakeManagementAPI()


@pytest.fixture
def no_retry():
    return RetryStrategy(max_retries=0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def retry(clock):
    """Fast retry policy driven by a fake clock."""
    return RetryStrategy(max_retries=2, jitter=False, sleep=clock.sleep, clock=clock)


@pytest.fixture
def existing():
    """Build an accessor for a resource that already exists remotely."""
    def build(old, new, resource_id, resource_type=None):
        return ResourceData(Change(old=old, new=new), resource_id=resource_id, resource_type=resource_type)
    return build


@pytest.fixture
def restore_logging():
    """Undo handler changes made by setup_logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
