import pytest

from cache.client import CacheClient
from inventory import (
    InMemoryAuditLogRepository,
    InMemoryCategoryRepository,
    InMemoryProductRepository,
    create_dispatcher,
)
from config.settings import PipelineSettings
from tests.mock_store import FakeClock, FlakyStore


@pytest.fixture
def clock():
    """Create a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def store(clock):
    """Create an in-memory store that can be made to fail."""
    return FlakyStore(max_size=100, clock=clock)


@pytest.fixture
def client(store):
    """Create a cache client over the test store."""
    return CacheClient(store, operation_timeout=0.05)


@pytest.fixture
def repositories():
    """Create empty in-memory repositories."""
    return {
        'products': InMemoryProductRepository(),
        'categories': InMemoryCategoryRepository(),
        'audit_logs': InMemoryAuditLogRepository(),
    }


@pytest.fixture
def dispatcher(repositories, store):
    """Create the full inventory pipeline over in-memory collaborators."""
    return create_dispatcher(
        PipelineSettings(_env_file=None),
        store=store,
        setup_logging=False,
        **repositories,
    )
