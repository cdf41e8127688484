import pytest

from swapsettle.adapters.storage import InMemoryTradeStore

from fakes import FakeAggregator, FakeChain, FakeProvisioner


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store():
    return InMemoryTradeStore()


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def aggregator():
    return FakeAggregator()


@pytest.fixture
def provisioner():
    return FakeProvisioner()
