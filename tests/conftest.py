import pytest

from cfroute.config import RouteSpec
from cfroute.dtos import DistributionConfig
from tests.fakes import FakeResolver, FakeStore, api_response, make_spec


@pytest.fixture
def spec() -> RouteSpec:
    return make_spec()


@pytest.fixture
def empty_config() -> DistributionConfig:
    return DistributionConfig.from_api(api_response(origins=[]))


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
