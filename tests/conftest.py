import pytest

from tests.fakes import build_registries, build_snapshot


@pytest.fixture
def registries():
    return build_registries()


@pytest.fixture
def snapshot():
    return build_snapshot()
