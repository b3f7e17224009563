import pytest

from circuit_challenge.core.utils import make_rng
from circuit_challenge.generators.puzzle_generator import PuzzleGenerator


def pytest_addoption(parser):
    parser.addoption("--runslow", action="store_true", default=False,
                     help="run full-length stress tests")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--runslow"):
        return
    skip_slow = pytest.mark.skip(reason="needs --runslow")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def rng():
    return make_rng(20240611)


@pytest.fixture(scope="module")
def generator():
    return PuzzleGenerator()
