"""Pytest configuration for tests.

No sys.path hacks - tests should import from the installed bijective package.
"""

import pytest

from bijective import BijectiveDecoder, DecoderConfig


def pytest_addoption(parser):
    """Add gated perf test option."""
    parser.addoption(
        "--run-perf",
        action="store_true",
        default=False,
        help="Run decoding throughput benchmarks (gated)."
    )


def pytest_collection_modifyitems(config, items):
    """Skip perf-marked tests unless --run-perf is set."""
    if config.getoption("--run-perf"):
        return
    skip_perf = pytest.mark.skip(reason="perf tests gated; pass --run-perf")
    for item in items:
        if "perf" in item.keywords:
            item.add_marker(skip_perf)


@pytest.fixture
def make_decoder():
    """Build a BijectiveDecoder from DecoderConfig keyword arguments."""
    def _make(**options):
        return BijectiveDecoder(DecoderConfig(**options))
    return _make
