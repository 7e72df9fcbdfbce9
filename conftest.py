"""Global pytest configuration and fixtures."""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--s3-url",
        action="store",
        default=None,
        help="S3 URL of a scratch bucket for live tests (default: S3_URL)",
    )


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "component(name): mark test as covering a specific component"
    )
    config.addinivalue_line(
        "markers", "edge_case: mark test as edge case or boundary condition"
    )
    config.addinivalue_line(
        "markers", "live: mark test as requiring a real S3 bucket"
    )
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(scope="session")
def live_s3_url(request):
    """S3 URL for live tests; skips the test when none is configured."""
    url = request.config.getoption("--s3-url") or os.getenv("S3_URL")
    if not url:
        pytest.skip("S3_URL not configured for live tests")
    return url
