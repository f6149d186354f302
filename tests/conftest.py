import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_configure(config):
    """Set process settings before any bookings module reads them."""
    os.environ["PROTEAN_ENV"] = config.option.env
    os.environ.setdefault("OFFLINE_REPLAY_DELAY_MS", "0")
    os.environ.setdefault("GEOLOCATION_TIMEOUT_MS", "500")
    os.environ.setdefault("LOCAL_STORE_ADAPTER", "memory")
    os.environ.setdefault("MEDIA_ADAPTER", "fake")
    os.environ.setdefault("GEOLOCATION_ADAPTER", "fake")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
