import os
import tempfile
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
    """Point the domain at a throwaway SQLite file.

    ``domain.toml`` is read when ``inventory.domain`` is first imported, so
    this must run before collection. A file database (not ``:memory:``)
    lets sessions on other threads see committed rows.
    """
    database_dir = tempfile.mkdtemp(prefix="inventory-tests-")
    os.environ.setdefault("INVENTORY_DATABASE_URL", f"sqlite:///{database_dir}/inventory.db")


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Select the config environment and configure logging once for the run.
    """
    os.environ["INVENTORY_ENV"] = session.config.option.env

    from inventory.config import InventorySettings
    from inventory.utils.logging import configure_logging

    settings = InventorySettings()
    configure_logging(level=settings.effective_log_level, env=settings.env, log_dir=None)


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
