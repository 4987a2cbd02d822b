"""Session setup shared by every storefront test.

The storefront domain is initialised once for the run, against the config
overlay chosen with ``--env`` (``test`` is in-memory, ``sqlite`` and
``production`` use real databases), and its context stays pushed so tests
can use ``current_domain`` directly.
"""

import os
from pathlib import Path

import pytest

_MARKERS_BY_DIRECTORY = {
    "domain": "domain",
    "application": "application",
    "integration": "integration",
    "bdd": "application",
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="domain.toml overlay to run against (test, sqlite, production)",
    )


def pytest_sessionstart(session):
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from storefront.domain import storefront

    storefront.init()
    storefront.domain_context().push()


def pytest_collection_modifyitems(config, items):
    for item in items:
        parts = Path(item.fspath).parts
        for directory, marker in _MARKERS_BY_DIRECTORY.items():
            if directory in parts:
                item.add_marker(getattr(pytest.mark, marker))
                break

        if "integration" in parts and not any(m.name == "fast" for m in item.iter_markers()):
            item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session", autouse=True)
def database_schema():
    from storefront.domain import storefront
    from storefront.utils.db import drop_db, setup_db

    setup_db(storefront)
    yield
    drop_db(storefront)


@pytest.fixture(autouse=True)
def clean_slate():
    """Every test starts with empty stores."""
    yield

    from protean import current_domain

    for provider in current_domain.providers.values():
        provider._data_reset()
    current_domain.event_store.store._data_reset()
