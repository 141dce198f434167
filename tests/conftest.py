import logging

import pytest

from gallery_scraper.cache import CacheStore
from gallery_scraper.config import Environment, ScrapeSettings

from fakes import SessionLog


@pytest.fixture(autouse=True)
def _debug_logs(caplog):
    caplog.set_level(logging.DEBUG, logger="gallery_scraper")


@pytest.fixture
def env(tmp_path):
    return Environment(storage_path=tmp_path / "storage")


@pytest.fixture
def cache(env):
    env.prepare()
    return CacheStore(env)


@pytest.fixture
def settings():
    return ScrapeSettings(page_delay=0, max_attempts=2, max_pages=5)


@pytest.fixture
def session_log():
    return SessionLog()
