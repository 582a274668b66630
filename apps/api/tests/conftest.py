import os
import tempfile

# Point the app at a throwaway sqlite file before anything imports settings
os.environ["USE_SQLITE"] = "true"
os.environ["DISABLE_REDIS"] = "true"
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.mkdtemp(prefix="watchstate-tests-"), "api.db")
os.environ.setdefault("TMDB_API_KEY", "test-key")

import pytest
from sqlmodel import SQLModel, Session

from app.db import make_engine
from app.store import WatchStore
from services.player.cache import ClientCache
from services.player.state import WatchState

from helpers import USER


@pytest.fixture()
def session():
    engine = make_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    with Session(engine) as s:
        yield s
    engine.dispose()


@pytest.fixture()
def store(session):
    return WatchStore(session)


@pytest.fixture()
def cache():
    return ClientCache(prefix="test")


@pytest.fixture()
def state(store, cache):
    return WatchState(store, cache, default_user=USER)
