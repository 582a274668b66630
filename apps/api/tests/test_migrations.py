import importlib.util
from pathlib import Path

from alembic.operations import Operations
from alembic.runtime.migration import MigrationContext
from sqlalchemy import inspect
from sqlmodel import Session

from app.db import make_engine
from app.schemas import ListItemCreate, ProgressUpsert
from app.store import WatchStore


MIGRATION = Path(__file__).resolve().parents[3] / "infra" / "migrations" / "versions" / "0001_init.py"


def _load():
    spec = importlib.util.spec_from_file_location("migration_0001_init", MIGRATION)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


def test_upgrade_creates_a_schema_the_store_can_use():
    migration = _load()
    engine = make_engine("sqlite://")
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            migration.upgrade()
    assert {"users", "watch_progress", "my_list"} <= set(inspect(engine).get_table_names())

    with Session(engine) as s:
        store = WatchStore(s)
        item = ListItemCreate(tmdb_id=550, media_type="movie", title="Fight Club")
        store.add_to_watchlist(7, item)
        store.add_to_watchlist(7, item)
        assert len(store.list_watchlist(7)) == 1
        for t in (10, 20):
            store.upsert_progress(7, ProgressUpsert(tmdb_id=550, media_type="movie", title="Fight Club", current_time=t, duration=100))
        assert [p.current_time for p in store.list_progress(7)] == [20]


def test_downgrade_drops_everything():
    migration = _load()
    engine = make_engine("sqlite://")
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            migration.upgrade()
            migration.downgrade()
    assert inspect(engine).get_table_names() == []
