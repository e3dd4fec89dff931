from __future__ import annotations

from pathlib import Path

import pytest

from learning_plans.config import get_settings
from learning_plans.db.base import Base
from learning_plans.db.session import dispose_engine, get_engine, get_store_dependency, store_scope
from learning_plans.models import Scale
from learning_plans.store import SQLAlchemyRecordStore

SCALE = {"name": "Outcome", "scale": "Poor, Okay, Excellent"}


@pytest.fixture(autouse=True)
def _file_database(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("LP_DATABASE_URL", f"sqlite:///{tmp_path / 'session.db'}")
    get_settings.cache_clear()
    dispose_engine()
    Base.metadata.create_all(get_engine())
    yield
    dispose_engine()
    get_settings.cache_clear()


def test_store_scope_commits_on_success() -> None:
    with store_scope() as store:
        scaleid = Scale(store, 0, dict(SCALE)).create().get("id")

    with store_scope() as store:
        assert Scale(store, scaleid).get("name") == "Outcome"


def test_store_scope_rolls_back_when_the_block_fails() -> None:
    with pytest.raises(ValueError):
        with store_scope() as store:
            Scale(store, 0, dict(SCALE)).create()
            raise ValueError("abandon")

    with store_scope() as store:
        assert Scale.count_records(store) == 0


def test_store_scope_without_commit_discards_changes() -> None:
    with store_scope(commit=False) as store:
        Scale(store, 0, dict(SCALE)).create()

    with store_scope() as store:
        assert Scale.count_records(store) == 0


def test_store_dependency_yields_a_committing_store() -> None:
    dependency = get_store_dependency()
    store = next(dependency)
    assert isinstance(store, SQLAlchemyRecordStore)
    Scale(store, 0, dict(SCALE)).create()

    with pytest.raises(StopIteration):
        next(dependency)

    with store_scope() as other:
        assert Scale.count_records(other) == 1


def test_engine_requires_a_database_url(monkeypatch) -> None:
    monkeypatch.delenv("LP_DATABASE_URL")
    get_settings.cache_clear()
    dispose_engine()

    with pytest.raises(RuntimeError, match="LP_DATABASE_URL"):
        get_engine()
