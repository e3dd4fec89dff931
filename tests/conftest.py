from __future__ import annotations

import itertools
from typing import Any, Callable, Dict, Iterator

import pytest
from sqlalchemy import create_engine, insert
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from learning_plans.db.base import Base
from learning_plans.db.models import CourseModel, UserModel
from learning_plans.events import clear_listeners
from learning_plans.models import Competency, CompetencyFramework, Scale
from learning_plans.store import SQLAlchemyRecordStore

SCALE_ITEMS = "Poor, Not good, Okay, Fine, Excellent"


@pytest.fixture()
def session() -> Iterator[Session]:
    engine = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
    with factory() as db_session:
        yield db_session
    engine.dispose()


@pytest.fixture()
def store(session: Session) -> SQLAlchemyRecordStore:
    return SQLAlchemyRecordStore(session)


@pytest.fixture(autouse=True)
def _reset_listeners() -> Iterator[None]:
    yield
    clear_listeners()


@pytest.fixture()
def make_user(session: Session) -> Callable[..., int]:
    counter = itertools.count(1)

    def _make_user(username: str | None = None) -> int:
        name = username or f"learner{next(counter)}"
        result = session.execute(insert(UserModel).values(username=name, firstname=name.title(), lastname="Test"))
        return int(result.inserted_primary_key[0])

    return _make_user


@pytest.fixture()
def make_course(session: Session) -> Callable[..., int]:
    def _make_course(shortname: str = "C101") -> int:
        result = session.execute(insert(CourseModel).values(shortname=shortname, fullname=f"Course {shortname}"))
        return int(result.inserted_primary_key[0])

    return _make_course


@pytest.fixture()
def scale(store: SQLAlchemyRecordStore) -> Scale:
    return Scale(store, 0, {"name": "Proficiency", "scale": SCALE_ITEMS}).create()


@pytest.fixture()
def framework(store: SQLAlchemyRecordStore, scale: Scale) -> CompetencyFramework:
    record = {"shortname": "Digital literacy", "idnumber": "DL", "scaleid": scale.get("id")}
    return CompetencyFramework(store, 0, record, user_id=2).create()


@pytest.fixture()
def make_competency(store: SQLAlchemyRecordStore, framework: CompetencyFramework) -> Callable[..., Competency]:
    counter = itertools.count(1)

    def _make_competency(**overrides: Any) -> Competency:
        index = next(counter)
        record: Dict[str, Any] = {
            "shortname": f"Competency {index}",
            "idnumber": f"C{index}",
            "competencyframeworkid": framework.get("id"),
        }
        record.update(overrides)
        return Competency(store, 0, record, user_id=2).create()

    return _make_competency
