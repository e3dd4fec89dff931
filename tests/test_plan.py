from __future__ import annotations

import time

import pytest

from learning_plans import api
from learning_plans.errors import ProgrammingError
from learning_plans.models import Plan, PlanCompetency, Template
from learning_plans.store import SQLAlchemyRecordStore
from learning_plans.validation import INVALID_DATA_MESSAGE, ErrorMessage


def test_plan_defaults_and_status_names(store: SQLAlchemyRecordStore, make_user) -> None:
    plan = Plan(store, 0, {"name": "My plan", "userid": make_user()}).create()

    assert plan.get("status") == Plan.STATUS_DRAFT
    assert plan.get("templateid") is None
    assert plan.get_statusname() == "draft"
    assert Plan.get_status_name(Plan.STATUS_COMPLETE) == "complete"
    with pytest.raises(ProgrammingError):
        Plan.get_status_name(42)


def test_plan_references_must_exist(store: SQLAlchemyRecordStore) -> None:
    plan = Plan(store, 0, {"name": "Broken", "userid": 404, "templateid": 405, "status": 9})

    assert plan.get_errors() == {
        "userid": INVALID_DATA_MESSAGE,
        "templateid": ErrorMessage("invalidtemplate", "tool_lp"),
        "status": INVALID_DATA_MESSAGE,
    }


def test_due_date_cannot_be_in_the_past_unless_complete(store: SQLAlchemyRecordStore, make_user) -> None:
    past = int(time.time()) - 3600
    plan = Plan(store, 0, {"name": "Late", "userid": make_user(), "duedate": past})

    assert plan.get_errors() == {"duedate": ErrorMessage("errorcannotsetduedateinthepast", "tool_lp")}

    plan.set("status", Plan.STATUS_COMPLETE)
    assert plan.is_valid()

    plan.set("status", Plan.STATUS_ACTIVE)
    plan.set("duedate", int(time.time()) + 86400)
    assert plan.is_valid()


def test_plan_based_on_a_template(store: SQLAlchemyRecordStore, make_user) -> None:
    template = Template(store, 0, {"shortname": "Onboarding"}).create()
    plan = Plan(store, 0, {"name": "From template", "userid": make_user(), "templateid": template.get("id")})

    assert plan.is_valid()
    assert template.get("visible") is True


def test_plan_competency_links(store: SQLAlchemyRecordStore, make_user, make_competency) -> None:
    plan = Plan(store, 0, {"name": "Linked", "userid": make_user()}).create()
    competency = make_competency()

    link = PlanCompetency(store, 0, {"planid": plan.get("id"), "competencyid": competency.get("id")}).create()

    assert [item.get("id") for item in plan.get_competency_links()] == [link.get("id")]
    assert PlanCompetency(store, 0, {"planid": 1234, "competencyid": 4321}).get_errors() == {
        "planid": INVALID_DATA_MESSAGE,
        "competencyid": INVALID_DATA_MESSAGE,
    }


def test_a_lapsed_due_date_does_not_block_other_changes(store: SQLAlchemyRecordStore, make_user) -> None:
    template = Template(store, 0, {"shortname": "Quarterly"}).create()
    plan = Plan(
        store,
        0,
        {"name": "Q1", "userid": make_user(), "templateid": template.get("id"), "duedate": int(time.time()) + 3600},
    ).create()
    lapsed = int(time.time()) - 10
    store.update_by_id(Plan.TABLE, {"id": plan.get("id"), "duedate": lapsed})

    renamed = Plan(store, plan.get("id"))
    renamed.set("name", "Q1 (late)")
    assert renamed.update() is True

    assert api.delete_template(store, template.get("id")) is True
    assert Plan(store, plan.get("id")).get("templateid") is None

    moved_back = Plan(store, plan.get("id"))
    moved_back.set("duedate", lapsed - 60)
    assert moved_back.get_errors() == {"duedate": ErrorMessage("errorcannotsetduedateinthepast", "tool_lp")}
