from __future__ import annotations

from learning_plans import api
from learning_plans.models import Plan, UserCompetency
from learning_plans.output import PlanPage
from learning_plans.store import SQLAlchemyRecordStore


def test_plan_page_derives_display_values(store: SQLAlchemyRecordStore, make_user, make_competency) -> None:
    userid = make_user()
    plan = Plan(store, 0, {"name": "Growth", "userid": userid}).create()
    graded, reviewed, untouched = make_competency(), make_competency(), make_competency()
    for competency in (graded, reviewed, untouched):
        api.add_competency_to_plan(store, plan.get("id"), competency.get("id"))

    rating = UserCompetency.create_relation(store, userid, graded.get("id"))
    rating.set("grade", 5)
    rating.set("proficiency", True)
    rating.create()
    review = UserCompetency.create_relation(store, userid, reviewed.get("id"))
    review.set("status", UserCompetency.STATUS_IN_REVIEW)
    review.set("grade", 2)
    review.set("proficiency", False)
    review.create()

    data = PlanPage(store, plan).export_for_template()

    assert data["plan"]["id"] == plan.get("id")
    rows = {row["id"]: row["usercompetency"] for row in data["competencies"]}
    assert [row["id"] for row in data["competencies"]] == [graded.get("id"), reviewed.get("id"), untouched.get("id")]

    assert rows[graded.get("id")]["gradename"] == "Excellent"
    assert rows[graded.get("id")]["proficiencyname"] == "yes"
    assert rows[graded.get("id")]["statusname"] == "-"

    assert rows[reviewed.get("id")]["gradename"] == "Not good"
    assert rows[reviewed.get("id")]["proficiencyname"] == "no"
    assert rows[reviewed.get("id")]["statusname"] == "inreview"

    assert rows[untouched.get("id")]["id"] == 0
    assert rows[untouched.get("id")]["gradename"] == "-"
    assert rows[untouched.get("id")]["proficiencyname"] == "-"
