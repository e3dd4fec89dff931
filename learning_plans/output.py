"""Template data for the plan page."""

from __future__ import annotations

from typing import Any, Dict, List

from . import api
from .models import Plan, Scale, UserCompetency
from .store import RecordStore

EMPTY_VALUE = "-"


class PlanPage:
    """The competencies of a plan, with the owner's rating in each of them."""

    def __init__(self, store: RecordStore, plan: Plan) -> None:
        self.store = store
        self.plan = plan

    def export_for_template(self) -> Dict[str, Any]:
        scales: Dict[Any, Scale] = {}
        competencies: List[Dict[str, Any]] = []

        for entry in api.list_plan_competencies(self.store, self.plan):
            competency = entry.competency
            scalekey = (competency.get("scaleid"), competency.get("competencyframeworkid"))
            if scalekey not in scales:
                scales[scalekey] = competency.get_scale()
            scale = scales[scalekey]

            usercompetency = entry.usercompetency.to_record()
            grade = usercompetency["grade"]
            proficiency = usercompetency["proficiency"]
            status = usercompetency["status"]

            usercompetency["gradename"] = EMPTY_VALUE if grade is None else scale.get_item_name(grade)
            if proficiency is None:
                usercompetency["proficiencyname"] = EMPTY_VALUE
            else:
                usercompetency["proficiencyname"] = "yes" if proficiency else "no"
            if status == UserCompetency.STATUS_IDLE:
                usercompetency["statusname"] = EMPTY_VALUE
            else:
                usercompetency["statusname"] = UserCompetency.get_status_name(status)

            record = competency.to_record()
            record["usercompetency"] = usercompetency
            competencies.append(record)

        return {"plan": self.plan.to_record(), "competencies": competencies}


__all__ = ["PlanPage"]
