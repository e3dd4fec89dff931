"""Learning plans and the competencies linked to them."""

from __future__ import annotations

import time
from typing import List

from ..errors import ProgrammingError
from ..persistent import Persistent
from ..validation import FORMAT_HTML, INVALID_DATA_MESSAGE, NULL_ALLOWED, TEXT_FORMATS, ErrorMessage, ParamType
from .competency import Competency
from .template import INVALID_TEMPLATE_MESSAGE, Template

USER_TABLE = "user"


class Plan(Persistent):
    """A user's learning plan, optionally based on a template."""

    TABLE = "lp_plan"

    STATUS_DRAFT = 0
    STATUS_ACTIVE = 1
    STATUS_COMPLETE = 2

    STATUS_NAMES = {
        STATUS_DRAFT: "draft",
        STATUS_ACTIVE: "active",
        STATUS_COMPLETE: "complete",
    }

    @classmethod
    def define_properties(cls):
        return {
            "name": {"type": ParamType.TEXT},
            "description": {"type": ParamType.TEXT, "default": ""},
            "descriptionformat": {"type": ParamType.INT, "default": FORMAT_HTML, "choices": TEXT_FORMATS},
            "userid": {"type": ParamType.INT},
            "templateid": {"type": ParamType.INT, "default": None, "null": NULL_ALLOWED},
            "status": {
                "type": ParamType.INT,
                "default": cls.STATUS_DRAFT,
                "choices": [cls.STATUS_DRAFT, cls.STATUS_ACTIVE, cls.STATUS_COMPLETE],
            },
            "duedate": {"type": ParamType.INT, "default": 0},
        }

    @classmethod
    def get_status_name(cls, status: int) -> str:
        try:
            return cls.STATUS_NAMES[status]
        except KeyError:
            raise ProgrammingError(f"Unknown plan status: {status!r}") from None

    def get_statusname(self) -> str:
        return self.get_status_name(self.get("status"))

    def get_competency_links(self) -> List["PlanCompetency"]:
        return PlanCompetency.get_records(self.store, {"planid": self.get("id")}, sort="sortorder", user_id=self.user_id)

    def validate_userid(self, value):
        if not self.store.exists_by_id(USER_TABLE, value):
            return INVALID_DATA_MESSAGE
        return True

    def validate_templateid(self, value):
        if value is not None and not Template.record_exists(self.store, value):
            return INVALID_TEMPLATE_MESSAGE
        return True

    def validate_duedate(self, value):
        """A past due date is only rejected when it is being set."""
        if not value or self.get("status") == self.STATUS_COMPLETE:
            return True
        stored = self.get_stored_record()
        if stored is not None and stored["duedate"] == int(value):
            return True
        if int(value) < int(time.time()):
            return ErrorMessage("errorcannotsetduedateinthepast", "tool_lp")
        return True


class PlanCompetency(Persistent):
    """Link between a plan and one of its competencies."""

    TABLE = "lp_plan_competency"

    @classmethod
    def define_properties(cls):
        return {
            "planid": {"type": ParamType.INT},
            "competencyid": {"type": ParamType.INT},
            "sortorder": {"type": ParamType.INT, "default": 0},
        }

    def validate_planid(self, value):
        if not Plan.record_exists(self.store, value):
            return INVALID_DATA_MESSAGE
        return True

    def validate_competencyid(self, value):
        if not Competency.record_exists(self.store, value):
            return INVALID_DATA_MESSAGE
        return True


__all__ = ["Plan", "PlanCompetency", "USER_TABLE"]
