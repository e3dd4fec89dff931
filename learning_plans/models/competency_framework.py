"""Competency frameworks: named, scaled collections of competencies."""

from __future__ import annotations

from ..config import get_settings
from ..persistent import Persistent
from ..validation import FORMAT_HTML, TEXT_FORMATS, ErrorMessage, ParamType
from .scale import Scale


class CompetencyFramework(Persistent):

    TABLE = "lp_competency_framework"

    @classmethod
    def define_properties(cls):
        return {
            "shortname": {"type": ParamType.TEXT},
            "idnumber": {"type": ParamType.TEXT},
            "description": {"type": ParamType.TEXT, "default": ""},
            "descriptionformat": {"type": ParamType.INT, "default": FORMAT_HTML, "choices": TEXT_FORMATS},
            "visible": {"type": ParamType.BOOL, "default": True},
            "scaleid": {"type": ParamType.INT},
            "contextid": {"type": ParamType.INT, "default": get_settings().default_context_id},
            "sortorder": {"type": ParamType.INT, "default": 0},
        }

    def before_validate(self) -> None:
        # New frameworks are listed last.
        if not self.get("id"):
            self.set("sortorder", self.count_records(self.store))

    def get_scale(self) -> Scale:
        return Scale(self.store, self.get("scaleid"), user_id=self.user_id)

    def validate_idnumber(self, value):
        taken = self.count_records_select(
            self.store,
            "idnumber = :idnumber AND id <> :id",
            {"idnumber": value, "id": self.get("id") or 0},
        )
        if taken:
            return ErrorMessage("idnumbertaken", "tool_lp")
        return True

    def validate_scaleid(self, value):
        if not Scale.record_exists(self.store, value):
            return ErrorMessage("invalidscaleid", "tool_lp")
        return True


__all__ = ["CompetencyFramework"]
