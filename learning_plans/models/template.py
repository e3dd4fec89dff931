"""Learning plan templates and the competencies they are made of."""

from __future__ import annotations

from typing import List

from ..config import get_settings
from ..persistent import Persistent
from ..validation import FORMAT_HTML, TEXT_FORMATS, ErrorMessage, ParamType
from .competency import Competency

INVALID_TEMPLATE_MESSAGE = ErrorMessage("invalidtemplate", "tool_lp")


class Template(Persistent):

    TABLE = "lp_template"

    @classmethod
    def define_properties(cls):
        return {
            "shortname": {"type": ParamType.TEXT},
            "idnumber": {"type": ParamType.TEXT, "default": ""},
            "description": {"type": ParamType.TEXT, "default": ""},
            "descriptionformat": {"type": ParamType.INT, "default": FORMAT_HTML, "choices": TEXT_FORMATS},
            "duedate": {"type": ParamType.INT, "default": 0},
            "visible": {"type": ParamType.BOOL, "default": True},
            "contextid": {"type": ParamType.INT, "default": get_settings().default_context_id},
        }

    def get_competency_links(self) -> List["TemplateCompetency"]:
        return TemplateCompetency.get_records(
            self.store, {"templateid": self.get("id")}, sort="sortorder", user_id=self.user_id
        )


class TemplateCompetency(Persistent):
    """Link between a template and one of its competencies."""

    TABLE = "lp_template_competency"

    @classmethod
    def define_properties(cls):
        return {
            "templateid": {"type": ParamType.INT},
            "competencyid": {"type": ParamType.INT},
            "sortorder": {"type": ParamType.INT, "default": 0},
        }

    def before_validate(self) -> None:
        if not self.get("id"):
            self.set("sortorder", self.count_records(self.store, {"templateid": self.get("templateid")}))

    def validate_templateid(self, value):
        if not Template.record_exists(self.store, value):
            return INVALID_TEMPLATE_MESSAGE
        return True

    def validate_competencyid(self, value):
        if not Competency.record_exists(self.store, value):
            return ErrorMessage("errornocompetency", "tool_lp", value)
        return True


__all__ = ["INVALID_TEMPLATE_MESSAGE", "Template", "TemplateCompetency"]
