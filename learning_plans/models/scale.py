"""Rating scales used to grade competencies."""

from __future__ import annotations

from typing import List

from ..persistent import Persistent
from ..validation import FORMAT_HTML, ErrorMessage, ParamType


class Scale(Persistent):
    """A comma separated list of rating items, worst first.

    Grades are 1-indexed into :attr:`scale_items`: with the scale
    ``"Poor, Not good, Okay, Fine, Excellent"`` a grade of 1 is "Poor" and
    a grade of 5 is "Excellent".
    """

    TABLE = "scale"

    @classmethod
    def define_properties(cls):
        return {
            "name": {"type": ParamType.TEXT},
            "scale": {"type": ParamType.TEXT},
            "description": {"type": ParamType.TEXT, "default": ""},
            "descriptionformat": {"type": ParamType.INT, "default": FORMAT_HTML},
            "courseid": {"type": ParamType.INT, "default": 0},
        }

    @property
    def scale_items(self) -> List[str]:
        value = self.get("scale") or ""
        return [item.strip() for item in value.split(",")]

    def get_item_name(self, grade: int) -> str:
        items = self.scale_items
        if grade < 1 or grade > len(items):
            raise ValueError(f"Grade {grade} is outside of the scale '{self.get('name')}'.")
        return items[grade - 1]

    def validate_scale(self, value):
        if not any(item.strip() for item in str(value).split(",")):
            return ErrorMessage("invalidscale", "tool_lp")
        return True


__all__ = ["Scale"]
