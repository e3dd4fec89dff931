"""Validation shared by the records rating a user against a competency."""

from __future__ import annotations

from ..validation import INVALID_DATA_MESSAGE, ErrorMessage
from .competency import Competency
from .plan import USER_TABLE

INVALID_GRADE_MESSAGE = ErrorMessage("invalidgrade", "tool_lp")
INVALID_USER_MESSAGE = ErrorMessage("invaliduserid", "error")


class RatingMixin:
    """Checks for ``userid``, ``competencyid``, ``proficiency`` and ``grade``.

    A rating is either empty or complete: ``proficiency`` is set if and only if
    ``grade`` is, and the grade is a 1-indexed item of the competency's scale.
    """

    def get_competency(self) -> Competency:
        return Competency(self.store, self.get("competencyid"), user_id=self.user_id)

    def validate_userid(self, value):
        if not self.store.exists_by_id(USER_TABLE, value):
            return INVALID_USER_MESSAGE
        return True

    def validate_competencyid(self, value):
        if not Competency.record_exists(self.store, value):
            return ErrorMessage("errornocompetency", "tool_lp", value)
        return True

    def validate_proficiency(self, value):
        grade = self.get("grade")
        if (grade is None) != (value is None):
            return INVALID_DATA_MESSAGE
        return True

    def validate_grade(self, value):
        if value is None:
            return True
        grade = int(value)
        if grade <= 0:
            return INVALID_GRADE_MESSAGE
        # An unknown competency is reported on competencyid.
        if not Competency.record_exists(self.store, self.get("competencyid")):
            return True
        if grade > len(self.get_competency().get_scale().scale_items):
            return INVALID_GRADE_MESSAGE
        return True


__all__ = ["INVALID_GRADE_MESSAGE", "INVALID_USER_MESSAGE", "RatingMixin"]
