"""A user's rating in a competency within a course."""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from ..persistent import Persistent
from ..validation import NULL_ALLOWED, ErrorMessage, ParamType
from .rating import RatingMixin

COURSE_TABLE = "course"


class UserCompetencyCourse(RatingMixin, Persistent):

    TABLE = "lp_user_comp_course"

    @classmethod
    def define_properties(cls):
        return {
            "userid": {"type": ParamType.INT},
            "courseid": {"type": ParamType.INT},
            "competencyid": {"type": ParamType.INT},
            "proficiency": {"type": ParamType.BOOL, "default": None, "null": NULL_ALLOWED},
            "grade": {"type": ParamType.INT, "default": None, "null": NULL_ALLOWED},
        }

    def validate_courseid(self, value):
        if not self.store.exists_by_id(COURSE_TABLE, value):
            return ErrorMessage("errorinvalidcourse", "tool_lp", value)
        return True

    @classmethod
    def create_relation(
        cls, store, userid: int, competencyid: int, courseid: int, *, user_id: int = 0
    ) -> "UserCompetencyCourse":
        """Build an unsaved relation between a user, a competency and a course."""
        record = {"userid": userid, "competencyid": competencyid, "courseid": courseid}
        return cls(store, 0, record, user_id=user_id)

    @classmethod
    def get_multiple(
        cls,
        store,
        userid: int,
        courseid: int,
        competencies_or_ids: Optional[Iterable[Any]] = None,
        *,
        user_id: int = 0,
    ) -> List["UserCompetencyCourse"]:
        """Return the user's course ratings, optionally for the given competencies only.

        ``competencies_or_ids`` mixes competency instances and ids.
        """
        params: dict = {"userid": userid, "courseid": courseid}
        select = "userid = :userid AND courseid = :courseid"
        if competencies_or_ids:
            ids = [item.get("id") if isinstance(item, Persistent) else int(item) for item in competencies_or_ids]
            select += " AND competencyid IN :competencyids"
            params["competencyids"] = ids
        return cls.get_records_select(store, select, params, user_id=user_id)


__all__ = ["COURSE_TABLE", "UserCompetencyCourse"]
