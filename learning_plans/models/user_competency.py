"""A user's overall rating in a competency."""

from __future__ import annotations

from ..errors import ProgrammingError
from ..persistent import Persistent
from ..validation import NULL_ALLOWED, ParamType
from .rating import RatingMixin


class UserCompetency(RatingMixin, Persistent):

    TABLE = "lp_user_competency"

    STATUS_IDLE = 0
    STATUS_WAITING_FOR_REVIEW = 1
    STATUS_IN_REVIEW = 2

    STATUS_NAMES = {
        STATUS_IDLE: "idle",
        STATUS_WAITING_FOR_REVIEW: "waitingforreview",
        STATUS_IN_REVIEW: "inreview",
    }

    @classmethod
    def define_properties(cls):
        return {
            "userid": {"type": ParamType.INT},
            "competencyid": {"type": ParamType.INT},
            "status": {
                "type": ParamType.INT,
                "default": cls.STATUS_IDLE,
                "choices": [cls.STATUS_IDLE, cls.STATUS_WAITING_FOR_REVIEW, cls.STATUS_IN_REVIEW],
            },
            "reviewerid": {"type": ParamType.INT, "default": None, "null": NULL_ALLOWED},
            "proficiency": {"type": ParamType.BOOL, "default": None, "null": NULL_ALLOWED},
            "grade": {"type": ParamType.INT, "default": None, "null": NULL_ALLOWED},
        }

    @classmethod
    def get_status_name(cls, status: int) -> str:
        try:
            return cls.STATUS_NAMES[status]
        except KeyError:
            raise ProgrammingError(f"Unknown user competency status: {status!r}") from None

    @classmethod
    def create_relation(cls, store, userid: int, competencyid: int, *, user_id: int = 0) -> "UserCompetency":
        """Build an unsaved relation between a user and a competency."""
        return cls(store, 0, {"userid": userid, "competencyid": competencyid}, user_id=user_id)

    @classmethod
    def get_relation(cls, store, userid: int, competencyid: int, *, user_id: int = 0) -> "UserCompetency":
        """Return the stored relation, or a new unsaved one."""
        existing = cls.get_records(store, {"userid": userid, "competencyid": competencyid}, limit=1, user_id=user_id)
        if existing:
            return existing[0]
        return cls.create_relation(store, userid, competencyid, user_id=user_id)


__all__ = ["UserCompetency"]
