"""In-process audit events raised by learning plans actions."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Callable, ClassVar, Dict, List, Optional

from .errors import ProgrammingError
from .models.user_competency import UserCompetency
from .store import Record

logger = logging.getLogger(__name__)


@dataclass
class AuditEvent:
    """Something a user did, described by who, what object and in which context."""

    NAME: ClassVar[str] = "audit_event"
    CRUD: ClassVar[str] = "r"
    OBJECT_TABLE: ClassVar[Optional[str]] = None

    userid: int
    contextid: int
    objectid: Optional[int] = None
    relateduserid: Optional[int] = None
    other: Dict[str, Any] = field(default_factory=dict)
    timecreated: int = field(default_factory=lambda: int(time.time()))
    snapshots: Dict[str, Record] = field(default_factory=dict, repr=False)

    @property
    def name(self) -> str:
        return self.NAME

    def add_record_snapshot(self, table: str, record: Record) -> None:
        self.snapshots[table] = dict(record)

    def get_record_snapshot(self, table: str) -> Record:
        try:
            return dict(self.snapshots[table])
        except KeyError:
            raise ProgrammingError(f"No record snapshot for table '{table}'.") from None

    def validate_data(self) -> None:
        """Raise ``ProgrammingError`` when the event lacks data it needs."""

    def get_description(self) -> str:
        return f"The user with id '{self.userid}' triggered '{self.NAME}'."

    def payload(self) -> Dict[str, Any]:
        return {
            "userid": self.userid,
            "contextid": self.contextid,
            "objectid": self.objectid,
            "objecttable": self.OBJECT_TABLE,
            "relateduserid": self.relateduserid,
            "crud": self.CRUD,
            "other": dict(self.other),
            "timecreated": self.timecreated,
        }

    def trigger(self) -> None:
        self.validate_data()
        emit(self)


@dataclass
class UserCompetencyGradeSuggested(AuditEvent):
    """A user suggested a grade for another user's competency."""

    NAME: ClassVar[str] = "user_competency_grade_suggested"
    CRUD: ClassVar[str] = "u"
    OBJECT_TABLE: ClassVar[Optional[str]] = UserCompetency.TABLE

    @classmethod
    def create_from_user_competency(
        cls, usercompetency: UserCompetency, grade: int
    ) -> "UserCompetencyGradeSuggested":
        if not usercompetency.get("id"):
            raise ProgrammingError("The user competency ID must be set.")

        relateduserid = usercompetency.get("userid")
        event = cls(
            userid=usercompetency.user_id,
            # A user's context id is the user id.
            contextid=relateduserid,
            objectid=usercompetency.get("id"),
            relateduserid=relateduserid,
            other={"grade": grade},
        )
        event.add_record_snapshot(UserCompetency.TABLE, usercompetency.to_record())
        return event

    def validate_data(self) -> None:
        if not self.relateduserid:
            raise ProgrammingError("The 'relateduserid' value must be set.")
        if self.other.get("grade") is None:
            raise ProgrammingError("The 'grade' value must be set.")

    def get_description(self) -> str:
        return (
            f"The user with id '{self.userid}' suggested '{self.other['grade']}' grade for "
            f"the user competency with id '{self.objectid}'"
        )


_listeners: List[Callable[[AuditEvent], None]] = []
_lock = RLock()


def register_listener(listener: Callable[[AuditEvent], None]) -> None:
    """Register an in-process listener (used in tests)."""
    with _lock:
        _listeners.append(listener)


def clear_listeners() -> None:
    """Remove all registered listeners. Mainly used to reset test state."""
    with _lock:
        _listeners.clear()


def emit(event: AuditEvent) -> None:
    """Fan the event out to listeners; a failing listener never breaks the caller."""
    with _lock:
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Event listener failed for %s", event.name)

    structured = {"event": event.name, **event.payload()}
    logger.info("EVENT %s", json.dumps(structured, default=str))


__all__ = [
    "AuditEvent",
    "UserCompetencyGradeSuggested",
    "clear_listeners",
    "emit",
    "register_listener",
]
