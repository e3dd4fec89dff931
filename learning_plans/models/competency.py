"""Competencies, organised as a tree inside a framework.

``path`` lists the ids of every ancestor, root first, wrapped in slashes:
a top level competency has the path ``/0/`` and a child of competency 4
has ``/0/4/``. Siblings are ordered by ``sortorder``.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..persistent import Persistent
from ..validation import FORMAT_HTML, INVALID_DATA_MESSAGE, NULL_ALLOWED, TEXT_FORMATS, ErrorMessage, ParamType
from .competency_framework import CompetencyFramework
from .scale import Scale

logger = logging.getLogger(__name__)

ROOT_PATH = "/0/"


class Competency(Persistent):

    TABLE = "lp_competency"

    @classmethod
    def define_properties(cls):
        return {
            "shortname": {"type": ParamType.TEXT},
            "idnumber": {"type": ParamType.TEXT},
            "description": {"type": ParamType.TEXT, "default": ""},
            "descriptionformat": {"type": ParamType.INT, "default": FORMAT_HTML, "choices": TEXT_FORMATS},
            "competencyframeworkid": {"type": ParamType.INT},
            "parentid": {"type": ParamType.INT, "default": 0},
            "path": {"type": ParamType.RAW, "default": ROOT_PATH},
            "sortorder": {"type": ParamType.INT, "default": 0},
            "scaleid": {"type": ParamType.INT, "default": None, "null": NULL_ALLOWED},
        }

    def before_validate(self) -> None:
        parentid = self.get("parentid") or 0
        if parentid:
            parent = self.get_records(self.store, {"id": parentid}, limit=1)
            if parent:
                self.set("path", f"{parent[0].get('path')}{parentid}/")
        else:
            self.set("path", ROOT_PATH)

        # New and re-parented competencies go last among their siblings.
        stored = self.get_stored_record()
        if stored is None or not self._same_siblings(stored):
            siblings = self.count_records(
                self.store,
                {"competencyframeworkid": self.get("competencyframeworkid"), "parentid": parentid},
            )
            self.set("sortorder", siblings)

    def _same_siblings(self, stored) -> bool:
        return int(stored["parentid"] or 0) == int(self.get("parentid") or 0) and int(
            stored["competencyframeworkid"]
        ) == int(self.get("competencyframeworkid") or 0)

    def before_update(self) -> None:
        self._previous = self.get_stored_record()

    def after_update(self, result: bool) -> None:
        previous = getattr(self, "_previous", None)
        self._previous = None
        if not result or previous is None:
            return
        if not self._same_siblings(previous):
            self._renumber_siblings(previous["competencyframeworkid"], previous["parentid"])
        if previous["path"] != self.get("path"):
            # Each child rebuilds its path from this one, then cascades to its own children.
            children = self.get_children()
            for child in children:
                child.update()
            logger.debug("Moved competency %s with %d children", self.get("id"), len(children))

    def _renumber_siblings(self, frameworkid: int, parentid: int) -> None:
        """Close the gap left in the sort order of the former siblings."""
        siblings = self.get_records(
            self.store,
            {"competencyframeworkid": frameworkid, "parentid": parentid},
            sort="sortorder",
            user_id=self.user_id,
        )
        for sortorder, sibling in enumerate(siblings):
            if sibling.get("sortorder") != sortorder:
                sibling.set("sortorder", sortorder)
                sibling.update()

    # Related records

    def get_framework(self) -> CompetencyFramework:
        return CompetencyFramework(self.store, self.get("competencyframeworkid"), user_id=self.user_id)

    def get_scale(self) -> Scale:
        """Return the competency's own scale, or the scale of its framework."""
        scaleid = self.get("scaleid")
        if scaleid is None:
            return self.get_framework().get_scale()
        return Scale(self.store, scaleid, user_id=self.user_id)

    def get_parent(self) -> Optional["Competency"]:
        parentid = self.get("parentid")
        if not parentid:
            return None
        return Competency(self.store, parentid, user_id=self.user_id)

    def get_children(self) -> List["Competency"]:
        return self.get_records(
            self.store, {"parentid": self.get("id")}, sort="sortorder", user_id=self.user_id
        )

    def get_ancestor_ids(self) -> List[int]:
        return [int(part) for part in (self.get("path") or ROOT_PATH).strip("/").split("/") if part and part != "0"]

    @classmethod
    def count_competencies_in_framework(cls, store, frameworkid: int) -> int:
        return cls.count_records(store, {"competencyframeworkid": frameworkid})

    # Validators

    def validate_competencyframeworkid(self, value):
        if not CompetencyFramework.record_exists(self.store, value):
            return ErrorMessage("invalidframework", "tool_lp")
        return True

    def validate_parentid(self, value):
        if not value:
            return True
        if int(value) == self.get("id"):
            return ErrorMessage("invalidparent", "tool_lp")

        parents = self.get_records(self.store, {"id": value}, limit=1)
        if not parents:
            return ErrorMessage("invalidparent", "tool_lp")
        parent = parents[0]
        if parent.get("competencyframeworkid") != int(self.get("competencyframeworkid") or 0):
            return ErrorMessage("invalidparent", "tool_lp")
        if self.get("id") and self.get("id") in parent.get_ancestor_ids():
            return ErrorMessage("invalidparent", "tool_lp")
        return True

    def validate_path(self, value):
        if not str(value).startswith(ROOT_PATH) or not str(value).endswith("/"):
            return INVALID_DATA_MESSAGE
        return True

    def validate_scaleid(self, value):
        if value is not None and not Scale.record_exists(self.store, value):
            return ErrorMessage("invalidscaleid", "tool_lp")
        return True


__all__ = ["Competency", "ROOT_PATH"]
