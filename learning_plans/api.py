"""Service functions used by the webservice and the output classes.

Every function takes the record store first and the acting user as the
``user_id`` keyword. Access control is left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from .events import UserCompetencyGradeSuggested
from .models import (
    Competency,
    CompetencyFramework,
    Plan,
    PlanCompetency,
    Scale,
    Template,
    TemplateCompetency,
    UserCompetency,
    UserCompetencyCourse,
)
from .models.user_competency_course import COURSE_TABLE
from .persistent import Persistent
from .store import RecordStore
from .validation import InvalidParameterError

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=Persistent)


@dataclass
class PlanCompetencyEntry:
    competency: Competency
    usercompetency: UserCompetency


# Generic helpers


def _create(cls: Type[P], store: RecordStore, record: Mapping[str, Any], user_id: int) -> P:
    data = {key: value for key, value in record.items() if key != "id"}
    return cls(store, 0, data, user_id=user_id).create()


def _update(cls: Type[P], store: RecordStore, record: Mapping[str, Any], user_id: int) -> bool:
    record_id = int(record.get("id") or 0)
    if record_id <= 0:
        raise InvalidParameterError("An id is required to update a record.")
    instance = cls(store, record_id, user_id=user_id)
    instance.from_record({key: value for key, value in record.items() if key != "timecreated"})
    return instance.update()


def _reorder(items: List[P], id_from: int, id_to: int) -> None:
    """Move the item with id ``id_from`` to the position held by ``id_to`` and renumber."""
    moved = next(item for item in items if item.get("id") == id_from)
    position = next(index for index, item in enumerate(items) if item.get("id") == id_to)
    ordered = [item for item in items if item.get("id") != id_from]
    ordered.insert(position, moved)

    for sortorder, item in enumerate(ordered):
        if item.get("sortorder") != sortorder:
            item.set("sortorder", sortorder)
            item.update()


def _list(
    cls: Type[P],
    store: RecordStore,
    filters: Optional[Mapping[str, Any]],
    sort: str,
    order: str,
    skip: int,
    limit: int,
    user_id: int,
) -> List[P]:
    return cls.get_records(store, filters, sort, order, skip, limit, user_id=user_id)


# Competency frameworks


def create_framework(store: RecordStore, record: Mapping[str, Any], *, user_id: int = 0) -> CompetencyFramework:
    framework = _create(CompetencyFramework, store, record, user_id)
    logger.info("Created competency framework %s", framework.get("id"))
    return framework


def read_framework(store: RecordStore, framework_id: int, *, user_id: int = 0) -> CompetencyFramework:
    return CompetencyFramework(store, framework_id, user_id=user_id)


def update_framework(store: RecordStore, record: Mapping[str, Any], *, user_id: int = 0) -> bool:
    return _update(CompetencyFramework, store, record, user_id)


def delete_framework(store: RecordStore, framework_id: int, *, user_id: int = 0) -> bool:
    """Delete a framework together with all of its competencies."""
    framework = CompetencyFramework(store, framework_id, user_id=user_id)
    competencies = Competency.get_records(store, {"competencyframeworkid": framework_id}, user_id=user_id)
    for competency in competencies:
        _delete_competency_links(store, competency.get("id"))
        competency.delete()
    logger.info("Deleting competency framework %s and %d competencies", framework_id, len(competencies))
    return framework.delete()


def list_frameworks(
    store: RecordStore,
    filters: Optional[Mapping[str, Any]] = None,
    sort: str = "",
    order: str = "ASC",
    skip: int = 0,
    limit: int = 0,
    *,
    user_id: int = 0,
) -> List[CompetencyFramework]:
    return _list(CompetencyFramework, store, filters, sort, order, skip, limit, user_id)


def count_frameworks(store: RecordStore, filters: Optional[Mapping[str, Any]] = None) -> int:
    return CompetencyFramework.count_records(store, filters)


def reorder_competency_framework(
    store: RecordStore, competencyframeworkidfrom: int, competencyframeworkidto: int, *, user_id: int = 0
) -> bool:
    """Move a framework to the position of another one."""
    CompetencyFramework(store, competencyframeworkidfrom, user_id=user_id)
    CompetencyFramework(store, competencyframeworkidto, user_id=user_id)
    frameworks = CompetencyFramework.get_records(store, sort="sortorder", user_id=user_id)
    _reorder(frameworks, competencyframeworkidfrom, competencyframeworkidto)
    return True


# Competencies


def create_competency(store: RecordStore, record: Mapping[str, Any], *, user_id: int = 0) -> Competency:
    return _create(Competency, store, record, user_id)


def read_competency(store: RecordStore, competency_id: int, *, user_id: int = 0) -> Competency:
    return Competency(store, competency_id, user_id=user_id)


def update_competency(store: RecordStore, record: Mapping[str, Any], *, user_id: int = 0) -> bool:
    return _update(Competency, store, record, user_id)


def delete_competency(store: RecordStore, competency_id: int, *, user_id: int = 0) -> bool:
    """Delete a competency and its descendants."""
    competency = Competency(store, competency_id, user_id=user_id)
    for child in competency.get_children():
        delete_competency(store, child.get("id"), user_id=user_id)
    _delete_competency_links(store, competency_id)
    return competency.delete()


def list_competencies(
    store: RecordStore,
    filters: Optional[Mapping[str, Any]] = None,
    sort: str = "",
    order: str = "ASC",
    skip: int = 0,
    limit: int = 0,
    *,
    user_id: int = 0,
) -> List[Competency]:
    return _list(Competency, store, filters, sort, order, skip, limit, user_id)


def count_competencies(store: RecordStore, filters: Optional[Mapping[str, Any]] = None) -> int:
    return Competency.count_records(store, filters)


def search_competencies(
    store: RecordStore, textsearch: str, competencyframeworkid: int, *, user_id: int = 0
) -> List[Competency]:
    """Match the text against the short name and the id number, case insensitive."""
    like = f"%{textsearch.strip().lower()}%"
    select = (
        "competencyframeworkid = :frameworkid "
        "AND (LOWER(shortname) LIKE :search OR LOWER(idnumber) LIKE :search)"
    )
    params = {"frameworkid": competencyframeworkid, "search": like}
    return Competency.get_records_select(store, select, params, sort="sortorder", user_id=user_id)


def reorder_competency(store: RecordStore, competencyidfrom: int, competencyidto: int, *, user_id: int = 0) -> bool:
    """Move a competency to the position of one of its siblings."""
    moved = Competency(store, competencyidfrom, user_id=user_id)
    target = Competency(store, competencyidto, user_id=user_id)

    same_framework = moved.get("competencyframeworkid") == target.get("competencyframeworkid")
    if not same_framework or moved.get("parentid") != target.get("parentid"):
        raise InvalidParameterError("Only sibling competencies can be reordered.")

    siblings = Competency.get_records(
        store,
        {"competencyframeworkid": moved.get("competencyframeworkid"), "parentid": moved.get("parentid")},
        sort="sortorder",
        user_id=user_id,
    )
    _reorder(siblings, competencyidfrom, competencyidto)
    return True


# Templates


def create_template(store: RecordStore, record: Mapping[str, Any], *, user_id: int = 0) -> Template:
    return _create(Template, store, record, user_id)


def read_template(store: RecordStore, template_id: int, *, user_id: int = 0) -> Template:
    return Template(store, template_id, user_id=user_id)


def update_template(store: RecordStore, record: Mapping[str, Any], *, user_id: int = 0) -> bool:
    return _update(Template, store, record, user_id)


def delete_template(store: RecordStore, template_id: int, *, user_id: int = 0) -> bool:
    template = Template(store, template_id, user_id=user_id)
    for plan in Plan.get_records(store, {"templateid": template_id}, user_id=user_id):
        plan.set("templateid", None)
        plan.update()
    for link in template.get_competency_links():
        link.delete()
    return template.delete()


def list_templates(
    store: RecordStore,
    filters: Optional[Mapping[str, Any]] = None,
    sort: str = "",
    order: str = "ASC",
    skip: int = 0,
    limit: int = 0,
    *,
    user_id: int = 0,
) -> List[Template]:
    return _list(Template, store, filters, sort, order, skip, limit, user_id)


def count_templates(store: RecordStore, filters: Optional[Mapping[str, Any]] = None) -> int:
    return Template.count_records(store, filters)


def add_competency_to_template(
    store: RecordStore, templateid: int, competencyid: int, *, user_id: int = 0
) -> TemplateCompetency:
    """Link a competency to a template; an existing link is returned unchanged."""
    Template(store, templateid, user_id=user_id)
    Competency(store, competencyid, user_id=user_id)

    existing = TemplateCompetency.get_records(
        store, {"templateid": templateid, "competencyid": competencyid}, user_id=user_id
    )
    if existing:
        return existing[0]
    record = {"templateid": templateid, "competencyid": competencyid}
    return TemplateCompetency(store, 0, record, user_id=user_id).create()


def remove_competency_from_template(
    store: RecordStore, templateid: int, competencyid: int, *, user_id: int = 0
) -> bool:
    links = TemplateCompetency.get_records(
        store, {"templateid": templateid, "competencyid": competencyid}, user_id=user_id
    )
    if not links:
        return False
    return links[0].delete()


def count_competencies_in_template(store: RecordStore, templateid: int) -> int:
    return TemplateCompetency.count_records(store, {"templateid": templateid})


def list_competencies_in_template(store: RecordStore, templateid: int, *, user_id: int = 0) -> List[Competency]:
    template = Template(store, templateid, user_id=user_id)
    return [
        Competency(store, link.get("competencyid"), user_id=user_id) for link in template.get_competency_links()
    ]


def reorder_template_competency(
    store: RecordStore, templateid: int, competencyidfrom: int, competencyidto: int, *, user_id: int = 0
) -> bool:
    """Move a competency of the template to the position of another one."""
    links = Template(store, templateid, user_id=user_id).get_competency_links()
    by_competency = {link.get("competencyid"): link for link in links}
    if competencyidfrom not in by_competency or competencyidto not in by_competency:
        raise InvalidParameterError("Both competencies must belong to the template.")
    _reorder(links, by_competency[competencyidfrom].get("id"), by_competency[competencyidto].get("id"))
    return True


# Plans


def create_plan(store: RecordStore, record: Mapping[str, Any], *, user_id: int = 0) -> Plan:
    return _create(Plan, store, record, user_id)


def read_plan(store: RecordStore, plan_id: int, *, user_id: int = 0) -> Plan:
    return Plan(store, plan_id, user_id=user_id)


def update_plan(store: RecordStore, record: Mapping[str, Any], *, user_id: int = 0) -> bool:
    return _update(Plan, store, record, user_id)


def delete_plan(store: RecordStore, plan_id: int, *, user_id: int = 0) -> bool:
    plan = Plan(store, plan_id, user_id=user_id)
    for link in plan.get_competency_links():
        link.delete()
    return plan.delete()


def list_plans(
    store: RecordStore,
    filters: Optional[Mapping[str, Any]] = None,
    sort: str = "",
    order: str = "ASC",
    skip: int = 0,
    limit: int = 0,
    *,
    user_id: int = 0,
) -> List[Plan]:
    return _list(Plan, store, filters, sort, order, skip, limit, user_id)


def count_plans(store: RecordStore, filters: Optional[Mapping[str, Any]] = None) -> int:
    return Plan.count_records(store, filters)


def add_competency_to_plan(store: RecordStore, planid: int, competencyid: int, *, user_id: int = 0) -> PlanCompetency:
    """Link a competency to a plan; an existing link is returned unchanged."""
    Plan(store, planid, user_id=user_id)
    Competency(store, competencyid, user_id=user_id)

    existing = PlanCompetency.get_records(store, {"planid": planid, "competencyid": competencyid}, user_id=user_id)
    if existing:
        return existing[0]

    link = PlanCompetency(
        store,
        0,
        {"planid": planid, "competencyid": competencyid, "sortorder": PlanCompetency.count_records(store, {"planid": planid})},
        user_id=user_id,
    )
    return link.create()


def remove_competency_from_plan(store: RecordStore, planid: int, competencyid: int, *, user_id: int = 0) -> bool:
    links = PlanCompetency.get_records(store, {"planid": planid, "competencyid": competencyid}, user_id=user_id)
    if not links:
        return False
    return links[0].delete()


def list_plan_competencies(store: RecordStore, plan: Plan) -> List[PlanCompetencyEntry]:
    """Pair each competency of the plan with the plan owner's rating in it."""
    entries: List[PlanCompetencyEntry] = []
    for link in plan.get_competency_links():
        competency = Competency(store, link.get("competencyid"), user_id=plan.user_id)
        usercompetency = UserCompetency.get_relation(
            store, plan.get("userid"), competency.get("id"), user_id=plan.user_id
        )
        entries.append(PlanCompetencyEntry(competency=competency, usercompetency=usercompetency))
    return entries


def _delete_competency_links(store: RecordStore, competencyid: int) -> None:
    for link in PlanCompetency.get_records(store, {"competencyid": competencyid}):
        link.delete()
    for link in TemplateCompetency.get_records(store, {"competencyid": competencyid}):
        link.delete()


# Scales and ratings


def get_scale_values(store: RecordStore, scaleid: int) -> List[Dict[str, Any]]:
    """Return the scale items with their 1-indexed grade value."""
    scale = Scale(store, scaleid)
    return [{"id": index, "name": name} for index, name in enumerate(scale.scale_items, start=1)]


def grade_competency_in_course(
    store: RecordStore,
    courseid: int,
    userid: int,
    competencyid: int,
    grade: Optional[int],
    proficiency: Optional[bool],
    *,
    user_id: int = 0,
) -> UserCompetencyCourse:
    """Rate a user in a competency within a course; a ``None`` grade clears the rating."""
    if not store.exists_by_id(COURSE_TABLE, courseid):
        raise InvalidParameterError(f"Unknown course {courseid}.")

    existing = UserCompetencyCourse.get_multiple(store, userid, courseid, [competencyid], user_id=user_id)
    if existing:
        rating = existing[0]
    else:
        rating = UserCompetencyCourse.create_relation(store, userid, competencyid, courseid, user_id=user_id)

    rating.set("grade", grade)
    rating.set("proficiency", None if grade is None else proficiency)
    if rating.get("id"):
        rating.update()
    else:
        rating.create()
    logger.info("User %s graded user %s in competency %s: %s", user_id, userid, competencyid, grade)
    return rating


def suggest_competency_grade(
    store: RecordStore, userid: int, competencyid: int, grade: int, *, user_id: int = 0
) -> UserCompetency:
    """Record that ``user_id`` suggested a grade for the user's competency.

    The stored rating is left untouched; the suggestion is reported through
    the grade suggested event.
    """
    usercompetency = UserCompetency.get_relation(store, userid, competencyid, user_id=user_id)
    scale = Competency(store, competencyid, user_id=user_id).get_scale()
    try:
        scale.get_item_name(grade)
    except ValueError as exc:
        raise InvalidParameterError(str(exc)) from exc

    if not usercompetency.get("id"):
        usercompetency.create()

    UserCompetencyGradeSuggested.create_from_user_competency(usercompetency, grade).trigger()
    return usercompetency


__all__ = [
    "PlanCompetencyEntry",
    "add_competency_to_plan",
    "add_competency_to_template",
    "count_competencies",
    "count_competencies_in_template",
    "count_frameworks",
    "count_plans",
    "count_templates",
    "create_competency",
    "create_framework",
    "create_plan",
    "create_template",
    "delete_competency",
    "delete_framework",
    "delete_plan",
    "delete_template",
    "get_scale_values",
    "grade_competency_in_course",
    "list_competencies",
    "list_competencies_in_template",
    "list_frameworks",
    "list_plan_competencies",
    "list_plans",
    "list_templates",
    "read_competency",
    "read_framework",
    "read_plan",
    "read_template",
    "remove_competency_from_plan",
    "remove_competency_from_template",
    "reorder_competency",
    "reorder_competency_framework",
    "reorder_template_competency",
    "search_competencies",
    "suggest_competency_grade",
    "update_competency",
    "update_framework",
    "update_plan",
    "update_template",
]
