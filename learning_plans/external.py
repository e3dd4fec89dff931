"""REST webservice for learning plans.

Records are returned exactly as ``to_record()`` produces them. The acting
user is read from the ``X-User-Id`` header; access control is expected to
happen in front of this router.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from pydantic import BaseModel, Field

from . import api
from .db.session import get_store_dependency
from .errors import InvalidPersistentError, RecordNotFoundError
from .exporters import CompetencyFrameworkExporter
from .output import PlanPage
from .store import SQLAlchemyRecordStore
from .validation import FORMAT_HTML, InvalidParameterError

router = APIRouter(prefix="/api/lp", tags=["learning-plans"])
logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 200


def get_acting_user(x_user_id: int = Header(default=0, alias="X-User-Id", ge=0)) -> int:
    return x_user_id


@contextmanager
def _translate_errors() -> Generator[None, None, None]:
    try:
        yield
    except InvalidPersistentError as exc:
        errors = {name: message.as_dict() for name, message in exc.errors.items()}
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"errors": errors}) from exc
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidParameterError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


class ListQuery(BaseModel):
    sort: str = ""
    order: str = "ASC"
    skip: int = 0
    limit: int = 0


def list_query(
    sort: str = Query(default="", max_length=100),
    order: str = Query(default="ASC", pattern="^(ASC|DESC|asc|desc)$"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=0, ge=0, le=MAX_PAGE_SIZE),
) -> ListQuery:
    return ListQuery(sort=sort, order=order.upper(), skip=skip, limit=limit)


class FrameworkCreateRequest(BaseModel):
    shortname: str = Field(..., min_length=1, max_length=100)
    idnumber: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    descriptionformat: int = FORMAT_HTML
    visible: bool = True
    scaleid: int
    contextid: Optional[int] = None


class FrameworkUpdateRequest(BaseModel):
    shortname: Optional[str] = Field(default=None, min_length=1, max_length=100)
    idnumber: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    descriptionformat: Optional[int] = None
    visible: Optional[bool] = None
    scaleid: Optional[int] = None


class CompetencyCreateRequest(BaseModel):
    shortname: str = Field(..., min_length=1, max_length=100)
    idnumber: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    descriptionformat: int = FORMAT_HTML
    competencyframeworkid: int
    parentid: int = 0
    scaleid: Optional[int] = None


class CompetencyUpdateRequest(BaseModel):
    shortname: Optional[str] = Field(default=None, min_length=1, max_length=100)
    idnumber: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    descriptionformat: Optional[int] = None
    parentid: Optional[int] = None
    scaleid: Optional[int] = None


class ReorderRequest(BaseModel):
    competencyidfrom: int
    competencyidto: int


class FrameworkReorderRequest(BaseModel):
    competencyframeworkidfrom: int
    competencyframeworkidto: int


class TemplateCreateRequest(BaseModel):
    shortname: str = Field(..., min_length=1, max_length=100)
    idnumber: str = Field(default="", max_length=100)
    description: str = ""
    descriptionformat: int = FORMAT_HTML
    duedate: int = 0
    visible: bool = True
    contextid: Optional[int] = None


class TemplateUpdateRequest(BaseModel):
    shortname: Optional[str] = Field(default=None, min_length=1, max_length=100)
    idnumber: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None
    descriptionformat: Optional[int] = None
    duedate: Optional[int] = None
    visible: Optional[bool] = None


class PlanCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    descriptionformat: int = FORMAT_HTML
    userid: int
    templateid: Optional[int] = None
    status: int = 0
    duedate: int = 0


class PlanUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    descriptionformat: Optional[int] = None
    templateid: Optional[int] = None
    status: Optional[int] = None
    duedate: Optional[int] = None


class CompetencyLinkRequest(BaseModel):
    competencyid: int


class CourseGradeRequest(BaseModel):
    userid: int
    competencyid: int
    grade: Optional[int] = None
    proficiency: Optional[bool] = None


class SuggestGradeRequest(BaseModel):
    userid: int
    competencyid: int
    grade: int = Field(..., ge=1)


def _payload(request: BaseModel) -> Dict[str, Any]:
    return request.model_dump(exclude_unset=True)


# Competency frameworks


@router.post("/frameworks", status_code=status.HTTP_201_CREATED)
def create_framework(
    request: FrameworkCreateRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, Any]:
    with _translate_errors():
        return api.create_framework(store, _payload(request), user_id=user_id).to_record()


@router.get("/frameworks")
def list_frameworks(
    query: ListQuery = Depends(list_query),
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> List[Dict[str, Any]]:
    with _translate_errors():
        frameworks = api.list_frameworks(
            store, None, query.sort, query.order, query.skip, query.limit, user_id=user_id
        )
    return [framework.to_record() for framework in frameworks]


@router.get("/frameworks/count")
def count_frameworks(store: SQLAlchemyRecordStore = Depends(get_store_dependency)) -> Dict[str, int]:
    return {"count": api.count_frameworks(store)}


@router.post("/frameworks/reorder")
def reorder_competency_framework(
    request: FrameworkReorderRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, bool]:
    with _translate_errors():
        result = api.reorder_competency_framework(
            store, request.competencyframeworkidfrom, request.competencyframeworkidto, user_id=user_id
        )
    return {"success": result}


@router.get("/frameworks/{framework_id}")
def read_framework(
    framework_id: int,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, Any]:
    with _translate_errors():
        return api.read_framework(store, framework_id, user_id=user_id).to_record()


@router.get("/frameworks/{framework_id}/summary")
def framework_summary(
    framework_id: int,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, Any]:
    with _translate_errors():
        framework = api.read_framework(store, framework_id, user_id=user_id)
        return CompetencyFrameworkExporter(framework).export()


@router.put("/frameworks/{framework_id}")
def update_framework(
    framework_id: int,
    request: FrameworkUpdateRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, bool]:
    with _translate_errors():
        result = api.update_framework(store, {**_payload(request), "id": framework_id}, user_id=user_id)
    return {"success": result}


@router.delete("/frameworks/{framework_id}")
def delete_framework(
    framework_id: int,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, bool]:
    with _translate_errors():
        result = api.delete_framework(store, framework_id, user_id=user_id)
    return {"success": result}


@router.get("/frameworks/{framework_id}/competencies")
def list_framework_competencies(
    framework_id: int,
    search: Optional[str] = Query(default=None, max_length=100),
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> List[Dict[str, Any]]:
    with _translate_errors():
        if search:
            competencies = api.search_competencies(store, search, framework_id, user_id=user_id)
        else:
            competencies = api.list_competencies(
                store, {"competencyframeworkid": framework_id}, "sortorder", user_id=user_id
            )
    return [competency.to_record() for competency in competencies]


# Competencies


@router.post("/competencies", status_code=status.HTTP_201_CREATED)
def create_competency(
    request: CompetencyCreateRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, Any]:
    with _translate_errors():
        return api.create_competency(store, _payload(request), user_id=user_id).to_record()


@router.get("/competencies/count")
def count_competencies(
    competencyframeworkid: Optional[int] = Query(default=None),
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
) -> Dict[str, int]:
    filters = {"competencyframeworkid": competencyframeworkid} if competencyframeworkid is not None else None
    return {"count": api.count_competencies(store, filters)}


@router.post("/competencies/reorder")
def reorder_competency(
    request: ReorderRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, bool]:
    with _translate_errors():
        result = api.reorder_competency(store, request.competencyidfrom, request.competencyidto, user_id=user_id)
    return {"success": result}


@router.get("/competencies/{competency_id}")
def read_competency(
    competency_id: int,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, Any]:
    with _translate_errors():
        return api.read_competency(store, competency_id, user_id=user_id).to_record()


@router.put("/competencies/{competency_id}")
def update_competency(
    competency_id: int,
    request: CompetencyUpdateRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, bool]:
    with _translate_errors():
        result = api.update_competency(store, {**_payload(request), "id": competency_id}, user_id=user_id)
    return {"success": result}


@router.delete("/competencies/{competency_id}")
def delete_competency(
    competency_id: int,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, bool]:
    with _translate_errors():
        result = api.delete_competency(store, competency_id, user_id=user_id)
    return {"success": result}


# Templates


@router.post("/templates", status_code=status.HTTP_201_CREATED)
def create_template(
    request: TemplateCreateRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, Any]:
    with _translate_errors():
        return api.create_template(store, _payload(request), user_id=user_id).to_record()


@router.get("/templates")
def list_templates(
    query: ListQuery = Depends(list_query),
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> List[Dict[str, Any]]:
    with _translate_errors():
        templates = api.list_templates(store, None, query.sort, query.order, query.skip, query.limit, user_id=user_id)
    return [template.to_record() for template in templates]


@router.get("/templates/count")
def count_templates(store: SQLAlchemyRecordStore = Depends(get_store_dependency)) -> Dict[str, int]:
    return {"count": api.count_templates(store)}


@router.get("/templates/{template_id}")
def read_template(
    template_id: int,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, Any]:
    with _translate_errors():
        return api.read_template(store, template_id, user_id=user_id).to_record()


@router.put("/templates/{template_id}")
def update_template(
    template_id: int,
    request: TemplateUpdateRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, bool]:
    with _translate_errors():
        result = api.update_template(store, {**_payload(request), "id": template_id}, user_id=user_id)
    return {"success": result}


@router.delete("/templates/{template_id}")
def delete_template(
    template_id: int,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, bool]:
    with _translate_errors():
        result = api.delete_template(store, template_id, user_id=user_id)
    return {"success": result}


@router.get("/templates/{template_id}/competencies")
def list_competencies_in_template(
    template_id: int,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> List[Dict[str, Any]]:
    with _translate_errors():
        competencies = api.list_competencies_in_template(store, template_id, user_id=user_id)
    return [competency.to_record() for competency in competencies]


@router.get("/templates/{template_id}/competencies/count")
def count_competencies_in_template(
    template_id: int, store: SQLAlchemyRecordStore = Depends(get_store_dependency)
) -> Dict[str, int]:
    return {"count": api.count_competencies_in_template(store, template_id)}


@router.post("/templates/{template_id}/competencies", status_code=status.HTTP_201_CREATED)
def add_competency_to_template(
    template_id: int,
    request: CompetencyLinkRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, Any]:
    with _translate_errors():
        link = api.add_competency_to_template(store, template_id, request.competencyid, user_id=user_id)
    return link.to_record()


@router.post("/templates/{template_id}/competencies/reorder")
def reorder_template_competency(
    template_id: int,
    request: ReorderRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, bool]:
    with _translate_errors():
        result = api.reorder_template_competency(
            store, template_id, request.competencyidfrom, request.competencyidto, user_id=user_id
        )
    return {"success": result}


@router.delete("/templates/{template_id}/competencies/{competency_id}")
def remove_competency_from_template(
    template_id: int,
    competency_id: int,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, bool]:
    with _translate_errors():
        result = api.remove_competency_from_template(store, template_id, competency_id, user_id=user_id)
    return {"success": result}


# Plans


@router.post("/plans", status_code=status.HTTP_201_CREATED)
def create_plan(
    request: PlanCreateRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, Any]:
    with _translate_errors():
        return api.create_plan(store, _payload(request), user_id=user_id).to_record()


@router.get("/plans")
def list_plans(
    userid: Optional[int] = Query(default=None),
    query: ListQuery = Depends(list_query),
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> List[Dict[str, Any]]:
    filters = {"userid": userid} if userid is not None else None
    with _translate_errors():
        plans = api.list_plans(store, filters, query.sort, query.order, query.skip, query.limit, user_id=user_id)
    return [plan.to_record() for plan in plans]


@router.get("/plans/count")
def count_plans(
    userid: Optional[int] = Query(default=None),
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
) -> Dict[str, int]:
    filters = {"userid": userid} if userid is not None else None
    return {"count": api.count_plans(store, filters)}


@router.get("/plans/{plan_id}")
def read_plan(
    plan_id: int,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, Any]:
    with _translate_errors():
        return api.read_plan(store, plan_id, user_id=user_id).to_record()


@router.put("/plans/{plan_id}")
def update_plan(
    plan_id: int,
    request: PlanUpdateRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, bool]:
    with _translate_errors():
        result = api.update_plan(store, {**_payload(request), "id": plan_id}, user_id=user_id)
    return {"success": result}


@router.delete("/plans/{plan_id}")
def delete_plan(
    plan_id: int,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, bool]:
    with _translate_errors():
        result = api.delete_plan(store, plan_id, user_id=user_id)
    return {"success": result}


@router.post("/plans/{plan_id}/competencies", status_code=status.HTTP_201_CREATED)
def add_competency_to_plan(
    plan_id: int,
    request: CompetencyLinkRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, Any]:
    with _translate_errors():
        return api.add_competency_to_plan(store, plan_id, request.competencyid, user_id=user_id).to_record()


@router.delete("/plans/{plan_id}/competencies/{competency_id}")
def remove_competency_from_plan(
    plan_id: int,
    competency_id: int,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, bool]:
    with _translate_errors():
        result = api.remove_competency_from_plan(store, plan_id, competency_id, user_id=user_id)
    return {"success": result}


@router.get("/plans/{plan_id}/page")
def plan_page(
    plan_id: int,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, Any]:
    with _translate_errors():
        plan = api.read_plan(store, plan_id, user_id=user_id)
        return PlanPage(store, plan).export_for_template()


# Scales and ratings


@router.get("/scales/{scale_id}/values")
def get_scale_values(scale_id: int, store: SQLAlchemyRecordStore = Depends(get_store_dependency)) -> List[Dict[str, Any]]:
    with _translate_errors():
        return api.get_scale_values(store, scale_id)


@router.post("/courses/{course_id}/grades")
def grade_competency_in_course(
    course_id: int,
    request: CourseGradeRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, Any]:
    with _translate_errors():
        rating = api.grade_competency_in_course(
            store,
            course_id,
            request.userid,
            request.competencyid,
            request.grade,
            request.proficiency,
            user_id=user_id,
        )
    return rating.to_record()


@router.post("/user-competencies/suggest-grade")
def suggest_competency_grade(
    request: SuggestGradeRequest,
    store: SQLAlchemyRecordStore = Depends(get_store_dependency),
    user_id: int = Depends(get_acting_user),
) -> Dict[str, Any]:
    with _translate_errors():
        usercompetency = api.suggest_competency_grade(
            store, request.userid, request.competencyid, request.grade, user_id=user_id
        )
    logger.info("User %s suggested grade %s for user competency %s", user_id, request.grade, usercompetency.get("id"))
    return usercompetency.to_record()


__all__ = ["get_acting_user", "router"]
