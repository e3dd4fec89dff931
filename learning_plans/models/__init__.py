"""Persistent learning plans entities."""

from .competency import Competency
from .competency_framework import CompetencyFramework
from .plan import Plan, PlanCompetency
from .scale import Scale
from .template import Template, TemplateCompetency
from .user_competency import UserCompetency
from .user_competency_course import UserCompetencyCourse

__all__ = [
    "Competency",
    "CompetencyFramework",
    "Plan",
    "PlanCompetency",
    "Scale",
    "Template",
    "TemplateCompetency",
    "UserCompetency",
    "UserCompetencyCourse",
]
