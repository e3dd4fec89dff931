"""ORM tables backing the learning plans persistent classes."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, PersistentColumnsMixin


class UserModel(Base):
    __tablename__ = "user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    firstname: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    lastname: Mapped[str] = mapped_column(String(100), default="", nullable=False)


class CourseModel(Base):
    __tablename__ = "course"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shortname: Mapped[str] = mapped_column(String(255), nullable=False)
    fullname: Mapped[str] = mapped_column(String(254), default="", nullable=False)


class ScaleModel(PersistentColumnsMixin, Base):
    __tablename__ = "scale"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    scale: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    descriptionformat: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    courseid: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class CompetencyFrameworkModel(PersistentColumnsMixin, Base):
    __tablename__ = "lp_competency_framework"
    __table_args__ = (Index("ix_lp_competency_framework_idnumber", "idnumber", unique=True),)

    shortname: Mapped[str] = mapped_column(String(100), nullable=False)
    idnumber: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    descriptionformat: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    visible: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    scaleid: Mapped[int] = mapped_column(Integer, ForeignKey("scale.id"), nullable=False)
    contextid: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    sortorder: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class CompetencyModel(PersistentColumnsMixin, Base):
    __tablename__ = "lp_competency"
    __table_args__ = (Index("ix_lp_competency_framework", "competencyframeworkid"),)

    shortname: Mapped[str] = mapped_column(String(100), nullable=False)
    idnumber: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    descriptionformat: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    competencyframeworkid: Mapped[int] = mapped_column(
        Integer, ForeignKey("lp_competency_framework.id", ondelete="CASCADE"), nullable=False
    )
    parentid: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    path: Mapped[str] = mapped_column(String(255), default="/0/", nullable=False)
    sortorder: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    scaleid: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("scale.id"), nullable=True)


class TemplateModel(PersistentColumnsMixin, Base):
    __tablename__ = "lp_template"

    shortname: Mapped[str] = mapped_column(String(100), nullable=False)
    idnumber: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    descriptionformat: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    duedate: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    visible: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    contextid: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


class TemplateCompetencyModel(PersistentColumnsMixin, Base):
    __tablename__ = "lp_template_competency"
    __table_args__ = (UniqueConstraint("templateid", "competencyid", name="uq_lp_template_competency"),)

    templateid: Mapped[int] = mapped_column(
        Integer, ForeignKey("lp_template.id", ondelete="CASCADE"), nullable=False
    )
    competencyid: Mapped[int] = mapped_column(
        Integer, ForeignKey("lp_competency.id", ondelete="CASCADE"), nullable=False
    )
    sortorder: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class PlanModel(PersistentColumnsMixin, Base):
    __tablename__ = "lp_plan"
    __table_args__ = (Index("ix_lp_plan_user", "userid"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    descriptionformat: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    userid: Mapped[int] = mapped_column(Integer, ForeignKey("user.id"), nullable=False)
    templateid: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("lp_template.id"), nullable=True)
    status: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    duedate: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class PlanCompetencyModel(PersistentColumnsMixin, Base):
    __tablename__ = "lp_plan_competency"
    __table_args__ = (UniqueConstraint("planid", "competencyid", name="uq_lp_plan_competency"),)

    planid: Mapped[int] = mapped_column(Integer, ForeignKey("lp_plan.id", ondelete="CASCADE"), nullable=False)
    competencyid: Mapped[int] = mapped_column(
        Integer, ForeignKey("lp_competency.id", ondelete="CASCADE"), nullable=False
    )
    sortorder: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class UserCompetencyModel(PersistentColumnsMixin, Base):
    __tablename__ = "lp_user_competency"
    __table_args__ = (UniqueConstraint("userid", "competencyid", name="uq_lp_user_competency"),)

    userid: Mapped[int] = mapped_column(Integer, ForeignKey("user.id"), nullable=False)
    competencyid: Mapped[int] = mapped_column(
        Integer, ForeignKey("lp_competency.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reviewerid: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    proficiency: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    grade: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class UserCompetencyCourseModel(PersistentColumnsMixin, Base):
    __tablename__ = "lp_user_comp_course"
    __table_args__ = (
        UniqueConstraint("userid", "courseid", "competencyid", name="uq_lp_user_comp_course"),
    )

    userid: Mapped[int] = mapped_column(Integer, ForeignKey("user.id"), nullable=False)
    courseid: Mapped[int] = mapped_column(Integer, ForeignKey("course.id"), nullable=False)
    competencyid: Mapped[int] = mapped_column(
        Integer, ForeignKey("lp_competency.id", ondelete="CASCADE"), nullable=False
    )
    proficiency: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    grade: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


__all__ = [
    "CompetencyFrameworkModel",
    "CompetencyModel",
    "CourseModel",
    "PlanCompetencyModel",
    "PlanModel",
    "ScaleModel",
    "TemplateCompetencyModel",
    "TemplateModel",
    "UserCompetencyCourseModel",
    "UserCompetencyModel",
    "UserModel",
]
