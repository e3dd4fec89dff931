"""Learning plans schema."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20261018_01_learning_plans_schema"
down_revision = None
branch_labels = None
depends_on = None


def _persistent_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("timecreated", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("timemodified", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("usermodified", sa.Integer(), nullable=False, server_default="0"),
    ]


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("firstname", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("lastname", sa.String(length=100), nullable=False, server_default=""),
        sa.UniqueConstraint("username", name="uq_user_username"),
    )

    op.create_table(
        "course",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("shortname", sa.String(length=255), nullable=False),
        sa.Column("fullname", sa.String(length=254), nullable=False, server_default=""),
    )

    op.create_table(
        "scale",
        *_persistent_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("scale", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("descriptionformat", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("courseid", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "lp_competency_framework",
        *_persistent_columns(),
        sa.Column("shortname", sa.String(length=100), nullable=False),
        sa.Column("idnumber", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("descriptionformat", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("scaleid", sa.Integer(), sa.ForeignKey("scale.id"), nullable=False),
        sa.Column("contextid", sa.Integer(), nullable=False, server_default="1"),
    )
    op.create_index("ix_lp_competency_framework_idnumber", "lp_competency_framework", ["idnumber"], unique=True)

    op.create_table(
        "lp_competency",
        *_persistent_columns(),
        sa.Column("shortname", sa.String(length=100), nullable=False),
        sa.Column("idnumber", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("descriptionformat", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "competencyframeworkid",
            sa.Integer(),
            sa.ForeignKey("lp_competency_framework.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("parentid", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("path", sa.String(length=255), nullable=False, server_default="/0/"),
        sa.Column("sortorder", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("scaleid", sa.Integer(), sa.ForeignKey("scale.id"), nullable=True),
        sa.UniqueConstraint("competencyframeworkid", "idnumber", name="uq_lp_competency_idnumber"),
    )
    op.create_index("ix_lp_competency_framework", "lp_competency", ["competencyframeworkid"])

    op.create_table(
        "lp_template",
        *_persistent_columns(),
        sa.Column("shortname", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("descriptionformat", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("duedate", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("contextid", sa.Integer(), nullable=False, server_default="1"),
    )

    op.create_table(
        "lp_plan",
        *_persistent_columns(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("descriptionformat", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("userid", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("templateid", sa.Integer(), sa.ForeignKey("lp_template.id"), nullable=True),
        sa.Column("status", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("duedate", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_lp_plan_user", "lp_plan", ["userid"])

    op.create_table(
        "lp_plan_competency",
        *_persistent_columns(),
        sa.Column("planid", sa.Integer(), sa.ForeignKey("lp_plan.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "competencyid", sa.Integer(), sa.ForeignKey("lp_competency.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("sortorder", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("planid", "competencyid", name="uq_lp_plan_competency"),
    )

    op.create_table(
        "lp_user_competency",
        *_persistent_columns(),
        sa.Column("userid", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column(
            "competencyid", sa.Integer(), sa.ForeignKey("lp_competency.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("status", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reviewerid", sa.Integer(), nullable=True),
        sa.Column("proficiency", sa.Boolean(), nullable=True),
        sa.Column("grade", sa.Integer(), nullable=True),
        sa.UniqueConstraint("userid", "competencyid", name="uq_lp_user_competency"),
    )

    op.create_table(
        "lp_user_comp_course",
        *_persistent_columns(),
        sa.Column("userid", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("courseid", sa.Integer(), sa.ForeignKey("course.id"), nullable=False),
        sa.Column(
            "competencyid", sa.Integer(), sa.ForeignKey("lp_competency.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("proficiency", sa.Boolean(), nullable=True),
        sa.Column("grade", sa.Integer(), nullable=True),
        sa.UniqueConstraint("userid", "courseid", "competencyid", name="uq_lp_user_comp_course"),
    )


def downgrade() -> None:
    op.drop_table("lp_user_comp_course")
    op.drop_table("lp_user_competency")
    op.drop_table("lp_plan_competency")
    op.drop_index("ix_lp_plan_user", table_name="lp_plan")
    op.drop_table("lp_plan")
    op.drop_table("lp_template")
    op.drop_index("ix_lp_competency_framework", table_name="lp_competency")
    op.drop_table("lp_competency")
    op.drop_index("ix_lp_competency_framework_idnumber", table_name="lp_competency_framework")
    op.drop_table("lp_competency_framework")
    op.drop_table("scale")
    op.drop_table("course")
    op.drop_table("user")
