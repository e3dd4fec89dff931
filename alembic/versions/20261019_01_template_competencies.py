"""Template competencies, framework ordering and template id numbers."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20261019_01_template_competencies"
down_revision = "20261018_01_learning_plans_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("lp_competency_framework") as batch_op:
        batch_op.add_column(sa.Column("sortorder", sa.Integer(), nullable=False, server_default="0"))

    with op.batch_alter_table("lp_template") as batch_op:
        batch_op.add_column(sa.Column("idnumber", sa.String(length=100), nullable=False, server_default=""))

    # Competency id numbers are not unique within a framework.
    with op.batch_alter_table("lp_competency") as batch_op:
        batch_op.drop_constraint("uq_lp_competency_idnumber", type_="unique")

    op.create_table(
        "lp_template_competency",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("timecreated", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("timemodified", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("usermodified", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "templateid",
            sa.Integer(),
            sa.ForeignKey("lp_template.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "competencyid",
            sa.Integer(),
            sa.ForeignKey("lp_competency.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sortorder", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("templateid", "competencyid", name="uq_lp_template_competency"),
    )


def downgrade() -> None:
    op.drop_table("lp_template_competency")

    with op.batch_alter_table("lp_competency") as batch_op:
        batch_op.create_unique_constraint("uq_lp_competency_idnumber", ["competencyframeworkid", "idnumber"])

    with op.batch_alter_table("lp_template") as batch_op:
        batch_op.drop_column("idnumber")

    with op.batch_alter_table("lp_competency_framework") as batch_op:
        batch_op.drop_column("sortorder")
