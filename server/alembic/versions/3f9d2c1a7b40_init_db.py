"""Init DB

Revision ID: 3f9d2c1a7b40
Revises:
Create Date: 2026-10-18 10:30:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9d2c1a7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


field_type_enum = sa.Enum(
    "text", "email", "number", "select", "checkbox", name="form_field_type"
)
registration_status_enum = sa.Enum(
    "registered", "checked_in", name="registration_status"
)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "event_forms",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.VARCHAR(), nullable=False),
        sa.Column("description", sa.VARCHAR(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "form_fields",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("form_id", sa.Uuid(), nullable=False),
        sa.Column("field_name", sa.VARCHAR(), nullable=False),
        sa.Column("field_type", field_type_enum, nullable=False),
        sa.Column("label", sa.VARCHAR(), nullable=False),
        sa.Column("placeholder", sa.VARCHAR(), nullable=True),
        sa.Column("is_required", sa.BOOLEAN(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("field_order", sa.INTEGER(), nullable=False),
        sa.ForeignKeyConstraint(["form_id"], ["event_forms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("form_id", "field_name", name="uq_form_fields_form_name"),
    )
    op.create_index(
        op.f("ix_form_fields_form_id"), "form_fields", ["form_id"], unique=False
    )

    op.create_table(
        "published_form",
        sa.Column("id", sa.INTEGER(), nullable=False),
        sa.Column("form_id", sa.Uuid(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["form_id"], ["event_forms.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    # Seed the single pointer row; publishing only ever updates it
    op.execute("INSERT INTO published_form (id, form_id) VALUES (1, NULL)")

    op.create_table(
        "registrations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("form_id", sa.Uuid(), nullable=False),
        sa.Column("answers", sa.JSON(), nullable=False),
        sa.Column("token", sa.VARCHAR(), nullable=False),
        sa.Column(
            "status",
            registration_status_enum,
            nullable=False,
            server_default="registered",
        ),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["form_id"], ["event_forms.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_registrations_form_id"), "registrations", ["form_id"], unique=False
    )
    op.create_index(
        op.f("ix_registrations_token"), "registrations", ["token"], unique=True
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_registrations_token"), table_name="registrations")
    op.drop_index(op.f("ix_registrations_form_id"), table_name="registrations")
    op.drop_table("registrations")
    op.drop_table("published_form")
    op.drop_index(op.f("ix_form_fields_form_id"), table_name="form_fields")
    op.drop_table("form_fields")
    op.drop_table("event_forms")
    registration_status_enum.drop(op.get_bind(), checkfirst=True)
    field_type_enum.drop(op.get_bind(), checkfirst=True)
