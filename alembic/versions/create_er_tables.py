"""create_er_tables

Revision ID: create_er_tables
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "create_er_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OPEN_EPISODE = sa.text("discharge_time IS NULL")
ACTIVE_TICKET = sa.text("status IN ('waiting', 'called')")


def upgrade() -> None:
    op.create_table(
        "patients",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("hn", sa.String(length=20), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_patients_hn"), "patients", ["hn"], unique=True)

    op.create_table(
        "beds",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("bed_number", sa.String(length=20), nullable=False),
        sa.Column(
            "zone",
            sa.Enum("main", "temporary", name="bed_zone_enum"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum("available", "occupied", "maintenance", name="bed_status_enum"),
            server_default=sa.text("'available'"),
            nullable=False,
        ),
        sa.Column("patient_id", sa.Integer(), nullable=True),
        sa.Column("esi_level", sa.SmallInteger(), nullable=True),
        sa.Column("admitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("current_history_id", sa.Integer(), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_beds_bed_number"), "beds", ["bed_number"], unique=True)
    op.create_index(op.f("ix_beds_status"), "beds", ["status"])
    op.create_index(op.f("ix_beds_patient_id"), "beds", ["patient_id"])

    op.create_table(
        "patient_bed_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("patient_id", sa.Integer(), nullable=False),
        sa.Column("bed_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=20), nullable=False),
        sa.Column("esi_level", sa.SmallInteger(), nullable=True),
        sa.Column("delivery_status", sa.String(length=100), nullable=True),
        sa.Column("other_symptoms", sa.Text(), nullable=True),
        sa.Column("admission_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("discharge_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "performed_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["bed_id"], ["beds.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_patient_bed_history_patient_id"), "patient_bed_history", ["patient_id"])
    op.create_index(op.f("ix_patient_bed_history_bed_id"), "patient_bed_history", ["bed_id"])
    op.create_index(
        "uq_patient_bed_history_open_bed",
        "patient_bed_history",
        ["bed_id"],
        unique=True,
        postgresql_where=OPEN_EPISODE,
        sqlite_where=OPEN_EPISODE,
    )
    op.create_index(
        "uq_patient_bed_history_open_patient",
        "patient_bed_history",
        ["patient_id"],
        unique=True,
        postgresql_where=OPEN_EPISODE,
        sqlite_where=OPEN_EPISODE,
    )

    # beds <-> patient_bed_history reference each other
    with op.batch_alter_table("beds") as batch_op:
        batch_op.create_foreign_key(
            "fk_beds_current_history_id",
            "patient_bed_history",
            ["current_history_id"],
            ["id"],
            ondelete="SET NULL",
        )

    op.create_table(
        "queues",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("patient_id", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("waiting", "called", "completed", "cancelled", name="queue_status_enum"),
            server_default=sa.text("'waiting'"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("called_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_queues_patient_id"), "queues", ["patient_id"])
    op.create_index(op.f("ix_queues_status"), "queues", ["status"])
    op.create_index(
        "uq_queues_active_patient",
        "queues",
        ["patient_id"],
        unique=True,
        postgresql_where=ACTIVE_TICKET,
        sqlite_where=ACTIVE_TICKET,
    )

    op.create_table(
        "queue_calls",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("queue_id", sa.Integer(), nullable=False),
        sa.Column("called_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["queue_id"], ["queues.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_queue_calls_queue_id"), "queue_calls", ["queue_id"])
    op.create_index(op.f("ix_queue_calls_called_at"), "queue_calls", ["called_at"])

    op.create_table(
        "system_settings",
        sa.Column("setting_key", sa.String(length=100), nullable=False),
        sa.Column("setting_value", sa.Text(), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("setting_key"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column(
            "role",
            sa.Enum("admin", "nurse", "triage", name="staff_role_enum"),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_username"), "users", ["username"], unique=True)


def downgrade() -> None:
    op.drop_index(op.f("ix_users_username"), table_name="users")
    op.drop_table("users")
    op.drop_table("system_settings")
    op.drop_index(op.f("ix_queue_calls_called_at"), table_name="queue_calls")
    op.drop_index(op.f("ix_queue_calls_queue_id"), table_name="queue_calls")
    op.drop_table("queue_calls")
    op.drop_index("uq_queues_active_patient", table_name="queues")
    op.drop_index(op.f("ix_queues_status"), table_name="queues")
    op.drop_index(op.f("ix_queues_patient_id"), table_name="queues")
    op.drop_table("queues")

    with op.batch_alter_table("beds") as batch_op:
        batch_op.drop_constraint("fk_beds_current_history_id", type_="foreignkey")

    op.drop_index("uq_patient_bed_history_open_patient", table_name="patient_bed_history")
    op.drop_index("uq_patient_bed_history_open_bed", table_name="patient_bed_history")
    op.drop_index(op.f("ix_patient_bed_history_bed_id"), table_name="patient_bed_history")
    op.drop_index(op.f("ix_patient_bed_history_patient_id"), table_name="patient_bed_history")
    op.drop_table("patient_bed_history")
    op.drop_index(op.f("ix_beds_patient_id"), table_name="beds")
    op.drop_index(op.f("ix_beds_status"), table_name="beds")
    op.drop_index(op.f("ix_beds_bed_number"), table_name="beds")
    op.drop_table("beds")
    op.drop_index(op.f("ix_patients_hn"), table_name="patients")
    op.drop_table("patients")

    sa.Enum(name="staff_role_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="queue_status_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="bed_status_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="bed_zone_enum").drop(op.get_bind(), checkfirst=True)
