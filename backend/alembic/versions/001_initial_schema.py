"""Initial schema: users, venues, events and reservations for both domains.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _address() -> list:
    return [
        sa.Column("address_line1", sa.String(255), nullable=False, server_default=""),
        sa.Column("address_line2", sa.String(255), nullable=False, server_default=""),
        sa.Column("city", sa.String(100), nullable=False, server_default=""),
        sa.Column("state", sa.String(100), nullable=False, server_default=""),
        sa.Column("zip_code", sa.String(20), nullable=False, server_default=""),
    ]


def _reservation_table(name: str, events_table: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("event_id", sa.Uuid(), sa.ForeignKey(f"{events_table}.id"), nullable=False),
        sa.Column("student_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("seat_number", sa.String(10), nullable=False),
        sa.Column("is_cancelled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_index(f"ix_{name}_event_id", name, ["event_id"])
    op.create_index(f"ix_{name}_student_id", name, ["student_id"])
    # One active reservation per student and event. Cancelled rows are kept
    # as history and excluded, so a student can book again after cancelling.
    op.create_index(
        f"uq_{name}_active_student_event",
        name,
        ["student_id", "event_id"],
        unique=True,
        postgresql_where=sa.text("NOT is_cancelled"),
        sqlite_where=sa.text("NOT is_cancelled"),
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="student"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("reset_token", sa.String(16), nullable=False, server_default=""),
        *_address(),
        *_timestamps(),
        sa.CheckConstraint(
            "role IN ('super_admin', 'admin', 'organizer', 'student')",
            name="check_user_role",
        ),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "stadiums",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        *_address(),
        *_timestamps(),
        sa.CheckConstraint("capacity > 0", name="check_stadium_capacity_positive"),
    )

    op.create_table(
        "sports",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.String(1000), nullable=False, server_default=""),
        *_timestamps(),
    )

    op.create_table(
        "teams",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("sport_id", sa.Uuid(), sa.ForeignKey("sports.id"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_teams_sport_id", "teams", ["sport_id"])

    op.create_table(
        "events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(1000), nullable=False, server_default=""),
        sa.Column("start_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("sport_id", sa.Uuid(), sa.ForeignKey("sports.id"), nullable=False),
        sa.Column("team_one_id", sa.Uuid(), sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("team_two_id", sa.Uuid(), sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("stadium_id", sa.Uuid(), sa.ForeignKey("stadiums.id"), nullable=False),
        sa.Column("organizer_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("end_datetime > start_datetime", name="check_event_time_window"),
        sa.CheckConstraint("team_one_id <> team_two_id", name="check_event_distinct_teams"),
    )
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])
    # Listing pattern: "active events, soonest first"
    op.create_index("ix_events_active_start", "events", ["is_active", "start_datetime"])

    op.create_table(
        "general_events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(1000), nullable=False, server_default=""),
        sa.Column("start_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("organizer_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        *_address(),
        *_timestamps(),
        sa.CheckConstraint("capacity > 0", name="check_general_event_capacity_positive"),
        sa.CheckConstraint("end_datetime > start_datetime", name="check_general_event_time_window"),
    )
    op.create_index("ix_general_events_organizer_id", "general_events", ["organizer_id"])
    op.create_index("ix_general_events_active_start", "general_events", ["is_active", "start_datetime"])

    _reservation_table("reservations", "events")
    _reservation_table("general_reservations", "general_events")


def downgrade() -> None:
    op.drop_table("general_reservations")
    op.drop_table("reservations")
    op.drop_table("general_events")
    op.drop_table("events")
    op.drop_table("teams")
    op.drop_table("sports")
    op.drop_table("stadiums")
    op.drop_table("users")
