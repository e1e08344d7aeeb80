"""initial schema: participants, break sessions, responses

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

The partial unique index on break_sessions(status) WHERE status = 'active'
is what keeps at most one break running at a time.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


SESSION_STATUSES = ("active", "completed", "cancelled")
RESPONSE_KINDS = ("accepted", "accepted_delayed", "denied", "remote")


def upgrade() -> None:
    # Create the enum types
    sa.Enum(*SESSION_STATUSES, name="session_status").create(
        op.get_bind(), checkfirst=True
    )
    sa.Enum(*RESPONSE_KINDS, name="response_kind").create(
        op.get_bind(), checkfirst=True
    )
    session_status = postgresql.ENUM(
        *SESSION_STATUSES, name="session_status", create_type=False
    )
    response_kind = postgresql.ENUM(
        *RESPONSE_KINDS, name="response_kind", create_type=False
    )

    op.create_table(
        "participants",
        sa.Column("participant_id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("username", sa.Text(), nullable=True),
        sa.Column("first_name", sa.Text(), server_default="", nullable=False),
        sa.Column("last_name", sa.Text(), nullable=True),
        sa.Column(
            "is_remote_today", sa.Boolean(), server_default="false", nullable=False
        ),
        sa.Column("remote_until", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("is_hidden", sa.Boolean(), server_default="false", nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("participant_id", name=op.f("pk_participants")),
    )
    op.create_index(
        "idx_participants_username", "participants", ["username"], unique=False
    )

    op.create_table(
        "break_sessions",
        sa.Column("session_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("initiator_id", sa.BigInteger(), nullable=False),
        sa.Column("status", session_status, server_default="active", nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("completed_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["initiator_id"],
            ["participants.participant_id"],
            name=op.f("fk_break_sessions_initiator_id_participants"),
        ),
        sa.PrimaryKeyConstraint("session_id", name=op.f("pk_break_sessions")),
    )
    op.create_index(
        "idx_break_sessions_status", "break_sessions", ["status"], unique=False
    )
    op.create_index(
        "uq_break_sessions_single_active",
        "break_sessions",
        ["status"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "session_responses",
        sa.Column("response_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=False),
        sa.Column("participant_id", sa.BigInteger(), nullable=False),
        sa.Column("response", response_kind, nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["session_id"],
            ["break_sessions.session_id"],
            name=op.f("fk_session_responses_session_id_break_sessions"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["participant_id"],
            ["participants.participant_id"],
            name=op.f("fk_session_responses_participant_id_participants"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("response_id", name=op.f("pk_session_responses")),
        sa.UniqueConstraint(
            "session_id",
            "participant_id",
            name="session_responses_session_participant_unique",
        ),
    )
    op.create_index(
        "idx_session_responses_session_id",
        "session_responses",
        ["session_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        "idx_session_responses_session_id", table_name="session_responses"
    )
    op.drop_table("session_responses")
    op.drop_index("uq_break_sessions_single_active", table_name="break_sessions")
    op.drop_index("idx_break_sessions_status", table_name="break_sessions")
    op.drop_table("break_sessions")
    op.drop_index("idx_participants_username", table_name="participants")
    op.drop_table("participants")

    # Drop the enum types
    sa.Enum(name="response_kind").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="session_status").drop(op.get_bind(), checkfirst=True)
