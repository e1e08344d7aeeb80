"""SQLAlchemy Core table definitions for the database schema."""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP

from .enums import response_kind_enum, session_status_enum

# Naming convention for constraints (helps Alembic generate better names)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
metadata = MetaData(naming_convention=convention)


# =====================================================
# 1. PARTICIPANTS
# =====================================================
# participant_id is the Discord user ID, not generated by us
participants = Table(
    "participants",
    metadata,
    Column("participant_id", BigInteger, primary_key=True, autoincrement=False),
    Column("username", Text),
    Column("first_name", Text, nullable=False, server_default=""),
    Column("last_name", Text),
    Column("is_remote_today", Boolean, nullable=False, server_default="false"),
    Column("remote_until", TIMESTAMP(timezone=True)),
    Column("is_hidden", Boolean, nullable=False, server_default="false"),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_participants_username", "username"),
)


# =====================================================
# 2. BREAK_SESSIONS
# =====================================================
break_sessions = Table(
    "break_sessions",
    metadata,
    Column("session_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "initiator_id",
        BigInteger,
        ForeignKey("participants.participant_id"),
        nullable=False,
    ),
    Column("status", session_status_enum, nullable=False, server_default="active"),
    Column(
        "created_at",
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    ),
    Column("completed_at", TIMESTAMP(timezone=True)),
    Index("idx_break_sessions_status", "status"),
    # At most one active session cluster-wide (race condition fix for /smoke)
    Index(
        "uq_break_sessions_single_active",
        "status",
        unique=True,
        postgresql_where=text("status = 'active'"),
    ),
)


# =====================================================
# 3. SESSION_RESPONSES
# =====================================================
session_responses = Table(
    "session_responses",
    metadata,
    Column("response_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "session_id",
        Integer,
        ForeignKey("break_sessions.session_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "participant_id",
        BigInteger,
        ForeignKey("participants.participant_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("response", response_kind_enum, nullable=False),
    Column(
        "created_at",
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    ),
    Column(
        "updated_at",
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    ),
    Index("idx_session_responses_session_id", "session_id"),
    UniqueConstraint(
        "session_id",
        "participant_id",
        name="session_responses_session_participant_unique",
    ),
)
