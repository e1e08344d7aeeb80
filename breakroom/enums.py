"""SQLAlchemy enum definitions for the database schema."""

import enum

from sqlalchemy import Enum as SQLEnum


# =====================================================
# Python Enum Classes
# =====================================================


class SessionStatus(str, enum.Enum):
    active = "active"
    completed = "completed"
    cancelled = "cancelled"


class ResponseKind(str, enum.Enum):
    accepted = "accepted"
    accepted_delayed = "accepted_delayed"
    denied = "denied"
    remote = "remote"


# Kinds that mean "I'm coming" (now or a bit later)
ATTENDING_KINDS = frozenset({ResponseKind.accepted, ResponseKind.accepted_delayed})


# =====================================================
# SQLAlchemy Enum Types
# These reference existing PostgreSQL types (create_type=False)
# =====================================================

session_status_enum = SQLEnum(
    SessionStatus, name="session_status", create_type=False, native_enum=True
)
response_kind_enum = SQLEnum(
    ResponseKind, name="response_kind", create_type=False, native_enum=True
)
