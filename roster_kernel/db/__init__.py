"""Database layer - engine, base classes and types."""

from roster_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from roster_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)
from roster_kernel.db.types import round_money, to_decimal

__all__ = [
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_engine_from_url",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "round_money",
    "to_decimal",
]
