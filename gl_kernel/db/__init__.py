"""Database layer - engine, base classes, money conversion, immutability."""

from gl_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from gl_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)
from gl_kernel.db.types import (
    AmountLike,
    MinorUnits,
    from_minor_units,
    round_money,
    to_minor_units,
)

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "get_session_factory",
    "session_scope",
    "create_tables",
    "drop_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "AmountLike",
    "MinorUnits",
    "to_minor_units",
    "from_minor_units",
    "round_money",
]
