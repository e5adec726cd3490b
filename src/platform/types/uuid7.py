"""
UUID7 helpers

Record ids are UUIDv7 (time ordered) so primary keys sort roughly by creation
time. `uuid_utils.compat` returns stdlib `uuid.UUID` values, which pydantic,
SQLAlchemy's `Uuid` type and asyncpg all accept without conversion.
"""

from uuid import UUID

from uuid_utils.compat import uuid7


def new_uuid7() -> UUID:
    return uuid7()
