from collections.abc import Iterable
from enum import StrEnum

from sqlalchemy import TextClause, text


def status_in(statuses: Iterable[StrEnum]) -> TextClause:
    """WHERE clause for partial indexes scoped to a status subset (PostgreSQL and SQLite)"""
    values = ', '.join(f"'{status.value}'" for status in sorted(statuses))
    return text(f'status IN ({values})')
