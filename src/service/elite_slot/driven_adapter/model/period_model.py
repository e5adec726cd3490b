from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base
from src.platform.database.utc_datetime import UtcDateTime
from src.service.elite_slot.domain.enum.period_status import PeriodStatus
from src.service.elite_slot.driven_adapter.model.status_clause import status_in


class PeriodModel(Base):
    __tablename__ = 'elite_period'
    __table_args__ = (
        CheckConstraint('ends_at > starts_at', name='ck_elite_period_window'),
        # At most one active period
        Index(
            'uq_elite_period_single_active',
            'status',
            unique=True,
            postgresql_where=status_in([PeriodStatus.ACTIVE]),
            sqlite_where=status_in([PeriodStatus.ACTIVE]),
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True)  # UUID7
    starts_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    ends_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(10), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
