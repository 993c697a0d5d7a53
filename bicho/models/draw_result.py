"""Draw results stored in one wide table.

Columns:
- id (PK)
- lottery_id + draw_date (unique)
- prize1..prize10 (fixed-width digit strings, NULL when not drawn)
- source_url (internal only, never exposed by the API)
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from bicho.models.base import Base

PRIZE_COLUMNS = tuple(f"prize{i}" for i in range(1, 11))


class DrawResult(Base):
    """One row per lottery per calendar day, up to 10 prizes."""

    __tablename__ = "draw_results"
    __table_args__ = (UniqueConstraint("lottery_id", "draw_date", name="uq_draw_results_lottery_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lottery_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    draw_date: Mapped[date] = mapped_column(Date, nullable=False)

    prize1: Mapped[str | None] = mapped_column(String(4), nullable=True)
    prize2: Mapped[str | None] = mapped_column(String(4), nullable=True)
    prize3: Mapped[str | None] = mapped_column(String(4), nullable=True)
    prize4: Mapped[str | None] = mapped_column(String(4), nullable=True)
    prize5: Mapped[str | None] = mapped_column(String(4), nullable=True)
    prize6: Mapped[str | None] = mapped_column(String(4), nullable=True)
    prize7: Mapped[str | None] = mapped_column(String(4), nullable=True)
    prize8: Mapped[str | None] = mapped_column(String(4), nullable=True)
    prize9: Mapped[str | None] = mapped_column(String(4), nullable=True)
    prize10: Mapped[str | None] = mapped_column(String(4), nullable=True)

    source_url: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def prizes(self) -> tuple[str | None, ...]:
        values = [getattr(self, col) for col in PRIZE_COLUMNS]
        while values and values[-1] is None:
            values.pop()
        return tuple(values)
