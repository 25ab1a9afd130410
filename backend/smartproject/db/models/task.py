import datetime as dt
from decimal import Decimal
from sqlalchemy import String, Text, ForeignKey, Date, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartproject.db.base import Base
from smartproject.db.models._mixins import TimestampMixin

class Task(Base, TimestampMixin):
    __tablename__ = "task"

    id: Mapped[int] = mapped_column(primary_key=True)
    activity_id: Mapped[int] = mapped_column(ForeignKey("wbs_item.id", ondelete="CASCADE"), index=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("project.id", ondelete="CASCADE"), index=True)

    name: Mapped[str] = mapped_column(String(256))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    percent_complete: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"))

    activity = relationship("WbsItem", back_populates="tasks")
    project = relationship("Project", back_populates="tasks")
