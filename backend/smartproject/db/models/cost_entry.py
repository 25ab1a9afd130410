import datetime as dt
from decimal import Decimal
from sqlalchemy import ForeignKey, Date, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartproject.db.base import Base
from smartproject.db.models._mixins import TimestampMixin

class CostEntry(Base, TimestampMixin):
    __tablename__ = "cost_entry"

    id: Mapped[int] = mapped_column(primary_key=True)
    wbs_item_id: Mapped[int] = mapped_column(ForeignKey("wbs_item.id", ondelete="CASCADE"), index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    entry_date: Mapped[dt.date] = mapped_column(Date)

    wbs_item = relationship("WbsItem", back_populates="cost_entries")
