from enum import Enum
from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from smartproject.db.base import Base
from smartproject.db.models._mixins import TimestampMixin


class DependencyType(str, Enum):
    finish_to_start = "FS"
    start_to_start = "SS"
    finish_to_finish = "FF"
    start_to_finish = "SF"


class Dependency(Base, TimestampMixin):
    __tablename__ = "dependency"
    __table_args__ = (
        UniqueConstraint(
            "predecessor_id",
            "successor_id",
            name="uq_dependency_edge",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    predecessor_id: Mapped[int] = mapped_column(ForeignKey("wbs_item.id", ondelete="CASCADE"), index=True)
    successor_id: Mapped[int] = mapped_column(ForeignKey("wbs_item.id", ondelete="CASCADE"), index=True)
    type: Mapped[str] = mapped_column(String(2), default=DependencyType.finish_to_start.value)
    lag: Mapped[int] = mapped_column(Integer, default=0)  # days
