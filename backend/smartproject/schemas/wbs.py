import datetime as dt
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field

from smartproject.db.models.wbs import WbsType


class WbsItemBase(BaseModel):
    name: str | None = Field(None, min_length=1)
    description: str | None = None
    code: str | None = None
    type: WbsType | None = None
    parent_id: int | None = None
    budgeted_cost: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    duration: int | None = Field(None, gt=0)


class WbsItemCreate(WbsItemBase):
    project_id: int
    name: str = Field(..., min_length=1)
    type: WbsType


class WbsItemUpdate(WbsItemBase):
    pass


class WbsProgressUpdate(BaseModel):
    percent_complete: Decimal = Field(..., ge=0, le=100)
    actual_start_date: dt.date | None = None
    actual_end_date: dt.date | None = None


class WbsItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    parent_id: int | None = None
    name: str
    description: str | None = None
    level: int
    code: str
    type: str
    budgeted_cost: Decimal
    actual_cost: Decimal
    percent_complete: Decimal
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    duration: int | None = None
    actual_start_date: dt.date | None = None
    actual_end_date: dt.date | None = None
    is_top_level: bool
