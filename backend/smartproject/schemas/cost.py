import datetime as dt
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field


class CostEntryCreate(BaseModel):
    wbs_item_id: int
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: str | None = None
    entry_date: dt.date


class CostEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    wbs_item_id: int
    amount: Decimal
    description: str | None = None
    entry_date: dt.date
