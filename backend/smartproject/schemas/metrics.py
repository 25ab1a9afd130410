import datetime as dt
from decimal import Decimal
from pydantic import BaseModel


class EvmRow(BaseModel):
    wbs_item_id: int
    code: str
    name: str
    type: str
    level: int
    budgeted_cost: Decimal
    actual_cost: Decimal
    percent_complete: Decimal
    earned_value: Decimal
    planned_value: Decimal
    cost_variance: Decimal
    schedule_variance: Decimal
    cpi: float
    spi: float


class EvmTotals(BaseModel):
    budgeted_cost: Decimal
    actual_cost: Decimal
    earned_value: Decimal
    planned_value: Decimal
    cost_variance: Decimal
    schedule_variance: Decimal
    cpi: float
    spi: float
    percent_complete: float


class EvmReportOut(BaseModel):
    project_id: int
    currency: str
    as_of: dt.date
    rows: list[EvmRow]
    totals: EvmTotals
