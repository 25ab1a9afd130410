import datetime as dt
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, model_validator

from smartproject.db.models.project import Currency


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str | None = None
    start_date: dt.date
    end_date: dt.date
    budget: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    currency: Currency = Currency.usd

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ProjectUpdate(BaseModel):
    name: str | None = Field(None, min_length=1)
    description: str | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    budget: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    currency: Currency | None = None


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    start_date: dt.date
    end_date: dt.date
    budget: Decimal
    currency: str
    created_at: dt.datetime | None = None


class SummaryBudgetRow(BaseModel):
    id: int
    code: str
    name: str
    total: Decimal
    used: Decimal
    remaining: Decimal


class BudgetUsageOut(BaseModel):
    project_id: int
    project_budget: Decimal
    top_level_allocated: Decimal
    work_package_total: Decimal
    unallocated: Decimal
    percent_allocated: float
    summaries: list[SummaryBudgetRow] = []
