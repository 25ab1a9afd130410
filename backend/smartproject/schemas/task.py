import datetime as dt
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, model_validator


class TaskBase(BaseModel):
    activity_id: int | None = None
    name: str | None = Field(None, min_length=1)
    description: str | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    duration: int | None = Field(None, gt=0)
    percent_complete: Decimal | None = Field(None, ge=0, le=100)


class TaskCreate(TaskBase):
    activity_id: int
    name: str = Field(..., min_length=1)
    percent_complete: Decimal = Field(Decimal("0"), ge=0, le=100)

    @model_validator(mode="after")
    def check_end_or_duration(self):
        if self.start_date is not None and (self.end_date is None) == (self.duration is None):
            raise ValueError(
                "When start date is provided, you must provide either end date OR duration, but not both"
            )
        return self


class TaskUpdate(TaskBase):
    pass


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    activity_id: int
    project_id: int
    name: str
    description: str | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    duration: int | None = None
    percent_complete: Decimal
