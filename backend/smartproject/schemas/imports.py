import datetime as dt
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator

from smartproject.db.models.wbs import WbsType


class _CsvRow(BaseModel):
    # CSV headers are camelCase; python attributes stay snake_case
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class CostCsvRow(_CsvRow):
    wbs_code: str = Field(..., alias="wbsCode", min_length=1)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: str | None = None
    entry_date: dt.date = Field(..., alias="entryDate")


class WbsCsvRow(_CsvRow):
    wbs_code: str = Field(..., alias="wbsCode", min_length=1)
    wbs_name: str = Field(..., alias="wbsName", min_length=1)
    wbs_type: WbsType = Field(..., alias="wbsType")
    amount: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    start_date: dt.date | None = Field(None, alias="startDate")
    end_date: dt.date | None = Field(None, alias="endDate")
    duration: int | None = Field(None, gt=0)


class ActivityCsvRow(_CsvRow):
    wbs_code: str = Field(..., alias="wbsCode", min_length=1)
    name: str | None = None
    description: str | None = None
    start_date: dt.date | None = Field(None, alias="startDate")
    end_date: dt.date | None = Field(None, alias="endDate")
    duration: int | None = Field(None, gt=0)
    percent_complete: Decimal | None = Field(None, alias="percentComplete", ge=0, le=100)


class CostImportIn(BaseModel):
    project_id: int
    csv_data: list[dict]


class WbsImportIn(BaseModel):
    project_id: int
    csv_data: list[dict]


class ActivityImportIn(BaseModel):
    project_id: int
    work_package_id: int | None = None
    csv_data: list[dict]
