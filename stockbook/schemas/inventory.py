from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator


def _required_text(value: str, field_name: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f"{field_name} must not be empty")
    return normalized


class StockAddRequest(BaseModel):
    name: str = Field(max_length=160)
    quantity: Decimal = Field(ge=0, max_digits=14, decimal_places=3)
    buying_rate: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    selling_rate: Decimal = Field(ge=0, max_digits=12, decimal_places=2)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return _required_text(value, "name")


class ItemOut(BaseModel):
    id: int
    name: str
    quantity: Decimal
    buying_rate: Decimal
    selling_rate: Decimal
    updated_at: datetime

    model_config = {"from_attributes": True}


class StockAddResult(BaseModel):
    message: str
    created: bool
    item: ItemOut


class ItemInfoOut(BaseModel):
    id: int
    name: str
    quantity: Decimal
    selling_rate: Decimal

    model_config = {"from_attributes": True}


class SaleCreateRequest(BaseModel):
    item_name: str = Field(max_length=160)
    quantity: Decimal = Field(gt=0, max_digits=14, decimal_places=3)
    selling_price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)

    @field_validator("item_name")
    @classmethod
    def strip_item_name(cls, value: str) -> str:
        return _required_text(value, "item_name")


class SaleOut(BaseModel):
    id: int
    item_id: int
    item_name: str
    quantity: Decimal
    selling_price: Decimal
    total_price: Decimal
    available_qty: Decimal
    created_at: datetime


class ItemReportRow(BaseModel):
    item_name: str
    available_qty: Decimal
    selling_rate: Decimal
    sold_qty: Decimal


class SalesReportQuery(BaseModel):
    date_from: date
    date_to: date

    @model_validator(mode="after")
    def check_order(self) -> "SalesReportQuery":
        if self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self


class SalesReportRow(BaseModel):
    created_at: datetime
    sale_date: date
    item_name: str
    quantity: Decimal
    selling_price: Decimal
    total_price: Decimal


class AnalyticsSummaryOut(BaseModel):
    total_stock: Decimal
    total_sales: Decimal
    monthly_sales: Decimal


class MonthlySalesQuery(BaseModel):
    months: int = Field(default=13, ge=1, le=36)


class MonthlySalesPoint(BaseModel):
    month_start: date
    month: str
    total_sales: Decimal
