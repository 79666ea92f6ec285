from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

CUSTOMER_NUMBER_PATTERN = r"^[0-9]{10}$"


class CustomerNumberQuery(BaseModel):
    customer_number: str = Field(pattern=CUSTOMER_NUMBER_PATTERN)

    @field_validator("customer_number", mode="before")
    @classmethod
    def strip_number(cls, value):
        return value.strip() if isinstance(value, str) else value


class DebtEntryCreate(CustomerNumberQuery):
    customer_name: str = Field(max_length=160)
    total: Decimal = Field(default=Decimal("0"), ge=0, max_digits=14, decimal_places=2)
    credit: Decimal = Field(default=Decimal("0"), ge=0, max_digits=14, decimal_places=2)

    @field_validator("customer_name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("customer_name must not be empty")
        return normalized

    @field_validator("total", "credit", mode="before")
    @classmethod
    def absent_amount_is_zero(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return Decimal("0")
        return value


class DebtEntryOut(BaseModel):
    id: int
    customer_name: str
    customer_number: str
    total: Decimal
    credit: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


class LedgerEntryOut(DebtEntryOut):
    balance: Decimal


class CustomerDuesOut(BaseModel):
    customer_name: str
    customer_number: str
    total: Decimal
    credit: Decimal
    balance: Decimal
