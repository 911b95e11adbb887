from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from .models import MAX_QUANTITY

# Amounts are Numeric(12, 2): at most 12 significant digits, so the float
# written to JSON prints back as the same decimal.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- Products ----------
class ProductIn(WireModel):
    name: str = Field(min_length=1, max_length=255)
    price: Decimal = Field(gt=0, max_digits=12, decimal_places=2)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Product name is required")
        return v.strip()


class ProductOut(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    name: str
    price: Money


# ---------- Orders ----------
class OrderItemIn(WireModel):
    product_id: int = Field(ge=1)
    quantity: int = Field(ge=1, le=MAX_QUANTITY)


class OrderCreate(WireModel):
    buyer_email: EmailStr
    items: List[OrderItemIn] = Field(min_length=1)


class OrderItemOut(WireModel):
    id: Optional[int]
    product_id: int
    product_name: str
    price: Money
    quantity: int


class OrderOut(WireModel):
    id: Optional[int]
    buyer_email: str
    order_time: datetime
    total_value: Money
    items: List[OrderItemOut]
