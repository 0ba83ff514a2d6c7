from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

DEFAULT_NAMESPACE = "default"

# Must fit DECIMAL(8,2) exactly; sent over the wire as a JSON number
Total = Annotated[
    Decimal,
    Field(max_digits=8, decimal_places=2),
    PlainSerializer(float, return_type=float, when_used="json"),
]


# =========================
# ORDER
# =========================
class Order(BaseModel):
    order_id: str = Field(min_length=1, max_length=64)
    namespace: str = Field(default=DEFAULT_NAMESPACE, max_length=64)
    total: Total

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @field_validator("namespace", mode="before")
    @classmethod
    def default_namespace(cls, value: Optional[str]):
        if value is None or value == "":
            return DEFAULT_NAMESPACE
        return value

    @field_validator("total")
    @classmethod
    def total_not_zero(cls, value: Decimal):
        if value == 0:
            raise ValueError("total cannot be zero")
        return value
