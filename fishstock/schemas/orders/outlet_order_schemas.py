from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from fishstock.models.enums.outlet_order_status import OutletOrderStatus
from fishstock.schemas.types import WeightKg, SizeClass


class OutletOrderCreate(BaseModel):
    outlet_id: str = Field(..., min_length=1, max_length=64)
    outlet_name: Optional[str] = Field(None, max_length=150)
    requested_sizes: List[SizeClass] = Field(..., min_length=1)
    requested_quantity_kg: WeightKg = Field(..., ge=0)
    requested_grade: Optional[str] = Field(None, max_length=50)
    order_date: Optional[datetime] = None
    status: OutletOrderStatus = OutletOrderStatus.pending

    @field_validator("requested_sizes")
    @classmethod
    def dedupe_sizes(cls, v: List[int]) -> List[int]:
        return sorted(set(v))


class OutletOrderOut(BaseModel):
    id: int
    outlet_id: str
    outlet_name: Optional[str]
    requested_sizes: List[int]
    requested_quantity_kg: WeightKg
    requested_grade: Optional[str]
    order_date: datetime
    status: OutletOrderStatus
    created_at: datetime
    created_by: Optional[str]

    class Config:
        from_attributes = True
