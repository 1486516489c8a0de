from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime

from fishstock.models.enums.transfer_status import TransferStatus
from fishstock.schemas.types import WeightKg
from fishstock.schemas.inventory.stock_schemas import StockItemIn, ensure_distinct_sizes


class TransferCreate(BaseModel):
    source_location_id: int
    destination_location_id: int
    items: List[StockItemIn] = Field(..., min_length=1)
    notes: Optional[str] = Field(None, max_length=500)

    _distinct_sizes = field_validator("items")(ensure_distinct_sizes)


class TransferReject(BaseModel):
    reason: str = Field(..., min_length=2, max_length=500)

    @model_validator(mode="after")
    def strip_reason(self):
        self.reason = self.reason.strip()
        if not self.reason:
            raise ValueError("Rejection reason cannot be blank")
        return self


class TransferItemOut(BaseModel):
    size_class: int
    quantity: int
    weight_kg: WeightKg

    class Config:
        from_attributes = True


class TransferOut(BaseModel):
    id: int
    source_location_id: int
    destination_location_id: int
    status: TransferStatus
    items: List[TransferItemOut]
    total_weight_kg: WeightKg
    notes: Optional[str]

    requested_by: str
    decided_by: Optional[str]
    decided_at: Optional[datetime]
    rejection_reason: Optional[str]

    created_at: datetime
    updated_at: Optional[datetime]
