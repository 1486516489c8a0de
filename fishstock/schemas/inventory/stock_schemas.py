from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from fishstock.constants.ledger_entry_type import LedgerEntryType
from fishstock.models.enums.stock_removal_kind import StockRemovalKind
from fishstock.schemas.types import WeightKg, PositiveWeightKg, SizeClass, Pieces


# -------------------------
# INPUT
# -------------------------
class StockItemIn(BaseModel):
    size_class: SizeClass
    quantity: Pieces
    weight_kg: PositiveWeightKg


def ensure_distinct_sizes(items: List[StockItemIn]) -> List[StockItemIn]:
    sizes = [i.size_class for i in items]
    if len(sizes) != len(set(sizes)):
        raise ValueError("Each size class may appear only once")
    return items


class BatchIngestCreate(BaseModel):
    """Stock handed over by the processing subsystem."""

    processing_record_id: str = Field(..., min_length=1, max_length=64)
    location_id: int
    batch_number: Optional[str] = Field(None, min_length=1, max_length=50)
    entry_at: Optional[datetime] = None
    items: List[StockItemIn] = Field(..., min_length=1)

    _distinct_sizes = field_validator("items")(ensure_distinct_sizes)


class DisposalCreate(BaseModel):
    location_id: int
    size_class: SizeClass
    quantity: Pieces
    reason: str = Field(..., min_length=2, max_length=255)


class DispatchCreate(BaseModel):
    location_id: int
    size_class: SizeClass
    quantity: Pieces
    outlet_order_id: Optional[int] = None


# -------------------------
# OUTPUT
# -------------------------
class LedgerEntryOut(BaseModel):
    id: int
    batch_id: int
    location_id: int
    size_class: int
    quantity: int
    weight_kg: WeightKg
    entry_type: LedgerEntryType
    entry_at: datetime
    reference_type: Optional[str]
    reference_id: Optional[str]

    class Config:
        from_attributes = True


class BatchShare(BaseModel):
    """Quantity and weight of one batch inside one cell."""

    batch_id: int
    batch_number: str
    quantity: int
    weight_kg: WeightKg
    first_entry_at: datetime


class BatchOut(BaseModel):
    id: int
    batch_number: str
    source_processing_record_id: str
    created_at: datetime
    created_by: Optional[str]
    entries: List[LedgerEntryOut]


class BatchCellOut(BaseModel):
    location_id: int
    location_name: str
    size_class: int
    quantity: int
    weight_kg: WeightKg


class BatchDetailsOut(BaseModel):
    id: int
    batch_number: str
    source_processing_record_id: str
    created_at: datetime
    remaining_quantity: int
    remaining_weight_kg: WeightKg
    cells: List[BatchCellOut]


class RemovedShare(BaseModel):
    batch_id: int
    batch_number: str
    quantity: int
    weight_kg: WeightKg


class StockRemovalOut(BaseModel):
    id: int
    kind: StockRemovalKind
    location_id: int
    size_class: int
    quantity: int
    weight_kg: WeightKg
    reason: Optional[str]
    outlet_order_id: Optional[int]
    created_by: Optional[str]
    created_at: datetime
    batches: List[RemovedShare]
