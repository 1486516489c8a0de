# fishstock/schemas/inventory/report_schemas.py

from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from fishstock.schemas.types import WeightKg
from fishstock.schemas.inventory.stock_schemas import BatchShare


# -------------------------
# INVENTORY BY LOCATION
# -------------------------
class InventoryCellOut(BaseModel):
    location_id: int
    location_name: str
    size_class: int
    quantity: int
    weight_kg: WeightKg
    contributing_batches: List[BatchShare]


# -------------------------
# FIFO REMOVAL CANDIDATES
# -------------------------
class OldestBatchOut(BaseModel):
    batch_id: int
    batch_number: str
    source_processing_record_id: str
    first_added_at: datetime
    days_in_storage: int
    remaining_quantity: int
    remaining_weight_kg: WeightKg
    size_classes: List[int]
    location_ids: List[int]


# -------------------------
# DEMAND
# -------------------------
class SizeDemandOut(BaseModel):
    size_class: int
    total_orders: int
    total_weight_kg_requested: WeightKg
    unique_outlets: int
    first_order_date: datetime
    last_order_date: datetime
    days_span: int
    most_requested_grade: str
