from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from fishstock.models.enums.storage_location import StorageLocationType, StorageLocationStatus
from fishstock.schemas.types import WeightKg, PositiveWeightKg


class StorageLocationCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    location_type: StorageLocationType
    capacity_kg: PositiveWeightKg
    status: StorageLocationStatus = StorageLocationStatus.active
    description: Optional[str] = Field(None, max_length=255)
    temperature_celsius: Optional[float] = None


class StorageLocationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    location_type: Optional[StorageLocationType] = None
    capacity_kg: Optional[PositiveWeightKg] = None
    status: Optional[StorageLocationStatus] = None
    description: Optional[str] = Field(None, max_length=255)
    temperature_celsius: Optional[float] = None
    version: int


class StorageLocationOut(BaseModel):
    id: int
    name: str
    location_type: StorageLocationType
    capacity_kg: WeightKg
    status: StorageLocationStatus
    description: Optional[str]
    temperature_celsius: Optional[float]
    version: int

    created_at: datetime
    updated_at: Optional[datetime]
    created_by: Optional[str]
    updated_by: Optional[str]

    class Config:
        from_attributes = True


class CapacityStatusOut(BaseModel):
    location_id: int
    name: str
    location_type: StorageLocationType
    status: StorageLocationStatus
    capacity_kg: WeightKg
    current_usage_kg: WeightKg
    available_capacity_kg: WeightKg
    utilization_percent: WeightKg


class StorageLocationUsageOut(StorageLocationOut):
    current_usage_kg: WeightKg
    available_capacity_kg: WeightKg
    utilization_percent: WeightKg
