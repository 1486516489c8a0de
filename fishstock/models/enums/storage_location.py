# fishstock/models/enums/storage_location.py
import enum

class StorageLocationType(str, enum.Enum):
    cold_storage = "cold_storage"
    freezer = "freezer"
    ambient = "ambient"
    processing_area = "processing_area"


class StorageLocationStatus(str, enum.Enum):
    active = "active"
    maintenance = "maintenance"
    inactive = "inactive"
