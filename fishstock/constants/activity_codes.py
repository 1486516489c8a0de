# fishstock/constants/activity_codes.py

from enum import Enum


class ActivityCode(str, Enum):
    # ---------------- LOCATIONS ----------------
    CREATE_LOCATION = "CREATE_LOCATION"
    UPDATE_LOCATION = "UPDATE_LOCATION"

    # ---------------- STOCK ----------------
    INGEST_BATCH = "INGEST_BATCH"
    DISPOSE_STOCK = "DISPOSE_STOCK"
    DISPATCH_STOCK = "DISPATCH_STOCK"

    # ---------------- TRANSFERS ----------------
    CREATE_TRANSFER = "CREATE_TRANSFER"
    COMPLETE_TRANSFER = "COMPLETE_TRANSFER"
    REJECT_TRANSFER = "REJECT_TRANSFER"

    # ---------------- ORDERS ----------------
    RECORD_OUTLET_ORDER = "RECORD_OUTLET_ORDER"
