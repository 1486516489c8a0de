# fishstock/constants/error_codes.py

from enum import Enum


class ErrorCode(str, Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # ---------------- LOCATIONS ----------------
    LOCATION_NOT_FOUND = "LOCATION_NOT_FOUND"
    LOCATION_NAME_EXISTS = "LOCATION_NAME_EXISTS"
    LOCATION_VERSION_CONFLICT = "LOCATION_VERSION_CONFLICT"
    LOCATION_STATE_INVALID = "LOCATION_STATE_INVALID"

    # ---------------- LEDGER ----------------
    BATCH_NOT_FOUND = "BATCH_NOT_FOUND"
    BATCH_ALREADY_INGESTED = "BATCH_ALREADY_INGESTED"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    INSUFFICIENT_CAPACITY = "INSUFFICIENT_CAPACITY"
    LEDGER_INCONSISTENT = "LEDGER_INCONSISTENT"

    # ---------------- TRANSFERS ----------------
    TRANSFER_NOT_FOUND = "TRANSFER_NOT_FOUND"
    TRANSFER_INVALID_LOCATION = "TRANSFER_INVALID_LOCATION"
    TRANSFER_DUPLICATE_PENDING = "TRANSFER_DUPLICATE_PENDING"
    TRANSFER_INVALID_STATUS = "TRANSFER_INVALID_STATUS"

    # ---------------- ORDERS ----------------
    OUTLET_ORDER_NOT_FOUND = "OUTLET_ORDER_NOT_FOUND"
