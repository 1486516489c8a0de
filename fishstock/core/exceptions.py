from decimal import Decimal

from fastapi import HTTPException
from fishstock.constants.error_codes import ErrorCode


class AppException(HTTPException):
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details


# -------------------------
# CALLER ERRORS
# -------------------------
class ValidationError(AppException):
    """Malformed input. Surfaced to the caller verbatim."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: dict | None = None,
    ):
        super().__init__(400, message, error_code, details)


class NotFoundError(AppException):
    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.NOT_FOUND,
        details: dict | None = None,
    ):
        super().__init__(404, message, error_code, details)


class ConflictError(AppException):
    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFLICT,
        details: dict | None = None,
    ):
        super().__init__(409, message, error_code, details)


class InvalidTransitionError(ConflictError):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, ErrorCode.TRANSFER_INVALID_STATUS, details)


# -------------------------
# BUSINESS RULE VIOLATIONS
# -------------------------
class InsufficientStockError(ConflictError):
    """Requested more than the cell holds; details carry the shortfall."""

    def __init__(
        self,
        message: str,
        *,
        location_id: int,
        size_class: int,
        requested_quantity: int,
        available_quantity: int,
        requested_weight_kg: Decimal | None = None,
        available_weight_kg: Decimal | None = None,
    ):
        details = {
            "location_id": location_id,
            "size_class": size_class,
            "requested_quantity": requested_quantity,
            "available_quantity": available_quantity,
            "shortfall_quantity": max(requested_quantity - available_quantity, 0),
        }
        if requested_weight_kg is not None and available_weight_kg is not None:
            details["requested_weight_kg"] = float(requested_weight_kg)
            details["available_weight_kg"] = float(available_weight_kg)
            details["shortfall_kg"] = float(
                max(requested_weight_kg - available_weight_kg, Decimal("0.0"))
            )
        super().__init__(message, ErrorCode.INSUFFICIENT_STOCK, details)


class InsufficientCapacityError(ConflictError):
    """Destination cannot take the weight; details carry the shortfall."""

    def __init__(
        self,
        message: str,
        *,
        location_id: int,
        required_kg: Decimal,
        available_kg: Decimal,
    ):
        super().__init__(
            message,
            ErrorCode.INSUFFICIENT_CAPACITY,
            {
                "location_id": location_id,
                "required_kg": float(required_kg),
                "available_kg": float(available_kg),
                "shortfall_kg": float(required_kg - available_kg),
            },
        )


class DuplicatePendingTransferError(ConflictError):
    def __init__(self, message: str, *, existing_transfer_id: int, size_classes: list[int]):
        super().__init__(
            message,
            ErrorCode.TRANSFER_DUPLICATE_PENDING,
            {
                "existing_transfer_id": existing_transfer_id,
                "size_classes": size_classes,
            },
        )


# -------------------------
# INVARIANT VIOLATIONS
# -------------------------
class ConsistencyError(AppException):
    """The ledger broke an invariant. Fatal, never retried."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(500, message, ErrorCode.LEDGER_INCONSISTENT, details)
