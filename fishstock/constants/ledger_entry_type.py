# fishstock/constants/ledger_entry_type.py

from enum import Enum


class LedgerEntryType(str, Enum):
    ADDITION = "addition"
    TRANSFER_OUT = "transfer_out"
    TRANSFER_IN = "transfer_in"
    DISPOSAL = "disposal"
    DISPATCH = "dispatch"


POSITIVE_ENTRY_TYPES = {
    LedgerEntryType.ADDITION,
    LedgerEntryType.TRANSFER_IN,
}

NEGATIVE_ENTRY_TYPES = {
    LedgerEntryType.TRANSFER_OUT,
    LedgerEntryType.DISPOSAL,
    LedgerEntryType.DISPATCH,
}


class LedgerReferenceType(str, Enum):
    PROCESSING = "PROCESSING"
    TRANSFER = "TRANSFER"
    REMOVAL = "REMOVAL"
