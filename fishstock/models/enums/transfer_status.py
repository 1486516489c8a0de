import enum

class TransferStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    completed = "completed"


IN_FLIGHT_TRANSFER_STATUSES = (TransferStatus.pending, TransferStatus.approved)
