import enum

class StockRemovalKind(str, enum.Enum):
    disposal = "disposal"
    dispatch = "dispatch"
