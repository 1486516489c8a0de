# Inventory
from fishstock.models.inventory.storage_location_models import StorageLocation
from fishstock.models.inventory.batch_models import Batch
from fishstock.models.inventory.ledger_entry_models import LedgerEntry
from fishstock.models.inventory.transfer_models import TransferRequest, TransferItem
from fishstock.models.inventory.stock_removal_models import StockRemoval

# Orders (read for demand statistics)
from fishstock.models.orders.outlet_order_models import OutletOrder

# Support
from fishstock.models.support.activity_models import UserActivity
