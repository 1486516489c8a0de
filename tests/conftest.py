"""
Pytest fixtures for the fishstock test suite.

Provides:
- An in-memory SQLite database per test (aiosqlite, StaticPool)
- Small builders for locations, batches and outlet orders
- Authenticated users for the service layer
"""

import os

os.environ["APP_ENV"] = "test"
os.environ["DB_TYPE"] = "sqlite"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_ACCESS_SECRET_KEY"] = "test-secret-key"
os.environ["ENABLE_SCHEDULER"] = "false"

from datetime import datetime
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool

from fishstock.core.db import build_engine, build_sessionmaker, init_models
from fishstock.core.locks import location_locks
from fishstock.models.enums.storage_location import StorageLocationType, StorageLocationStatus
from fishstock.models.enums.outlet_order_status import OutletOrderStatus
from fishstock.models.orders.outlet_order_models import OutletOrder
from fishstock.schemas.inventory.stock_schemas import BatchIngestCreate, StockItemIn
from fishstock.schemas.inventory.storage_location_schemas import StorageLocationCreate
from fishstock.services.inventory import stock_service, storage_location_service
from fishstock.utils.get_user import CurrentUser


# =====================================================
# DATABASE
# =====================================================
@pytest_asyncio.fixture
async def engine():
    eng = build_engine("sqlite+aiosqlite://", "sqlite", poolclass=StaticPool)
    await init_models(eng)

    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def fresh_location_locks():
    # asyncio locks bind to the loop that first waits on them
    location_locks._locks.clear()
    yield
    location_locks._locks.clear()


# =====================================================
# USERS
# =====================================================
@pytest.fixture
def admin():
    return CurrentUser(id="admin-1", role="admin")


@pytest.fixture
def clerk():
    return CurrentUser(id="clerk-1", role="inventory")


# =====================================================
# BUILDERS
# =====================================================
@pytest.fixture
def make_location(db, admin):
    async def _make(
        name: str,
        capacity_kg: str = "100.0",
        status: StorageLocationStatus = StorageLocationStatus.active,
        location_type: StorageLocationType = StorageLocationType.cold_storage,
    ):
        return await storage_location_service.create_location(
            db,
            StorageLocationCreate(
                name=name,
                location_type=location_type,
                capacity_kg=Decimal(capacity_kg),
                status=status,
            ),
            admin,
        )

    return _make


@pytest.fixture
def ingest(db, clerk):
    async def _ingest(location_id: int, record_id: str, items, entry_at=None, batch_number=None):
        return await stock_service.add_stock_from_processing(
            db,
            BatchIngestCreate(
                processing_record_id=record_id,
                location_id=location_id,
                batch_number=batch_number,
                entry_at=entry_at,
                items=[
                    StockItemIn(size_class=size, quantity=qty, weight_kg=Decimal(kg))
                    for size, qty, kg in items
                ],
            ),
            clerk,
        )

    return _ingest


@pytest.fixture
def make_order(db):
    async def _make(
        outlet_id: str,
        sizes: list[int],
        kg: str,
        order_date: datetime,
        status: OutletOrderStatus = OutletOrderStatus.confirmed,
        grade: str | None = None,
    ):
        order = OutletOrder(
            outlet_id=outlet_id,
            requested_sizes=sizes,
            requested_quantity_kg=Decimal(kg),
            requested_grade=grade,
            order_date=order_date,
            status=status,
        )
        db.add(order)
        await db.commit()
        return order

    return _make
