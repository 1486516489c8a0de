"""Read-only projections served to the dashboards and the outlet side.

Nothing here writes; every call recomputes from the ledger so repeated calls
without intervening writes return equal results.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fishstock.core.config import OLDEST_BATCHES_DEFAULT_LIMIT
from fishstock.services.inventory import aggregator_service, capacity_service


async def inventory_by_location(db: AsyncSession):
    return await aggregator_service.inventory_by_location(db)


async def oldest_batches(db: AsyncSession, limit: Optional[int] = None):
    return await aggregator_service.oldest_batches_for_removal(
        db, limit if limit is not None else OLDEST_BATCHES_DEFAULT_LIMIT
    )


async def size_demand_statistics(db: AsyncSession):
    return await aggregator_service.size_demand_statistics(db)


async def batch_details(db: AsyncSession, batch_id: int):
    return await aggregator_service.batch_details(db, batch_id)


async def capacity_status(db: AsyncSession):
    return await capacity_service.capacity_status(db)


async def available_destinations(db: AsyncSession, exclude_location_id: Optional[int], required_weight_kg):
    return await capacity_service.available_destinations(
        db,
        exclude_location_id=exclude_location_id,
        required_weight_kg=required_weight_kg,
    )
