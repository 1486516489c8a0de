import logging

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from fishstock.core.config import LEDGER_AUDIT_TOLERANCE_KG
from fishstock.models.inventory.ledger_entry_models import LedgerEntry
from fishstock.services.inventory import capacity_service

logger = logging.getLogger(__name__)
alert_logger = logging.getLogger("fishstock.alerts")


async def _negative_groups(db: AsyncSession, *columns) -> list[dict]:
    qty = func.sum(LedgerEntry.quantity)
    kg = func.sum(LedgerEntry.weight_kg)
    rows = (
        await db.execute(
            select(*columns, qty, kg)
            .group_by(*columns)
            # SQLite sums weights as floats; ignore sub-unit noise
            .having(or_(qty < 0, kg <= -LEDGER_AUDIT_TOLERANCE_KG))
        )
    ).all()

    keys = [c.key for c in columns]
    return [
        {**dict(zip(keys, row[:-2])), "quantity": int(row[-2]), "weight_kg": float(row[-1])}
        for row in rows
    ]


async def audit_ledger_invariants(db: AsyncSession) -> list[dict]:
    """Scan the whole ledger and report every broken invariant.

    Each violation is raised on the alert logger; the list is returned for
    callers that want to act on it.
    """
    violations: list[dict] = []

    for kind, columns in (
        ("negative_cell", (LedgerEntry.location_id, LedgerEntry.size_class)),
        ("negative_batch", (LedgerEntry.batch_id,)),
        ("negative_batch_share", (LedgerEntry.batch_id, LedgerEntry.location_id, LedgerEntry.size_class)),
    ):
        for found in await _negative_groups(db, *columns):
            violations.append({"kind": kind, **found})

    for row in await capacity_service.capacity_status(db):
        if row.current_usage_kg > row.capacity_kg:
            violations.append(
                {
                    "kind": "over_capacity",
                    "location_id": row.location_id,
                    "capacity_kg": float(row.capacity_kg),
                    "current_usage_kg": float(row.current_usage_kg),
                }
            )

    for violation in violations:
        alert_logger.critical("Ledger invariant violated: %s", violation["kind"], extra={"violation": violation})

    logger.info("Ledger invariant audit finished", extra={"violations": len(violations)})
    return violations
