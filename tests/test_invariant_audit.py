from datetime import datetime, timezone
from decimal import Decimal

import pytest

from fishstock.constants.ledger_entry_type import LedgerEntryType
from fishstock.models.inventory.ledger_entry_models import LedgerEntry
from fishstock.services.inventory.invariant_audit_service import audit_ledger_invariants

pytestmark = pytest.mark.asyncio


async def test_clean_ledger_has_no_violations(db, make_location, ingest):
    loc = await make_location("Cold Room A")
    await ingest(loc.id, "PR-1", [(3, 10, "5.0")])

    assert await audit_ledger_invariants(db) == []


async def test_negative_cell_is_reported(db, make_location, ingest, caplog):
    loc = await make_location("Cold Room A")
    batch = await ingest(loc.id, "PR-1", [(3, 10, "5.0")])

    db.add(
        LedgerEntry(
            batch_id=batch.id,
            location_id=loc.id,
            size_class=3,
            quantity=-15,
            weight_kg=Decimal("-7.5"),
            entry_type=LedgerEntryType.DISPOSAL,
            entry_at=datetime(2026, 2, 1, tzinfo=timezone.utc),
        )
    )
    await db.commit()

    with caplog.at_level("CRITICAL", logger="fishstock.alerts"):
        violations = await audit_ledger_invariants(db)

    kinds = {v["kind"] for v in violations}
    assert {"negative_cell", "negative_batch", "negative_batch_share"} <= kinds
    assert any(r.levelname == "CRITICAL" for r in caplog.records)
