from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fishstock.core.config import INVARIANT_AUDIT_HOUR
from fishstock.core.db import AsyncSessionLocal

from fishstock.services.inventory.invariant_audit_service import audit_ledger_invariants

scheduler = AsyncIOScheduler()

@scheduler.scheduled_job("cron", hour=INVARIANT_AUDIT_HOUR, minute=0)  # nightly
async def ledger_invariant_audit_job():
    async with AsyncSessionLocal() as db:
        await audit_ledger_invariants(db)
