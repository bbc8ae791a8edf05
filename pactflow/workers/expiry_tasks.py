import asyncio
import logging
from datetime import datetime, timezone

from celery.exceptions import MaxRetriesExceededError

from pactflow.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3, default_retry_delay=60, acks_late=True)
def task_expire_overdue_contracts(self) -> dict:
    """Reclassify every overdue, non-terminal contract to Expired."""
    logger.info("[expire_overdue] Starting sweep")
    return asyncio.run(_expire_overdue_async(self))


async def _expire_overdue_async(task) -> dict:
    from pactflow.config import Settings
    from pactflow.database import create_engine, create_session_factory

    settings = Settings()
    engine = create_engine(settings)
    factory = create_session_factory(engine)

    try:
        result = await sweep_overdue_contracts(factory, settings, datetime.now(timezone.utc))
        logger.info(
            f"[expire_overdue] Done: {result['expired']} expired, "
            f"{result['skipped']} skipped of {result['scanned']} scanned"
        )
        return result

    except MaxRetriesExceededError:
        logger.error("[expire_overdue] Max retries exceeded")
        raise

    except Exception as exc:
        logger.exception(f"[expire_overdue] Sweep failed: {exc}")
        raise task.retry(exc=exc)

    finally:
        await engine.dispose()


async def sweep_overdue_contracts(factory, settings, now: datetime) -> dict:
    """Expire each overdue contract in its own transaction.

    One contract failing does not stop the sweep; the next run picks it up.
    """
    from pactflow.exceptions import PactflowError
    from pactflow.repositories.audit_repo import AuditRepository
    from pactflow.repositories.base import ContractFilter
    from pactflow.repositories.contract_repo import ContractRepository
    from pactflow.services import temporal
    from pactflow.services.lifecycle_service import LifecycleService

    async with factory() as session:
        candidates = await ContractRepository(session).scan_contracts(
            ContractFilter(ended_before=temporal.as_day(now))
        )
        overdue_ids = [c.id for c in candidates if temporal.is_overdue(c, now)]

    expired = skipped = 0
    for contract_id in overdue_ids:
        async with factory() as session:
            service = LifecycleService(
                ContractRepository(session),
                AuditRepository(session),
                identity_domain=settings.SYSTEM_IDENTITY_DOMAIN,
            )
            try:
                contract = await service.get_contract(contract_id, now)
                await session.commit()
            except PactflowError as exc:
                await session.rollback()
                logger.warning(f"[expire_overdue] Contract {contract_id} skipped: {exc}")
                skipped += 1
                continue
        if contract.status == "Expired":
            expired += 1
        else:
            skipped += 1

    return {"scanned": len(candidates), "expired": expired, "skipped": skipped}
