"""
Synchronization worker loop.

One iteration = one transaction: claim the next pending warehouse, push it
to Goodzon, mark it synchronized, commit. A failed push rolls the
transaction back, which releases the row lock and leaves the warehouse
pending for the next run. Failed ids are skipped for the rest of this run
so one broken warehouse cannot starve the others.

Run from cron / a scheduler via ``flask sync-warehouses --limit N``. Several
workers may run at once; the claim queue keeps them on disjoint rows.
"""

import logging

from masterdata.services import sync_queue
from masterdata.services.transaction import transaction

logger = logging.getLogger(__name__)


class PushFailedError(Exception):
    def __init__(self, warehouse_id: int, reason: str | None) -> None:
        self.warehouse_id = warehouse_id
        super().__init__(f"Push of warehouse {warehouse_id} failed: {reason}")


def synchronize_pending(gateway, limit: int) -> dict:
    """Push up to ``limit`` pending warehouses through ``gateway``.

    Returns:
        ``{"claimed": n, "synchronized": n, "failed": n}``
    """
    stats = {"claimed": 0, "synchronized": 0, "failed": 0}
    failed_ids: set[int] = set()

    for _ in range(limit):
        try:
            with transaction():
                claimed = sync_queue.try_claim_next(exclude_ids=failed_ids)
                if claimed is None:
                    break
                warehouse, state = claimed
                stats["claimed"] += 1
                result = gateway.push(warehouse)
                if not result.ok:
                    raise PushFailedError(warehouse.warehouse_id, result.error)
                sync_queue.mark_synchronized(warehouse.warehouse_id, result.external_id)
            stats["synchronized"] += 1
            logger.info(
                "Warehouse synchronized",
                extra={
                    "warehouse_id": warehouse.warehouse_id,
                    "sync_state": state.value,
                    "goodzon_id": result.external_id,
                },
            )
        except PushFailedError as exc:
            failed_ids.add(exc.warehouse_id)
            stats["failed"] += 1
            logger.warning(str(exc), extra={"warehouse_id": exc.warehouse_id})

    logger.info(
        "Synchronization run finished: claimed=%d synchronized=%d failed=%d",
        stats["claimed"], stats["synchronized"], stats["failed"],
    )
    return stats
