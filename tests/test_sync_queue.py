"""Synchronization claim queue: state transitions, claim order, lock semantics."""

import os
import threading

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Session

from masterdata.models import db
from masterdata.models.warehouse import SyncState, synchronization_state
from masterdata.services import sync_queue, warehouse_store
from masterdata.services.transaction import transaction


def _is_postgres() -> bool:
    return os.getenv("TEST_DATABASE_URL", "").startswith(("postgres://", "postgresql"))


class TestSynchronizationState:
    def test_derived_from_two_columns(self):
        from datetime import datetime, timezone

        now = datetime.now(timezone.utc)
        assert synchronization_state(False, None) is SyncState.NEVER
        assert synchronization_state(False, now) is SyncState.OUTDATED
        assert synchronization_state(True, now) is SyncState.SYNCED


class TestClaimStatement:
    def test_compiles_to_skip_locked(self):
        sql = str(sync_queue.claim_statement().compile(dialect=postgresql.dialect()))
        assert "ORDER BY warehouses.warehouse_id" in sql
        assert "LIMIT" in sql
        assert sql.rstrip().endswith("FOR UPDATE SKIP LOCKED")

    def test_exclusions_in_where_clause(self):
        sql = str(sync_queue.claim_statement([3, 4]).compile(dialect=postgresql.dialect()))
        assert "NOT IN" in sql


class TestClaimAndMark:
    def test_claim_returns_smallest_pending_id(self, make_warehouse):
        make_warehouse(warehouse_id=7, name="G", rezon_id=7, metazon_id=7)
        make_warehouse(warehouse_id=3, name="C", rezon_id=3, metazon_id=3)
        with transaction():
            warehouse, state = sync_queue.try_claim_next()
        assert warehouse.warehouse_id == 3
        assert state is SyncState.NEVER

    def test_claim_skips_excluded(self, make_warehouse):
        make_warehouse(warehouse_id=1, name="A", rezon_id=1, metazon_id=1)
        make_warehouse(warehouse_id=2, name="B", rezon_id=2, metazon_id=2)
        with transaction():
            warehouse, _ = sync_queue.try_claim_next(exclude_ids={1})
        assert warehouse.warehouse_id == 2

    def test_claim_on_empty_queue_returns_none(self):
        with transaction():
            assert sync_queue.try_claim_next() is None

    def test_mark_synchronized_sets_external_id(self, make_warehouse):
        make_warehouse()
        with transaction():
            assert sync_queue.mark_synchronized(1, external_id=999) == 1
        wh = warehouse_store.get_warehouse(1)
        assert wh.is_synchronized is True
        assert wh.synchronized_at is not None
        assert wh.goodzon_id == 999
        assert wh.sync_state is SyncState.SYNCED
        with transaction():
            assert sync_queue.try_claim_next() is None

    def test_mark_synchronized_without_external_id_keeps_stored(self, make_warehouse):
        make_warehouse()
        with transaction():
            sync_queue.mark_synchronized(1, external_id=555)
        with transaction():
            sync_queue.mark_needs_sync(1)
            sync_queue.mark_synchronized(1)
        assert warehouse_store.get_warehouse(1).goodzon_id == 555

    def test_mark_needs_sync_keeps_timestamp(self, make_warehouse):
        make_warehouse()
        with transaction():
            sync_queue.mark_synchronized(1, external_id=1)
        synced_at = warehouse_store.get_warehouse(1).synchronized_at
        with transaction():
            sync_queue.mark_needs_sync(1)
            sync_queue.mark_needs_sync(1)
        wh = warehouse_store.get_warehouse(1)
        assert wh.sync_state is SyncState.OUTDATED
        assert wh.synchronized_at == synced_at

    def test_count_and_bulk_reset(self, make_warehouse):
        for i in (1, 2, 3):
            make_warehouse(warehouse_id=i, name=f"W{i}", rezon_id=i, metazon_id=i)
        assert sync_queue.count_pending() == 3
        with transaction():
            for i in (1, 2, 3):
                sync_queue.mark_synchronized(i)
        assert sync_queue.count_pending() == 0
        with transaction():
            assert sync_queue.mark_not_synchronized([1, 3]) == 2
            assert sync_queue.mark_not_synchronized([]) == 0
        assert sync_queue.count_pending() == 2

    def test_rolled_back_claim_stays_pending(self, make_warehouse):
        make_warehouse()
        with pytest.raises(RuntimeError):
            with transaction():
                sync_queue.try_claim_next()
                raise RuntimeError("push failed")
        assert sync_queue.count_pending() == 1


@pytest.mark.skipif(not _is_postgres(), reason="row locks need PostgreSQL (set TEST_DATABASE_URL)")
class TestConcurrentClaims:
    def test_k_pending_rows_n_workers(self, make_warehouse):
        pending, workers = 3, 8
        for i in range(1, pending + 1):
            make_warehouse(warehouse_id=i, name=f"W{i}", rezon_id=i, metazon_id=i)

        engine = db.engine
        barrier = threading.Barrier(workers, timeout=30)
        claimed, errors = [], []
        lock = threading.Lock()

        def worker():
            with Session(engine) as session:
                try:
                    row = session.execute(sync_queue.claim_statement()).scalar_one_or_none()
                    with lock:
                        claimed.append(row.warehouse_id if row else None)
                    # hold the lock until every worker has tried
                    barrier.wait()
                except Exception as exc:  # surfaced through the assertion below
                    errors.append(exc)
                finally:
                    session.rollback()

        threads = [threading.Thread(target=worker) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)

        assert errors == []
        ids = [c for c in claimed if c is not None]
        assert sorted(ids) == [1, 2, 3]
        assert claimed.count(None) == workers - pending
