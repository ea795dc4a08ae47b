"""Region store, home-warehouse assignments and the priority collaborator."""

import pytest
from sqlalchemy import func, select

from masterdata.core.exceptions import NotFoundError
from masterdata.models import db
from masterdata.models.priority import WarehousePriority
from masterdata.models.region import RegionHomeWarehouse, RegionHistory
from masterdata.services import (
    assignment_service,
    history,
    priority_service,
    region_store,
    warehouse_store,
)
from masterdata.services.transaction import transaction


def _assignment(region_id):
    return db.session.get(RegionHomeWarehouse, region_id)


class TestRegionStore:
    def test_reads_ordered_by_id(self, make_region):
        make_region(region_id=30, title="C")
        make_region(region_id=10, title="A")
        make_region(region_id=20, title="B")
        assert [r.region_id for r in region_store.iter_regions()] == [10, 20, 30]
        assert [r.region_id for r in region_store.iter_regions([30, 10])] == [10, 30]

    def test_filter_by_clusters(self, make_region):
        make_region(region_id=1, cluster_id=5)
        make_region(region_id=2, cluster_id=6)
        make_region(region_id=3, cluster_id=5)
        assert [r.region_id for r in region_store.iter_regions_by_clusters([5])] == [1, 3]

    def test_filter_by_home_warehouse_ordered_by_title(self, make_region, make_warehouse):
        make_warehouse(warehouse_id=1)
        make_region(region_id=1, title="Zelenograd")
        make_region(region_id=2, title="Arbat")
        make_region(region_id=3, title="Khimki")
        with transaction():
            assignment_service.upsert_home_warehouses([(1, 1), (2, 1)], "tester")
        titles = [r.title for r in region_store.iter_regions_by_warehouses([1])]
        assert titles == ["Arbat", "Zelenograd"]

    def test_update_always_writes_history(self, make_region):
        make_region(region_id=1)
        region = region_store.get_region(1)
        with transaction():
            region_store.update_region(region, {"title": region.title}, "editor")
        entries = history.region_history(1)
        assert len(entries) == 1
        assert entries[0].edited_by == "tester"
        assert region_store.get_region(1).edited_by == "editor"

    def test_get_missing_raises(self):
        with pytest.raises(NotFoundError):
            region_store.get_region(77)

    def test_delete_snapshots_and_cascades_assignment(self, make_region, make_warehouse):
        make_warehouse(warehouse_id=1)
        make_region(region_id=1)
        with transaction():
            assignment_service.upsert_home_warehouses([(1, 1)], "tester")
        with transaction():
            assert region_store.delete_regions([1, 2]) == 1
        assert db.session.execute(select(func.count()).select_from(RegionHistory)).scalar_one() == 1
        assert _assignment(1) is None

    def test_delete_empty_list(self, make_region):
        make_region(region_id=1)
        with transaction():
            assert region_store.delete_regions([]) == 0


class TestAssignments:
    def test_upsert_replaces_previous_assignment(self, make_region, make_warehouse):
        make_warehouse(warehouse_id=1, name="A", rezon_id=1, metazon_id=1)
        make_warehouse(warehouse_id=2, name="B", rezon_id=2, metazon_id=2)
        make_region(region_id=1)
        with transaction():
            assignment_service.upsert_home_warehouses([(1, 1)], "first")
        with transaction():
            assignment_service.upsert_home_warehouses([(1, 2)], "second")
        row = _assignment(1)
        assert row.warehouse_id == 2
        assert row.edited_by == "second"
        assert db.session.execute(select(func.count()).select_from(RegionHomeWarehouse)).scalar_one() == 1

    def test_last_pair_in_batch_wins(self, make_region, make_warehouse):
        make_warehouse(warehouse_id=1, name="A", rezon_id=1, metazon_id=1)
        make_warehouse(warehouse_id=2, name="B", rezon_id=2, metazon_id=2)
        make_region(region_id=1)
        with transaction():
            assert assignment_service.upsert_home_warehouses([(1, 1), (1, 2)], "tester") == 2
        assert _assignment(1).warehouse_id == 2

    def test_unknown_region_rejected(self, make_warehouse):
        make_warehouse(warehouse_id=1)
        with pytest.raises(NotFoundError) as exc:
            with transaction():
                assignment_service.upsert_home_warehouses([(404, 1)], "tester")
        assert exc.value.resource == "Region"

    def test_deleting_warehouse_cascades(self, make_region, make_warehouse):
        make_warehouse(warehouse_id=1)
        make_region(region_id=1)
        with transaction():
            assignment_service.upsert_home_warehouses([(1, 1)], "tester")
        with transaction():
            warehouse_store.delete_warehouses([1])
        assert _assignment(1) is None


class TestPriorities:
    def _setup(self, make_region, make_warehouse):
        make_warehouse(warehouse_id=1, name="A", rezon_id=1, metazon_id=1)
        make_warehouse(warehouse_id=2, name="B", rezon_id=2, metazon_id=2)
        make_region(region_id=10, title="Parent")
        make_region(region_id=11, title="Child", parent_id=10)
        make_region(region_id=12, title="Orphan")
        with transaction():
            priority_service.set_priority(10, 1, 1, "tester")
            priority_service.set_priority(10, 2, 2, "tester")
            priority_service.set_priority(11, 2, 9, "tester")

    def test_list_filters(self, make_region, make_warehouse):
        self._setup(make_region, make_warehouse)
        assert len(priority_service.list_priorities()) == 3
        assert [p.warehouse_id for p in priority_service.list_priorities(region_ids=[10])] == [1, 2]
        assert [p.region_id for p in priority_service.list_priorities(warehouse_ids=[2])] == [10, 11]
        assert priority_service.has_priorities(1)

    def test_sync_copies_parent_priorities(self, make_region, make_warehouse):
        self._setup(make_region, make_warehouse)
        with transaction():
            assert priority_service.sync_region_priorities(11, "sync") == 2
        rows = priority_service.list_priorities(region_ids=[11])
        assert [(p.warehouse_id, p.priority, p.edited_by) for p in rows] == [(1, 1, "sync"), (2, 2, "sync")]

    def test_sync_without_parent_is_noop(self, make_region, make_warehouse):
        self._setup(make_region, make_warehouse)
        with transaction():
            assert priority_service.sync_region_priorities(12, "sync") == 0
        count = db.session.execute(select(func.count()).select_from(WarehousePriority)).scalar_one()
        assert count == 3

    def test_sale_regions_include_children(self, make_region, make_warehouse):
        self._setup(make_region, make_warehouse)
        assert priority_service.list_sale_regions() == {1: [10, 11], 2: [10, 11]}
