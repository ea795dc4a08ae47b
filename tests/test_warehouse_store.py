"""Warehouse entity store: reads, conditional update, history snapshots, deletes."""

import pytest
from sqlalchemy import func, select

from masterdata.core.exceptions import NotFoundError
from masterdata.models import db
from masterdata.models.warehouse import SyncState, Warehouse, WarehouseHistory
from masterdata.services import history, warehouse_store
from masterdata.services.transaction import transaction


def _history_count(warehouse_id=None):
    stmt = select(func.count()).select_from(WarehouseHistory)
    if warehouse_id is not None:
        stmt = stmt.where(WarehouseHistory.warehouse_id == warehouse_id)
    return db.session.execute(stmt).scalar_one()


class TestCreateAndRead:
    def test_new_warehouse_is_never_synchronized(self, make_warehouse):
        wh = make_warehouse()
        assert wh["sync_state"] == SyncState.NEVER.value
        assert wh["is_synchronized"] is False
        assert wh["synchronized_at"] is None
        assert wh["created_by"] == "tester"

    def test_characteristics_normalised_on_create(self, make_warehouse):
        wh = make_warehouse(characteristics={"wms_system": True})
        assert wh["characteristics"] == {
            "barcode_only": False,
            "wms_system": True,
            "transit_warehouse": False,
            "refund_warehouse": False,
            "auto_replenishment": False,
            "closed": False,
        }

    def test_reads_ordered_by_name(self, make_warehouse):
        make_warehouse(warehouse_id=1, name="Charlie", rezon_id=1, metazon_id=1)
        make_warehouse(warehouse_id=2, name="Alpha", rezon_id=2, metazon_id=2)
        make_warehouse(warehouse_id=3, name="Bravo", rezon_id=3, metazon_id=3)
        names = [w.name for w in warehouse_store.iter_warehouses()]
        assert names == ["Alpha", "Bravo", "Charlie"]

    def test_read_is_lazy(self, make_warehouse):
        make_warehouse()
        iterator = warehouse_store.iter_warehouses()
        assert next(iterator).warehouse_id == 1

    def test_filter_by_ids_and_types(self, make_warehouse):
        make_warehouse(warehouse_id=1, name="A", rezon_id=1, metazon_id=1, type_id=1)
        make_warehouse(warehouse_id=2, name="B", rezon_id=2, metazon_id=2, type_id=2)
        make_warehouse(warehouse_id=3, name="C", rezon_id=3, metazon_id=3, type_id=5)
        assert [w.warehouse_id for w in warehouse_store.iter_warehouses(warehouse_ids=[1, 3])] == [1, 3]
        assert [w.warehouse_id for w in warehouse_store.iter_warehouses(type_ids=[2])] == [2]
        assert [w.warehouse_id for w in warehouse_store.iter_storage_warehouses()] == [1, 3]

    def test_search_name_trimmed_case_insensitive(self, make_warehouse):
        make_warehouse(warehouse_id=1, name="Moscow North", rezon_id=1, metazon_id=1)
        make_warehouse(warehouse_id=2, name="Kazan", rezon_id=2, metazon_id=2)
        found = list(warehouse_store.iter_warehouses(search_name="  NORTH "))
        assert [w.warehouse_id for w in found] == [1]

    def test_get_missing_raises(self):
        with pytest.raises(NotFoundError) as exc:
            warehouse_store.get_warehouse(404)
        assert str(exc.value) == "Warehouse id=404 not found"


class TestConditionalUpdate:
    def test_identical_update_writes_nothing(self, make_warehouse):
        wh = make_warehouse()
        stored = warehouse_store.get_warehouse(1)
        stamp = stored.sys_period_from
        with transaction():
            row, changed = warehouse_store.update_warehouse(
                1, {"name": wh["name"], "address": wh["address"]}, "someone-else"
            )
        assert changed == []
        assert row.created_by == "tester"
        assert warehouse_store.get_warehouse(1).sys_period_from == stamp
        assert _history_count() == 0

    def test_update_snapshots_previous_state(self, make_warehouse):
        make_warehouse()
        with transaction():
            _, changed = warehouse_store.update_warehouse(1, {"name": "A2"}, "editor")
        assert changed == ["name"]

        entries = history.warehouse_history(1)
        assert len(entries) == 1
        assert entries[0].name == "A"
        assert entries[0].created_by == "tester"
        assert entries[0].sys_period_to >= entries[0].sys_period_from

        current = warehouse_store.get_warehouse(1)
        assert current.name == "A2"
        assert current.created_by == "editor"
        # the new validity interval starts where the snapshot's ended
        assert current.sys_period_from == entries[0].sys_period_to

    def test_each_update_appends_one_row(self, make_warehouse):
        make_warehouse()
        for name in ("B", "C", "D"):
            with transaction():
                warehouse_store.update_warehouse(1, {"name": name}, "editor")
        assert [h.name for h in history.warehouse_history(1)] == ["A", "B", "C"]

    def test_update_of_missing_id_is_noop(self):
        with transaction():
            row, changed = warehouse_store.update_warehouse(999, {"name": "x"}, "editor")
        assert row is None and changed == []
        assert _history_count() == 0

    def test_rollback_discards_update_and_history(self, make_warehouse):
        make_warehouse()
        with pytest.raises(RuntimeError):
            with transaction():
                warehouse_store.update_warehouse(1, {"name": "Z"}, "editor")
                raise RuntimeError("boom")
        assert warehouse_store.get_warehouse(1).name == "A"
        assert _history_count() == 0


class TestDelete:
    def test_delete_snapshots_then_removes(self, make_warehouse):
        make_warehouse()
        with transaction():
            assert warehouse_store.delete_warehouses([1]) == 1
        assert db.session.get(Warehouse, 1) is None
        assert _history_count(1) == 1

    def test_empty_ids_delete_nothing(self, make_warehouse):
        make_warehouse()
        with transaction():
            assert warehouse_store.delete_warehouses([]) == 0
        assert db.session.get(Warehouse, 1) is not None

    def test_missing_ids_ignored(self):
        with transaction():
            assert warehouse_store.delete_warehouses([41, 42]) == 0


class TestLookups:
    def test_find_conflicting(self, make_warehouse):
        make_warehouse(warehouse_id=1, name="A", rezon_id=10, metazon_id=100)
        make_warehouse(warehouse_id=2, name="B", rezon_id=20, metazon_id=200)
        make_warehouse(warehouse_id=3, name="C", rezon_id=30, metazon_id=300)
        found = warehouse_store.find_conflicting_warehouses(9, "B", 30, 999)
        assert [w.warehouse_id for w in found] == [2, 3]

    def test_name_duplicated_excludes_self(self, make_warehouse):
        make_warehouse(warehouse_id=1, name="A", rezon_id=10, metazon_id=100)
        assert not warehouse_store.is_name_duplicated(1, "A")
        assert warehouse_store.is_name_duplicated(2, "A")

    def test_gln_addresses_of_other_warehouses(self, make_warehouse):
        make_warehouse(warehouse_id=1, name="A", rezon_id=1, metazon_id=1, gln="4600000000008")
        make_warehouse(warehouse_id=2, name="B", rezon_id=2, metazon_id=2, gln="4600000000008")
        assert warehouse_store.list_addresses_for_gln(1, "4600000000008") == [(2, "Moscow, Lenina st. 1")]

    def test_type_catalog_seeded(self):
        types = warehouse_store.list_warehouse_types()
        assert [t.type_id for t in types] == [1, 2, 3, 4, 5, 6, 7]
        assert [t.code for t in types if t.is_storage] == ["fulfillment", "distribution_center", "express"]
        with transaction():
            assert warehouse_store.seed_warehouse_types() == 0
