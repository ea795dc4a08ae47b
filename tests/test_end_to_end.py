"""Create, reject a duplicate, synchronize, edit and re-synchronize through the HTTP surface."""

from masterdata.models.warehouse import SyncState
from masterdata.services import sync_queue
from masterdata.services.transaction import transaction


def test_warehouse_sync_lifecycle(client, warehouse_data):
    res = client.post("/api/v1/warehouses", json=warehouse_data(), headers={"X-Actor": "ops"})
    assert res.status_code == 201

    res = client.post(
        "/api/v1/warehouses",
        json=warehouse_data(warehouse_id=2, name="A", rezon_id=20, metazon_id=200),
    )
    assert res.status_code == 422
    assert res.get_json()["details"]["field"] == "name"

    # a new warehouse is NEVER; synchronize it once so the edit makes it OUTDATED
    with transaction():
        warehouse, state = sync_queue.try_claim_next()
        assert (warehouse.warehouse_id, state) == (1, SyncState.NEVER)
        sync_queue.mark_synchronized(warehouse.warehouse_id)
    assert client.get("/api/v1/warehouses/synchronization/pending").get_json() == {"pending": 0}

    res = client.put(
        "/api/v1/warehouses/1",
        json={"characteristics": {"barcode_only": True}},
        headers={"X-Actor": "ops"},
    )
    assert res.get_json()["sync_state"] == SyncState.OUTDATED.value

    with transaction():
        warehouse, state = sync_queue.try_claim_next()
        assert (warehouse.warehouse_id, state) == (1, SyncState.OUTDATED)
        sync_queue.mark_synchronized(warehouse.warehouse_id, external_id=999)

    body = client.get("/api/v1/warehouses/1").get_json()
    assert body["goodzon_id"] == 999
    assert body["is_synchronized"] is True
    assert body["sync_state"] == SyncState.SYNCED.value

    with transaction():
        assert sync_queue.try_claim_next() is None

    history = client.get("/api/v1/warehouses/1/history").get_json()["items"]
    assert len(history) == 1
    assert history[0]["characteristics"]["barcode_only"] is False
