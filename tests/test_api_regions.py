"""HTTP surface of the region blueprint."""

ACTOR = {"X-Actor": "api-user"}


class TestRegionRoutes:
    def test_create_get_and_list(self, client, region_data):
        res = client.post("/api/v1/regions", json=region_data(region_id=5), headers=ACTOR)
        assert res.status_code == 201
        assert res.get_json()["edited_by"] == "api-user"
        assert client.get("/api/v1/regions/5").get_json()["title"] == "Moscow"
        assert [r["region_id"] for r in client.get("/api/v1/regions").get_json()["items"]] == [5]

    def test_create_invalid_is_422(self, client, region_data):
        res = client.post("/api/v1/regions", json=region_data(name=""))
        assert res.status_code == 422
        assert res.get_json()["details"]["field"] == "name"

    def test_missing_region_is_404(self, client):
        assert client.get("/api/v1/regions/77").status_code == 404

    def test_list_by_cluster(self, client, make_region):
        make_region(region_id=1, cluster_id=3)
        make_region(region_id=2, cluster_id=4)
        items = client.get("/api/v1/regions?cluster_id=4").get_json()["items"]
        assert [r["region_id"] for r in items] == [2]


class TestPatchRegion:
    def test_mask_applies_only_listed_fields(self, client, make_region):
        make_region(region_id=1, name="msk", title="Moscow")
        res = client.patch(
            "/api/v1/regions/1",
            json={"region": {"name": "spb", "title": "Piter"}, "update_mask": ["title"]},
            headers=ACTOR,
        )
        assert res.status_code == 200
        body = res.get_json()
        assert (body["name"], body["title"]) == ("msk", "Piter")
        assert body["edited_by"] == "api-user"
        assert len(client.get("/api/v1/regions/1/history").get_json()["items"]) == 1

    def test_unknown_mask_field_is_422(self, client, make_region):
        make_region(region_id=1)
        res = client.patch(
            "/api/v1/regions/1", json={"region": {}, "update_mask": ["bogus", "title"]}
        )
        assert res.status_code == 422
        body = res.get_json()
        assert body["error"] == "Invalid update_mask"
        assert body["details"]["value"] == ["bogus"]

    def test_masked_cluster_without_integer_is_422(self, client, make_region):
        make_region(region_id=1)
        for changes in ({}, {"cluster_id": "abc"}):
            res = client.patch(
                "/api/v1/regions/1", json={"region": changes, "update_mask": ["cluster_id"]}
            )
            assert res.status_code == 422
            assert res.get_json()["details"]["field"] == "cluster_id"
        assert client.get("/api/v1/regions/1").get_json()["cluster_id"] == 1

    def test_mask_must_be_list_of_strings(self, client, make_region):
        make_region(region_id=1)
        res = client.patch("/api/v1/regions/1", json={"region": {}, "update_mask": "title"})
        assert res.status_code == 400


class TestDeleteAndHomeWarehouses:
    def test_delete_regions(self, client, make_region):
        make_region(region_id=1)
        res = client.delete("/api/v1/regions", json={"region_ids": [1, 2]})
        assert res.get_json() == {"deleted": 1}

    def test_upsert_and_list_home_warehouses(self, client, make_region, make_warehouse):
        make_warehouse()
        make_region(region_id=1)
        res = client.put(
            "/api/v1/regions/home-warehouses",
            json={"assignments": [{"region_id": 1, "warehouse_id": 1}]},
            headers=ACTOR,
        )
        assert res.get_json() == {"applied": 1}
        items = client.get("/api/v1/regions/home-warehouses").get_json()["items"]
        assert [(i["region_id"], i["warehouse_id"], i["edited_by"]) for i in items] == [(1, 1, "api-user")]

        by_warehouse = client.get("/api/v1/regions?warehouse_id=1").get_json()["items"]
        assert [r["region_id"] for r in by_warehouse] == [1]

    def test_upsert_unknown_warehouse_is_404(self, client, make_region):
        make_region(region_id=1)
        res = client.put(
            "/api/v1/regions/home-warehouses",
            json={"assignments": [{"region_id": 1, "warehouse_id": 99}]},
        )
        assert res.status_code == 404

    def test_upsert_malformed_is_400(self, client):
        res = client.put("/api/v1/regions/home-warehouses", json={"assignments": [{"region_id": "x"}]})
        assert res.status_code == 400
