"""Log formatters and the request timing headers."""

import json
import logging

from masterdata.middleware.logging_config import JSONFormatter, ReadableFormatter


def _record(**extra):
    record = logging.LogRecord("masterdata.test", logging.INFO, __file__, 1, "Warehouse synchronized", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    def test_json_includes_domain_context(self):
        out = json.loads(JSONFormatter().format(_record(warehouse_id=3, actor="ops", sync_state="never")))
        assert out["message"] == "Warehouse synchronized"
        assert out["warehouse_id"] == 3
        assert out["actor"] == "ops"
        assert out["sync_state"] == "never"
        assert "region_id" not in out

    def test_readable_appends_key_values(self):
        line = ReadableFormatter(color=False).format(_record(duration_ms=12.4, region_id=7))
        assert "INFO" in line
        assert line.endswith("Warehouse synchronized [12ms] region_id=7")


class TestRequestTiming:
    def test_request_id_echoed(self, client):
        res = client.get("/api/v1/health/ready", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"
        assert float(res.headers["X-Request-Duration-Ms"]) >= 0

    def test_request_id_generated(self, client):
        res = client.get("/api/v1/health/ready")
        assert len(res.headers["X-Request-ID"]) == 12
