"""
Goodzon master-data gateway.

All outbound HTTP calls to the external master-data system go through this
class. Services and blueprints never call ``requests`` directly.

  - Retry: max 2 extra attempts, backoff 1 s → 4 s
  - Timeout: ``GOODZON_TIMEOUT`` seconds per attempt
  - 4xx responses other than 408/429 are not retried
  - Never raises for HTTP or network failures; callers check ``result.ok``

Testability: pass a mock ``session`` (and ``backoff=[0, 0]``) to
``GoodzonGateway()`` instead of letting it create a real requests.Session.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

logger = logging.getLogger(__name__)

_RETRY_MAX = 2
_RETRY_BACKOFF_SECONDS = [1, 4]
_DEFAULT_TIMEOUT = 30
_RETRYABLE_CLIENT_ERRORS = {408, 429}


class GatewayResult:
    """Structured return value of a push.

    Attributes:
        ok:           True on HTTP 2xx.
        status_code:  Last HTTP status (None on network-level failure).
        external_id:  Goodzon id from the response body, if any.
        error:        Human-readable error message or None.
        duration_ms:  Latency of the last attempt.
        attempts:     Number of HTTP attempts made.
    """

    def __init__(
        self,
        ok: bool,
        status_code: int | None,
        external_id: int | None,
        error: str | None,
        duration_ms: int,
        attempts: int = 1,
    ) -> None:
        self.ok = ok
        self.status_code = status_code
        self.external_id = external_id
        self.error = error
        self.duration_ms = duration_ms
        self.attempts = attempts

    def __repr__(self) -> str:
        return f"<GatewayResult ok={self.ok} status={self.status_code} external_id={self.external_id}>"


def warehouse_payload(warehouse) -> dict:
    """Request body for one warehouse."""
    return {
        "clearing_id": warehouse.warehouse_id,
        "goodzon_id": warehouse.goodzon_id,
        "name": warehouse.name,
        "rezon_id": warehouse.rezon_id,
        "metazon_id": warehouse.metazon_id,
        "address": warehouse.address,
        "gln": warehouse.gln,
        "type_id": warehouse.type_id,
        "characteristics": dict(warehouse.characteristics or {}),
    }


def _external_id(body: Any) -> int | None:
    if not isinstance(body, dict):
        return None
    value = body.get("goodzon_id", body.get("id"))
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class GoodzonGateway:
    """HTTP client for the external master-data system.

    Usage:
        gateway = GoodzonGateway(base_url=app.config["GOODZON_URL"])
        result = gateway.push(warehouse)
        if result.ok:
            sync_queue.mark_synchronized(warehouse.warehouse_id, result.external_id)
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: int = _DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
        backoff: list[int] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._backoff = _RETRY_BACKOFF_SECONDS if backoff is None else backoff

    @classmethod
    def from_config(cls, config, **kwargs) -> GoodzonGateway:
        return cls(config["GOODZON_URL"], timeout=config.get("GOODZON_TIMEOUT", _DEFAULT_TIMEOUT), **kwargs)

    @property
    def session(self) -> requests.Session:
        """Return (or lazily create) the requests.Session."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def push(self, warehouse) -> GatewayResult:
        """POST the warehouse to Goodzon, retrying transient failures."""
        payload = warehouse_payload(warehouse)
        last_error = "Unknown error"
        last_status: int | None = None
        duration_ms = 0

        for attempt in range(_RETRY_MAX + 1):
            try:
                t0 = time.perf_counter()
                resp = self.session.post(
                    self.base_url,
                    json=payload,
                    headers={"Accept": "application/json"},
                    timeout=self.timeout,
                )
                duration_ms = int((time.perf_counter() - t0) * 1000)
                last_status = resp.status_code

                if resp.ok:
                    try:
                        body = resp.json() if resp.content else {}
                    except ValueError:
                        body = {}
                    return GatewayResult(
                        ok=True,
                        status_code=resp.status_code,
                        external_id=_external_id(body),
                        error=None,
                        duration_ms=duration_ms,
                        attempts=attempt + 1,
                    )

                last_error = f"HTTP {resp.status_code}: {resp.text[:500]}"
                logger.warning(
                    "Goodzon push failed attempt=%d/%d status=%d",
                    attempt + 1, _RETRY_MAX + 1, resp.status_code,
                    extra={"warehouse_id": warehouse.warehouse_id},
                )
                if 400 <= resp.status_code < 500 and resp.status_code not in _RETRYABLE_CLIENT_ERRORS:
                    return GatewayResult(False, last_status, None, last_error, duration_ms, attempt + 1)

            except requests.Timeout:
                duration_ms = int(self.timeout * 1000)
                last_error = f"Request timed out after {self.timeout}s"
                logger.warning(
                    "Goodzon push timed out attempt=%d/%d",
                    attempt + 1, _RETRY_MAX + 1,
                    extra={"warehouse_id": warehouse.warehouse_id},
                )

            except requests.RequestException as exc:
                duration_ms = 0
                last_error = str(exc)[:500]
                logger.warning(
                    "Goodzon network error attempt=%d/%d error=%s",
                    attempt + 1, _RETRY_MAX + 1, last_error,
                    extra={"warehouse_id": warehouse.warehouse_id},
                )

            if attempt < _RETRY_MAX and self._backoff:
                sleep_s = self._backoff[min(attempt, len(self._backoff) - 1)]
                if sleep_s:
                    time.sleep(sleep_s)

        return GatewayResult(False, last_status, None, last_error, duration_ms, _RETRY_MAX + 1)
