"""masterdata.integrations — External service gateway modules.

All outbound HTTP calls go through a gateway in this package, never via
bare `requests` calls in services or blueprints. Every call is:
  - Bounded by a timeout
  - Retried with backoff on transient failures
  - Reported as a structured result instead of an exception

Current gateways:
  goodzon_gateway.GoodzonGateway — Goodzon master-data REST API
"""
