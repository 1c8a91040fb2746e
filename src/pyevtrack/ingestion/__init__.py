"""Ingestion layer.

This package contains adapters that fetch/receive telemetry (REST polling,
MQTT push) and turn it into normalized samples and channel signals.
"""

__all__: list[str] = []
