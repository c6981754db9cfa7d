"""Prometheus counters for the newtmgr protocol engine."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, generate_latest

OUTCOME_SUCCESS = "success"
OUTCOME_ERROR = "error"


class EngineMetrics:
    """Counters for packets, request outcomes and uploaded bytes.

    Each instance owns its registry so several managers (or tests) never
    collide on metric names.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.packets_sent = Counter(
            "newtbridge_packets_sent",
            "NMP packets written to the transport",
            registry=self.registry,
        )
        self.packets_received = Counter(
            "newtbridge_packets_received",
            "NMP packets decoded from the transport",
            registry=self.registry,
        )
        self.requests = Counter(
            "newtbridge_requests",
            "Completed requests by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self.upload_bytes = Counter(
            "newtbridge_upload_bytes",
            "Image bytes sent in upload chunks",
            registry=self.registry,
        )

    def record_sent(self) -> None:
        self.packets_sent.inc()

    def record_received(self) -> None:
        self.packets_received.inc()

    def record_completion(self, error: BaseException | None) -> None:
        self.requests.labels(outcome=OUTCOME_ERROR if error is not None else OUTCOME_SUCCESS).inc()

    def record_upload_chunk(self, length: int) -> None:
        self.upload_bytes.inc(length)

    def sample(self, name: str, **labels: str) -> float:
        value = self.registry.get_sample_value(name, labels or None)
        return value if value is not None else 0.0

    def render(self) -> bytes:
        """Return the Prometheus text exposition for this registry."""
        return generate_latest(self.registry)


__all__ = ["EngineMetrics", "OUTCOME_ERROR", "OUTCOME_SUCCESS"]
