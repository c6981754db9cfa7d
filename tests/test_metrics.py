"""Tests for the engine Prometheus counters."""

from newtbridge.errors import NewtError, NewtErrorKind
from newtbridge.metrics import OUTCOME_ERROR, OUTCOME_SUCCESS, EngineMetrics


def test_counters_start_at_zero() -> None:
    metrics = EngineMetrics()

    assert metrics.sample("newtbridge_packets_sent_total") == 0.0
    assert metrics.sample("newtbridge_requests_total", outcome=OUTCOME_SUCCESS) == 0.0


def test_record_completion_splits_by_outcome() -> None:
    metrics = EngineMetrics()

    metrics.record_completion(None)
    metrics.record_completion(NewtError(NewtErrorKind.USER_CANCELLED))
    metrics.record_completion(OSError("link"))

    assert metrics.sample("newtbridge_requests_total", outcome=OUTCOME_SUCCESS) == 1.0
    assert metrics.sample("newtbridge_requests_total", outcome=OUTCOME_ERROR) == 2.0


def test_registries_are_isolated() -> None:
    first, second = EngineMetrics(), EngineMetrics()

    first.record_sent()
    first.record_upload_chunk(146)

    assert first.sample("newtbridge_packets_sent_total") == 1.0
    assert second.sample("newtbridge_packets_sent_total") == 0.0
    assert first.sample("newtbridge_upload_bytes_total") == 146.0


def test_render_exposes_text_format() -> None:
    metrics = EngineMetrics()
    metrics.record_received()

    text = metrics.render().decode()

    assert "newtbridge_packets_received_total 1.0" in text
    assert "# HELP newtbridge_upload_bytes" in text
    assert metrics.registry.get_sample_value("newtbridge_upload_bytes_total") == 0.0
