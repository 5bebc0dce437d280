from provider_directory.core.metrics import InMemoryRefreshMetricsCollector
from provider_directory.core.prometheus_exporter import RefreshPrometheusExporter


def test_metrics_collector_accumulates_batches() -> None:
    metrics = InMemoryRefreshMetricsCollector()
    metrics.add_persisted_batch(500)
    metrics.add_persisted_batch(200)
    metrics.increment_run("success")
    metrics.increment_run("success")
    metrics.increment_fetch_http_error(503)

    assert metrics.persisted_batches == 2
    assert metrics.persisted_records == 700
    assert metrics.refresh_run_total["success"] == 2
    assert metrics.fetch_http_errors_total["503"] == 1


def test_refresh_prometheus_exporter_renders_metrics() -> None:
    metrics = InMemoryRefreshMetricsCollector()
    metrics.observe_stage_duration("fetch", 120.0)
    metrics.observe_stage_duration("persist", 40.5)
    metrics.increment_run("success")
    metrics.increment_fetch_http_error(503)
    metrics.increment_fetch_retry()
    metrics.set_parsed(1200, 3)
    metrics.add_persisted_batch(500)
    metrics.set_purged_records(4)
    metrics.set_snapshot_entries(1200)
    metrics.observe_cycle_duration(2.5)

    output = RefreshPrometheusExporter().render(metrics)

    assert 'refresh_stage_duration_ms{stage="fetch"}' in output
    assert 'refresh_run_total{status="success"} 1.0' in output
    assert 'refresh_fetch_http_errors_total{code="503"}' in output
    assert "refresh_fetch_retry_total 1.0" in output
    assert "refresh_parsed_records 1200.0" in output
    assert "refresh_skipped_rows 3.0" in output
    assert "refresh_persisted_batches_total 1.0" in output
    assert "refresh_purged_records 4.0" in output
    assert "refresh_snapshot_entries 1200.0" in output
    assert "refresh_cycle_duration_seconds 2.5" in output
