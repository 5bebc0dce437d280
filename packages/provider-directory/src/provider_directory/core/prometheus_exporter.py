from __future__ import annotations

from prometheus_client import CollectorRegistry, Gauge, generate_latest

from provider_directory.core.metrics import InMemoryRefreshMetricsCollector


class RefreshPrometheusExporter:
    def __init__(self) -> None:
        self._registry = CollectorRegistry()
        self._stage_duration = Gauge(
            "refresh_stage_duration_ms",
            "Refresh cycle stage duration in milliseconds",
            labelnames=("stage",),
            registry=self._registry,
        )
        self._run_total = Gauge(
            "refresh_run_total",
            "Refresh cycles grouped by outcome",
            labelnames=("status",),
            registry=self._registry,
        )
        self._fetch_http_errors_total = Gauge(
            "refresh_fetch_http_errors_total",
            "Open-data feed HTTP errors grouped by code",
            labelnames=("code",),
            registry=self._registry,
        )
        self._fetch_retry_total = Gauge(
            "refresh_fetch_retry_total",
            "Open-data feed fetch retries",
            registry=self._registry,
        )
        self._parsed_records = Gauge(
            "refresh_parsed_records",
            "Provider records parsed in the last cycle",
            registry=self._registry,
        )
        self._skipped_rows = Gauge(
            "refresh_skipped_rows",
            "Feed rows skipped in the last cycle",
            registry=self._registry,
        )
        self._persisted_records = Gauge(
            "refresh_persisted_records_total",
            "Provider records persisted",
            registry=self._registry,
        )
        self._persisted_batches = Gauge(
            "refresh_persisted_batches_total",
            "Provider batches committed",
            registry=self._registry,
        )
        self._purged_records = Gauge(
            "refresh_purged_records",
            "Stale provider rows removed in the last cycle",
            registry=self._registry,
        )
        self._snapshot_entries = Gauge(
            "refresh_snapshot_entries",
            "Entries in the published provider snapshot",
            registry=self._registry,
        )
        self._cycle_duration_seconds = Gauge(
            "refresh_cycle_duration_seconds",
            "Duration of the last refresh cycle",
            registry=self._registry,
        )

    def render(self, metrics: InMemoryRefreshMetricsCollector) -> str:
        latest_by_stage: dict[str, float] = {}
        for item in metrics.stage_durations:
            latest_by_stage[item.stage] = item.duration_ms
        for stage, duration in latest_by_stage.items():
            self._stage_duration.labels(stage=stage).set(duration)
        for status, count in metrics.refresh_run_total.items():
            self._run_total.labels(status=status).set(count)
        for code, count in metrics.fetch_http_errors_total.items():
            self._fetch_http_errors_total.labels(code=code).set(count)
        self._fetch_retry_total.set(metrics.fetch_retry_total)
        self._parsed_records.set(metrics.parsed_records)
        self._skipped_rows.set(metrics.skipped_rows)
        self._persisted_records.set(metrics.persisted_records)
        self._persisted_batches.set(metrics.persisted_batches)
        self._purged_records.set(metrics.purged_records)
        self._snapshot_entries.set(metrics.snapshot_entries)
        self._cycle_duration_seconds.set(metrics.last_cycle_duration_seconds)
        return generate_latest(self._registry).decode("utf-8")
