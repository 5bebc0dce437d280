from __future__ import annotations

from provider_directory.core.metrics import InMemoryRefreshMetricsCollector
from provider_directory.core.prometheus_exporter import RefreshPrometheusExporter

refresh_metrics = InMemoryRefreshMetricsCollector()
refresh_exporter = RefreshPrometheusExporter()
