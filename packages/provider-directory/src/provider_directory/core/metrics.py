from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass


@dataclass(frozen=True)
class StageDuration:
    stage: str
    duration_ms: float


class InMemoryRefreshMetricsCollector:
    def __init__(self) -> None:
        self.stage_durations: list[StageDuration] = []
        self.refresh_run_total: dict[str, int] = defaultdict(int)
        self.fetch_http_errors_total: dict[str, int] = defaultdict(int)
        self.fetch_retry_total = 0
        self.parsed_records = 0
        self.skipped_rows = 0
        self.persisted_records = 0
        self.persisted_batches = 0
        self.purged_records = 0
        self.snapshot_entries = 0
        self.last_cycle_duration_seconds = 0.0

    def observe_stage_duration(self, stage: str, duration_ms: float) -> None:
        self.stage_durations.append(StageDuration(stage=stage, duration_ms=duration_ms))

    def increment_run(self, status: str) -> None:
        self.refresh_run_total[status] += 1

    def increment_fetch_http_error(self, code: int | str) -> None:
        self.fetch_http_errors_total[str(code)] += 1

    def increment_fetch_retry(self) -> None:
        self.fetch_retry_total += 1

    def set_parsed(self, parsed: int, skipped: int) -> None:
        self.parsed_records = parsed
        self.skipped_rows = skipped

    def add_persisted_batch(self, record_count: int) -> None:
        self.persisted_batches += 1
        self.persisted_records += record_count

    def set_purged_records(self, count: int) -> None:
        self.purged_records = count

    def set_snapshot_entries(self, count: int) -> None:
        self.snapshot_entries = count

    def observe_cycle_duration(self, duration_seconds: float) -> None:
        self.last_cycle_duration_seconds = duration_seconds
