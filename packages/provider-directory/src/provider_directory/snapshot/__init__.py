"""Provider snapshot archives."""

from provider_directory.snapshot.builder import (
    SNAPSHOT_ENTRY_NAME,
    SnapshotBuilder,
    SnapshotResult,
    snapshot_file_name,
)

__all__ = ["SNAPSHOT_ENTRY_NAME", "SnapshotBuilder", "SnapshotResult", "snapshot_file_name"]
