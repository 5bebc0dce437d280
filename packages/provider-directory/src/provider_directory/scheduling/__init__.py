"""Calendar trigger for the refresh cycle."""

from provider_directory.scheduling.scheduler import REFRESH_JOB_ID, RefreshScheduler

__all__ = ["REFRESH_JOB_ID", "RefreshScheduler"]
