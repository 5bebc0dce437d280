"""Open-data feed access: download and CSV parsing."""

from provider_directory.feed.fetcher import NRPZS_OPEN_DATA_URL, OpenDataFeedFetcher
from provider_directory.feed.parser import NrpzsCsvParser, ParseResult

__all__ = ["NRPZS_OPEN_DATA_URL", "NrpzsCsvParser", "OpenDataFeedFetcher", "ParseResult"]
