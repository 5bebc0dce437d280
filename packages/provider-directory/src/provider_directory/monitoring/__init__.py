"""HTTP surface: probes, metrics, status, snapshot download and detail lookups."""
