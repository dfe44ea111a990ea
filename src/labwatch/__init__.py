"""
Labwatch - lab computer inventory and hardware change tracking

Reporting agents on each lab computer submit hardware snapshots. The first
snapshot for a hostname becomes that computer's baseline; every later
snapshot is reconciled against it, and divergences (swapped components,
changed serial numbers) are recorded as deduplicated change records.

Main modules:
- inventory: Device models, SQLite store, ingestion and liveness
- change_monitor: Baseline building, drift analysis and reconciliation
- core: Configuration and exceptions
- ui: HTTP API
- cli: labctl operational CLI
"""

__version__ = "0.3.0"
__author__ = "Labwatch Team"

__all__ = ["__version__", "__author__"]
