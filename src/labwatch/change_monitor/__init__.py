"""
Change monitoring module for detecting hardware drift.

Compares each incoming snapshot against the device's baseline and records
what changed (swapped CPU, replaced RAM module, changed serial number, etc.).
"""

__all__ = ["models", "slots", "baseline", "analyzer", "service"]
