"""
Shared fixtures for Labwatch tests.

Run with: pytest tests/
"""

import copy
from datetime import datetime, timezone

import pytest

from labwatch.inventory.models import SpecSnapshot
from labwatch.inventory.service import InventoryService
from labwatch.inventory.store import InventoryStore

T0 = datetime(2026, 10, 1, 8, 0, tzinfo=timezone.utc)

BASE_SNAPSHOT = {
    "hostname": "LAB1-PC01",
    "brand": "Dell",
    "os": "Microsoft Windows 10 Pro",
    "cpuModel": "Intel i5-10400",
    "cpuCores": 6,
    "cpuClock": "2.90 GHz",
    "gpu": "Intel UHD Graphics 630",
    "motherboard": "0K3CM7",
    "motherboardSerial": "MB-0001",
    "ramDetails": [
        {"manufacturer": "Samsung", "capacity": "8 GB", "serialNumber": "RAM-A", "slotIndex": 0},
        {"manufacturer": "Samsung", "capacity": "8 GB", "serialNumber": "RAM-B", "slotIndex": 1},
    ],
    "storageDetails": [
        {"model": "KINGSTON SA400", "size": "240 GB", "serialNumber": "DISK-1", "diskIndex": 0},
        {"model": "WD Blue 1TB", "size": "1 TB", "serialNumber": "DISK-2", "diskIndex": 1},
    ],
    "interfaces": [
        {"name": "Ethernet", "macAddr": "D8:9E:F3:11:22:33", "ipv4": "10.10.1.57", "isUp": True},
    ],
}


def make_payload(**overrides) -> dict:
    """Copy of the base agent payload with top-level fields overridden."""
    payload = copy.deepcopy(BASE_SNAPSHOT)
    payload.update(overrides)
    return payload


def make_snapshot(**overrides) -> SpecSnapshot:
    return SpecSnapshot.model_validate(make_payload(**overrides))


@pytest.fixture
def store(tmp_path):
    return InventoryStore(db_path=str(tmp_path / "inventory.db"))


@pytest.fixture
def service(store):
    return InventoryService(store=store)


@pytest.fixture
def baseline(service):
    """A device registered from the base snapshot at T0."""
    return service.ingest(make_snapshot(), now=T0).data
