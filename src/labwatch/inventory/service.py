"""
Inventory service: ingestion routing and fleet read paths.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from ..change_monitor.baseline import BaselineBuilder
from ..change_monitor.models import DeviceDetail, IngestResponse
from ..change_monitor.service import ChangeMonitorService
from ..core.config import AppConfig
from ..core.exceptions import DeviceNotFoundError, InvalidStatusError
from .liveness import LivenessMonitor
from .models import (
    BreakdownEntry,
    Device,
    DeviceStatus,
    DeviceSummary,
    DeviceUpdate,
    FleetStats,
    SpecSnapshot,
    utcnow,
)
from .store import InventoryStore, InventoryTransaction

logger = logging.getLogger(__name__)

OS_FAMILIES = ("Windows 10", "Windows 11", "Windows 7", "Windows 8", "Ubuntu")


def os_family(name: Optional[str]) -> str:
    """Collapse detailed OS strings into dashboard groups."""
    name = re.sub(r"^Microsoft\s+", "", name or "Unknown")
    for family in OS_FAMILIES:
        if family in name:
            return family
    return name


class InventoryService:
    """
    Entry point for everything that touches the device inventory.

    Ingestion routes a snapshot either to the baseline builder (first
    contact) or to the change monitor (known hostname). Each ingestion runs
    in a single write transaction, so a failure leaves no partial state.
    """

    def __init__(
        self,
        store: InventoryStore,
        builder: Optional[BaselineBuilder] = None,
        change_monitor: Optional[ChangeMonitorService] = None,
        liveness: Optional[LivenessMonitor] = None,
        change_window_days: int = 7,
        recent_changes_limit: int = 10,
    ):
        """
        Initialize inventory service.

        Args:
            store: Inventory store
            builder: Baseline builder for first contact
            change_monitor: Reconciler for known devices
            liveness: Passive liveness monitor
            change_window_days: Window for listing change counts
            recent_changes_limit: Change records returned with a device
        """
        self.store = store
        self.builder = builder or BaselineBuilder()
        self.change_monitor = change_monitor or ChangeMonitorService()
        self.liveness = liveness or LivenessMonitor()
        self.change_window = timedelta(days=change_window_days)
        self.recent_changes_limit = recent_changes_limit

    @classmethod
    def from_config(cls, config: AppConfig) -> "InventoryService":
        store = InventoryStore(db_path=config.database.path, timeout=config.database.timeout)
        return cls(
            store=store,
            liveness=LivenessMonitor(stale_after_hours=config.monitor.stale_after_hours),
            change_window_days=config.monitor.change_window_days,
            recent_changes_limit=config.monitor.recent_changes_limit,
        )

    def ingest(self, snapshot: SpecSnapshot, now: Optional[datetime] = None) -> IngestResponse:
        """
        Accept a hardware snapshot from a reporting agent.

        Args:
            snapshot: Validated snapshot
            now: Contact time (default: now)

        Returns:
            Stored device, recent changes and the number of new records
        """
        if now is None:
            now = utcnow()

        with self.store.transaction() as tx:
            device = tx.get_device_by_hostname(snapshot.hostname)

            if device is None:
                device = tx.insert_device(self.builder.build_device(snapshot, now=now))
                logger.info(f"Registered {device.hostname} as new baseline (id={device.id})")
                return IngestResponse(
                    message="PC registered as baseline",
                    data=self._detail(tx, device),
                    changes=0,
                )

            result = self.change_monitor.reconcile(tx, device, snapshot, now=now)
            detail = self._detail(tx, tx.get_device(device.id))

        created = len(result.created)
        if created:
            message = f"{created} component change(s) detected"
        elif result.suppressed and result.drifts:
            message = "PC updated successfully (maintenance mode, changes suppressed)"
        else:
            message = "PC updated successfully"

        return IngestResponse(message=message, data=detail, changes=created)

    def list_devices(self, now: Optional[datetime] = None) -> List[DeviceSummary]:
        """
        List the fleet after running the liveness sweep.

        Args:
            now: Reference time (default: now)

        Returns:
            Devices with components and rolling change counts
        """
        if now is None:
            now = utcnow()

        with self.store.transaction() as tx:
            self.liveness.sweep(tx, now=now)
            return tx.list_devices(changes_since=now - self.change_window)

    def sweep(self, now: Optional[datetime] = None) -> List[str]:
        """Run the liveness sweep on its own."""
        with self.store.transaction() as tx:
            return self.liveness.sweep(tx, now=now)

    def get_device(self, device_id: int) -> DeviceDetail:
        with self.store.transaction(write=False) as tx:
            device = tx.get_device(device_id)
            if device is None:
                raise DeviceNotFoundError(device_id)
            return self._detail(tx, device)

    def update_device(self, device_id: int, update: DeviceUpdate) -> Device:
        """
        Apply an administrative edit (status, location).

        This is the only way into or out of maintenance.
        """
        status = None
        if update.status is not None:
            try:
                status = DeviceStatus(update.status)
            except ValueError:
                raise InvalidStatusError(update.status) from None

        with self.store.transaction() as tx:
            device = tx.get_device(device_id)
            if device is None:
                raise DeviceNotFoundError(device_id)

            if status is not None and status != device.status:
                logger.info(f"{device.hostname}: status {device.status.value} -> {status.value}")
                device.status = status
            if update.location is not None:
                device.location = update.location.strip() or None

            tx.update_device(device)
            return device

    def delete_device(self, device_id: int) -> None:
        with self.store.transaction() as tx:
            if not tx.delete_device(device_id):
                raise DeviceNotFoundError(device_id)
        logger.info(f"Deleted device {device_id}")

    def get_stats(self, now: Optional[datetime] = None) -> FleetStats:
        """
        Fleet counters for the dashboard, after the liveness sweep.

        Returns:
            Status counts, OS/location breakdowns and the latest changes
        """
        with self.store.transaction() as tx:
            self.liveness.sweep(tx, now=now)
            by_status = tx.count_by_status()
            os_rows = tx.count_by_column("os")
            location_rows = tx.count_by_column("location")
            latest = tx.latest_changes(limit=5)

        os_groups: Dict[str, int] = {}
        for name, total in os_rows:
            family = os_family(name)
            os_groups[family] = os_groups.get(family, 0) + total

        location_groups: Dict[str, int] = {}
        for name, total in location_rows:
            label = name or "Unassigned"
            location_groups[label] = location_groups.get(label, 0) + total

        return FleetStats(
            total_pcs=sum(by_status.values()),
            active_pcs=by_status.get(DeviceStatus.ACTIVE.value, 0),
            maintenance_pcs=by_status.get(DeviceStatus.MAINTENANCE.value, 0),
            offline_pcs=by_status.get(DeviceStatus.OFFLINE.value, 0),
            os_breakdown=_breakdown(os_groups),
            location_breakdown=_breakdown(location_groups),
            recent_changes=[
                {
                    "id": row["id"],
                    "severity": row["severity"],
                    "message": row["message"],
                    "sub_message": row["hostname"],
                    "location": row["location"] or "Unassigned",
                    "time": row["created_at"],
                    "change_type": row["change_type"],
                }
                for row in latest
            ],
        )

    def _detail(self, tx: InventoryTransaction, device: Device) -> DeviceDetail:
        return DeviceDetail(
            **device.model_dump(),
            recent_changes=tx.recent_changes(device.id, limit=self.recent_changes_limit),
        )


def _breakdown(groups: Dict[str, int]) -> List[BreakdownEntry]:
    entries = [BreakdownEntry(name=name, count=count) for name, count in groups.items()]
    return sorted(entries, key=lambda entry: entry.count, reverse=True)
