"""
Change monitoring service: reconciles snapshots against stored baselines.
"""

import logging
from datetime import datetime
from typing import Optional

from ..inventory.models import Device, DeviceStatus, SpecSnapshot, utcnow
from ..inventory.store import InventoryTransaction
from .analyzer import DriftAnalyzer
from .baseline import build_interfaces
from .models import ChangeRecord, ComponentDrift, ReconcileResult

logger = logging.getLogger(__name__)


class ChangeMonitorService:
    """
    Applies drift analysis to the store.

    For a known device, one reconciliation pass:
    1. Updates the device's scalar fields and liveness status
    2. Refreshes reported network interfaces
    3. Diffs every component family against the baseline
    4. Opens a change record for new drift, or clears drift that healed

    The baseline itself is never modified here.
    """

    def __init__(self, analyzer: Optional[DriftAnalyzer] = None):
        """
        Initialize change monitor service.

        Args:
            analyzer: Drift analyzer (default: new DriftAnalyzer)
        """
        self.analyzer = analyzer or DriftAnalyzer()

    def reconcile(
        self,
        tx: InventoryTransaction,
        device: Device,
        snapshot: SpecSnapshot,
        now: Optional[datetime] = None,
    ) -> ReconcileResult:
        """
        Reconcile a snapshot against a stored device.

        Args:
            tx: Open inventory transaction
            device: Stored device with its baseline components
            snapshot: Incoming snapshot for the same hostname
            now: Contact time (default: now)

        Returns:
            Reconcile result with created and healed records
        """
        if now is None:
            now = utcnow()

        self._touch(tx, device, snapshot, now)

        result = ReconcileResult()
        for component_type, drift in self.analyzer.compare(device, snapshot).items():
            if drift is None:
                result.matched.append(component_type)
            else:
                result.drifts[component_type] = drift

        if device.status == DeviceStatus.MAINTENANCE:
            result.suppressed = True
            if result.drifts:
                logger.info(
                    f"{device.hostname} is in maintenance; suppressed drift in "
                    f"{', '.join(c.value for c in result.drifts)}"
                )
            return result

        for component_type in result.matched:
            deleted = tx.heal(device.id, component_type)
            if deleted:
                result.healed[component_type] = deleted
                logger.info(
                    f"{device.hostname}: {component_type.value} matches baseline again, "
                    f"cleared {deleted} warning(s)"
                )

        for drift in result.drifts.values():
            record = self._record_drift(tx, device, drift, now)
            if record is not None:
                result.created.append(record)

        if not result.created:
            logger.debug(f"{device.hostname}: no new changes")

        return result

    def _touch(
        self, tx: InventoryTransaction, device: Device, snapshot: SpecSnapshot, now: datetime
    ) -> None:
        """Update contact time, status and reported scalars."""
        if device.status == DeviceStatus.OFFLINE:
            logger.info(f"{device.hostname} is back online")
            device.status = DeviceStatus.ACTIVE

        device.last_seen = now
        device.brand = snapshot.brand or device.brand
        device.os = snapshot.os or device.os
        device.os_version = snapshot.os_version or device.os_version
        device.os_build = snapshot.os_build or device.os_build
        device.arch = snapshot.arch or device.arch

        tx.update_device(device)
        if snapshot.interfaces:
            tx.sync_interfaces(device.id, build_interfaces(snapshot.interfaces))

    def _record_drift(
        self,
        tx: InventoryTransaction,
        device: Device,
        drift: ComponentDrift,
        now: datetime,
    ) -> Optional[ChangeRecord]:
        """
        Open a record for drift unless the same drift is already open.

        Returns:
            The new record, or None if it duplicated the open one
        """
        current = tx.get_open_change(device.id, drift.component_type)
        if current is not None and current.new_value == drift.new_value:
            return None

        record = tx.open_change(
            ChangeRecord(
                device_id=device.id,
                component_type=drift.component_type,
                change_type=drift.change_type,
                severity=drift.severity,
                old_value=drift.old_value,
                new_value=drift.new_value,
                message=drift.message,
                created_at=now,
            )
        )
        logger.info(
            f"Change detected on {device.hostname}: {drift.message} "
            f"(severity: {drift.severity.value})"
        )
        return record
