"""
Device inventory persistent storage.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..change_monitor.models import ChangeRecord, ComponentType, Severity
from .models import (
    CpuComponent,
    Device,
    DeviceStatus,
    DeviceSummary,
    GpuComponent,
    MotherboardComponent,
    NetworkInterface,
    RamModule,
    StorageDisk,
)

logger = logging.getLogger(__name__)

ALERT_SEVERITIES = (Severity.WARNING.value, Severity.CRITICAL.value)

SCHEMA = """
CREATE TABLE IF NOT EXISTS devices (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    hostname TEXT NOT NULL UNIQUE,
    status TEXT NOT NULL DEFAULT 'active',
    first_seen TEXT NOT NULL,
    last_seen TEXT NOT NULL,
    brand TEXT,
    os TEXT,
    os_version TEXT,
    os_build TEXT,
    arch TEXT,
    location TEXT
);

CREATE INDEX IF NOT EXISTS idx_devices_last_seen ON devices(last_seen);
CREATE INDEX IF NOT EXISTS idx_devices_status ON devices(status);

CREATE TABLE IF NOT EXISTS cpus (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    device_id INTEGER NOT NULL UNIQUE,
    model TEXT NOT NULL,
    cores INTEGER NOT NULL DEFAULT 0,
    clock TEXT,
    FOREIGN KEY(device_id) REFERENCES devices(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS gpus (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    device_id INTEGER NOT NULL UNIQUE,
    model TEXT NOT NULL,
    FOREIGN KEY(device_id) REFERENCES devices(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS motherboards (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    device_id INTEGER NOT NULL UNIQUE,
    model TEXT NOT NULL,
    serial_number TEXT,
    FOREIGN KEY(device_id) REFERENCES devices(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS rams (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    device_id INTEGER NOT NULL,
    slot_index INTEGER NOT NULL,
    manufacturer TEXT,
    model TEXT,
    capacity TEXT,
    speed TEXT,
    type TEXT,
    form_factor TEXT,
    serial_number TEXT,
    bank_label TEXT,
    UNIQUE(device_id, slot_index),
    FOREIGN KEY(device_id) REFERENCES devices(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS storages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    device_id INTEGER NOT NULL,
    disk_index INTEGER NOT NULL,
    manufacturer TEXT,
    model TEXT,
    size TEXT,
    interface TEXT,
    type TEXT,
    serial_number TEXT,
    UNIQUE(device_id, disk_index),
    FOREIGN KEY(device_id) REFERENCES devices(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS network_interfaces (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    device_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    mac_addr TEXT,
    ipv4 TEXT,
    is_up INTEGER NOT NULL DEFAULT 1,
    bandwidth TEXT,
    UNIQUE(device_id, name),
    FOREIGN KEY(device_id) REFERENCES devices(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS change_records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    device_id INTEGER NOT NULL,
    component_type TEXT NOT NULL,
    change_type TEXT NOT NULL,
    severity TEXT NOT NULL,
    old_value TEXT,
    new_value TEXT,
    message TEXT NOT NULL,
    created_at TEXT NOT NULL,
    is_open INTEGER NOT NULL DEFAULT 1,
    FOREIGN KEY(device_id) REFERENCES devices(id) ON DELETE CASCADE
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_change_records_open
    ON change_records(device_id, component_type) WHERE is_open = 1;
CREATE INDEX IF NOT EXISTS idx_change_records_device_created
    ON change_records(device_id, created_at DESC);
"""


def _ts(value: datetime) -> str:
    """Serialize a datetime as fixed-width UTC ISO text so it sorts lexically."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value)


class InventoryTransaction:
    """
    Data access bound to one open transaction.

    Obtained from ``InventoryStore.transaction()``; every statement issued
    through it commits or rolls back together.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # Devices

    def get_device_id(self, hostname: str) -> Optional[int]:
        row = self.conn.execute(
            "SELECT id FROM devices WHERE hostname = ?", (hostname,)
        ).fetchone()
        return row["id"] if row else None

    def get_device(self, device_id: int) -> Optional[Device]:
        """
        Load a device with all of its components.

        Args:
            device_id: Device id

        Returns:
            Device or None if not found
        """
        row = self.conn.execute("SELECT * FROM devices WHERE id = ?", (device_id,)).fetchone()
        if not row:
            return None
        device = self._row_to_device(dict(row))
        self._load_components(device)
        return device

    def get_device_by_hostname(self, hostname: str) -> Optional[Device]:
        device_id = self.get_device_id(hostname)
        if device_id is None:
            return None
        return self.get_device(device_id)

    def insert_device(self, device: Device) -> Device:
        """
        Insert a device and its nested baseline components.

        Args:
            device: Unsaved device

        Returns:
            The device with database ids filled in
        """
        cursor = self.conn.execute(
            """
            INSERT INTO devices (
                hostname, status, first_seen, last_seen, brand, os,
                os_version, os_build, arch, location
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                device.hostname,
                device.status.value,
                _ts(device.first_seen),
                _ts(device.last_seen),
                device.brand,
                device.os,
                device.os_version,
                device.os_build,
                device.arch,
                device.location,
            ),
        )
        device_id = cursor.lastrowid

        if device.cpu:
            self.conn.execute(
                "INSERT INTO cpus (device_id, model, cores, clock) VALUES (?, ?, ?, ?)",
                (device_id, device.cpu.model, device.cpu.cores, device.cpu.clock),
            )
        if device.gpu:
            self.conn.execute(
                "INSERT INTO gpus (device_id, model) VALUES (?, ?)",
                (device_id, device.gpu.model),
            )
        if device.motherboard:
            self.conn.execute(
                "INSERT INTO motherboards (device_id, model, serial_number) VALUES (?, ?, ?)",
                (device_id, device.motherboard.model, device.motherboard.serial_number),
            )
        for ram in device.rams:
            self.conn.execute(
                """
                INSERT INTO rams (
                    device_id, slot_index, manufacturer, model, capacity, speed,
                    type, form_factor, serial_number, bank_label
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    device_id,
                    ram.slot_index,
                    ram.manufacturer,
                    ram.model,
                    ram.capacity,
                    ram.speed,
                    ram.type,
                    ram.form_factor,
                    ram.serial_number,
                    ram.bank_label,
                ),
            )
        for disk in device.storages:
            self.conn.execute(
                """
                INSERT INTO storages (
                    device_id, disk_index, manufacturer, model, size,
                    interface, type, serial_number
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    device_id,
                    disk.disk_index,
                    disk.manufacturer,
                    disk.model,
                    disk.size,
                    disk.interface,
                    disk.type,
                    disk.serial_number,
                ),
            )
        self.sync_interfaces(device_id, device.networks)

        logger.debug(f"Inserted device {device.hostname} (id={device_id})")
        return self.get_device(device_id)

    def update_device(self, device: Device) -> None:
        """
        Write a device's scalar fields. Baseline components are untouched.

        Args:
            device: Device with an id
        """
        self.conn.execute(
            """
            UPDATE devices SET
                status = ?, last_seen = ?, brand = ?, os = ?, os_version = ?,
                os_build = ?, arch = ?, location = ?
            WHERE id = ?
            """,
            (
                device.status.value,
                _ts(device.last_seen),
                device.brand,
                device.os,
                device.os_version,
                device.os_build,
                device.arch,
                device.location,
                device.id,
            ),
        )

    def sync_interfaces(self, device_id: int, interfaces: List[NetworkInterface]) -> None:
        """
        Refresh reported network interfaces by name.

        Known names are updated in place, new names are added; interfaces
        that were not reported are kept.
        """
        for net in interfaces:
            self.conn.execute(
                """
                INSERT INTO network_interfaces (device_id, name, mac_addr, ipv4, is_up, bandwidth)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(device_id, name) DO UPDATE SET
                    mac_addr = excluded.mac_addr,
                    ipv4 = excluded.ipv4,
                    is_up = excluded.is_up,
                    bandwidth = excluded.bandwidth
                """,
                (device_id, net.name, net.mac_addr, net.ipv4, int(net.is_up), net.bandwidth),
            )

    def delete_device(self, device_id: int) -> bool:
        cursor = self.conn.execute("DELETE FROM devices WHERE id = ?", (device_id,))
        return cursor.rowcount > 0

    def list_devices(self, changes_since: datetime) -> List[DeviceSummary]:
        """
        List all devices with components and recent change counts.

        Args:
            changes_since: Start of the change-count window

        Returns:
            Devices ordered by last contact, most recent first
        """
        rows = self.conn.execute(
            """
            SELECT d.*, (
                SELECT COUNT(*) FROM change_records c
                WHERE c.device_id = d.id
                  AND c.severity IN (?, ?)
                  AND c.created_at >= ?
            ) AS change_count
            FROM devices d
            ORDER BY d.last_seen DESC
            """,
            (*ALERT_SEVERITIES, _ts(changes_since)),
        ).fetchall()

        devices = []
        for row in rows:
            data = dict(row)
            summary = DeviceSummary(
                **self._row_to_device(data).model_dump(),
                change_count=data["change_count"],
            )
            self._load_components(summary)
            devices.append(summary)
        return devices

    def mark_stale_offline(self, cutoff: datetime) -> List[str]:
        """
        Demote active devices not seen since ``cutoff`` to offline.

        Returns:
            Hostnames that were demoted
        """
        rows = self.conn.execute(
            "SELECT hostname FROM devices WHERE status = ? AND last_seen < ?",
            (DeviceStatus.ACTIVE.value, _ts(cutoff)),
        ).fetchall()
        if rows:
            self.conn.execute(
                "UPDATE devices SET status = ? WHERE status = ? AND last_seen < ?",
                (DeviceStatus.OFFLINE.value, DeviceStatus.ACTIVE.value, _ts(cutoff)),
            )
        return [row["hostname"] for row in rows]

    # Change records

    def get_open_change(
        self, device_id: int, component_type: ComponentType
    ) -> Optional[ChangeRecord]:
        row = self.conn.execute(
            """
            SELECT * FROM change_records
            WHERE device_id = ? AND component_type = ? AND is_open = 1
            """,
            (device_id, component_type.value),
        ).fetchone()
        return self._row_to_change(dict(row)) if row else None

    def open_change(self, record: ChangeRecord) -> ChangeRecord:
        """
        Record new drift as the open record for its component type.

        Any previously open record for the same (device, component type) is
        closed but kept as history.
        """
        self.conn.execute(
            """
            UPDATE change_records SET is_open = 0
            WHERE device_id = ? AND component_type = ? AND is_open = 1
            """,
            (record.device_id, record.component_type.value),
        )
        cursor = self.conn.execute(
            """
            INSERT INTO change_records (
                device_id, component_type, change_type, severity, old_value,
                new_value, message, created_at, is_open
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, 1)
            """,
            (
                record.device_id,
                record.component_type.value,
                record.change_type.value,
                record.severity.value,
                record.old_value,
                record.new_value,
                record.message,
                _ts(record.created_at),
            ),
        )
        return record.model_copy(update={"id": cursor.lastrowid, "is_open": True})

    def heal(self, device_id: int, component_type: ComponentType) -> int:
        """
        Clear drift for a component type that matches its baseline again.

        Warning records are deleted; critical records stay as history but
        are no longer open.

        Returns:
            Number of warning records deleted
        """
        cursor = self.conn.execute(
            """
            DELETE FROM change_records
            WHERE device_id = ? AND component_type = ? AND severity = ?
            """,
            (device_id, component_type.value, Severity.WARNING.value),
        )
        self.conn.execute(
            """
            UPDATE change_records SET is_open = 0
            WHERE device_id = ? AND component_type = ? AND is_open = 1
            """,
            (device_id, component_type.value),
        )
        return cursor.rowcount

    def recent_changes(self, device_id: int, limit: int = 10) -> List[ChangeRecord]:
        rows = self.conn.execute(
            """
            SELECT * FROM change_records
            WHERE device_id = ? AND severity IN (?, ?)
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            (device_id, *ALERT_SEVERITIES, limit),
        ).fetchall()
        return [self._row_to_change(dict(row)) for row in rows]

    def list_changes(
        self, device_id: int, component_type: Optional[ComponentType] = None
    ) -> List[ChangeRecord]:
        """All change records for a device, oldest first."""
        query = "SELECT * FROM change_records WHERE device_id = ?"
        params: List[Any] = [device_id]
        if component_type is not None:
            query += " AND component_type = ?"
            params.append(component_type.value)
        query += " ORDER BY created_at ASC, id ASC"
        rows = self.conn.execute(query, params).fetchall()
        return [self._row_to_change(dict(row)) for row in rows]

    # Fleet statistics

    def count_by_status(self) -> Dict[str, int]:
        rows = self.conn.execute(
            "SELECT status, COUNT(*) AS total FROM devices GROUP BY status"
        ).fetchall()
        return {row["status"]: row["total"] for row in rows}

    def count_by_column(self, column: str) -> List[Tuple[Optional[str], int]]:
        if column not in ("os", "location"):
            raise ValueError(f"Cannot group devices by {column}")
        rows = self.conn.execute(
            f"SELECT {column} AS name, COUNT(*) AS total FROM devices GROUP BY {column}"
        ).fetchall()
        return [(row["name"], row["total"]) for row in rows]

    def latest_changes(self, limit: int = 5) -> List[Dict[str, Any]]:
        rows = self.conn.execute(
            """
            SELECT c.*, d.hostname, d.location FROM change_records c
            JOIN devices d ON d.id = c.device_id
            ORDER BY c.created_at DESC, c.id DESC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
        return [dict(row) for row in rows]

    # Row conversion

    def _load_components(self, device: Device) -> None:
        device_id = device.id

        row = self.conn.execute("SELECT * FROM cpus WHERE device_id = ?", (device_id,)).fetchone()
        device.cpu = CpuComponent(
            id=row["id"], model=row["model"], cores=row["cores"] or 0, clock=row["clock"]
        ) if row else None

        row = self.conn.execute("SELECT * FROM gpus WHERE device_id = ?", (device_id,)).fetchone()
        device.gpu = GpuComponent(id=row["id"], model=row["model"]) if row else None

        row = self.conn.execute(
            "SELECT * FROM motherboards WHERE device_id = ?", (device_id,)
        ).fetchone()
        device.motherboard = MotherboardComponent(
            id=row["id"], model=row["model"], serial_number=row["serial_number"]
        ) if row else None

        rows = self.conn.execute(
            "SELECT * FROM rams WHERE device_id = ? ORDER BY slot_index", (device_id,)
        ).fetchall()
        device.rams = [RamModule(**_without(dict(r), "device_id")) for r in rows]

        rows = self.conn.execute(
            "SELECT * FROM storages WHERE device_id = ? ORDER BY disk_index", (device_id,)
        ).fetchall()
        device.storages = [StorageDisk(**_without(dict(r), "device_id")) for r in rows]

        rows = self.conn.execute(
            "SELECT * FROM network_interfaces WHERE device_id = ? ORDER BY name", (device_id,)
        ).fetchall()
        device.networks = [
            NetworkInterface(**{**_without(dict(r), "device_id"), "is_up": bool(r["is_up"])})
            for r in rows
        ]

    def _row_to_device(self, row: Dict) -> Device:
        """Convert database row to Device model (scalars only)."""
        return Device(
            id=row["id"],
            hostname=row["hostname"],
            status=DeviceStatus(row["status"]),
            first_seen=_parse_ts(row["first_seen"]),
            last_seen=_parse_ts(row["last_seen"]),
            brand=row["brand"],
            os=row["os"],
            os_version=row["os_version"],
            os_build=row["os_build"],
            arch=row["arch"],
            location=row["location"],
        )

    def _row_to_change(self, row: Dict) -> ChangeRecord:
        return ChangeRecord(
            id=row["id"],
            device_id=row["device_id"],
            component_type=ComponentType(row["component_type"]),
            change_type=row["change_type"],
            severity=Severity(row["severity"]),
            old_value=row["old_value"],
            new_value=row["new_value"],
            message=row["message"],
            created_at=_parse_ts(row["created_at"]),
            is_open=bool(row["is_open"]),
        )


def _without(row: Dict, *keys: str) -> Dict:
    return {k: v for k, v in row.items() if k not in keys}


class InventoryStore:
    """
    Persistent storage for the device inventory using SQLite.

    Each unit of work opens its own connection, so the store can be shared
    across request threads without locking in process.
    """

    def __init__(self, db_path: str = "/data/labwatch.db", timeout: float = 30.0):
        """
        Initialize inventory store.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait for a competing writer
        """
        self.db_path = Path(db_path)
        self.timeout = timeout
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        conn = self._connect()
        try:
            conn.executescript(SCHEMA)
        finally:
            conn.close()

        logger.info(f"Initialized inventory database at {self.db_path}")

    @contextmanager
    def transaction(self, write: bool = True) -> Iterator[InventoryTransaction]:
        """
        Run a unit of work in a single transaction.

        Write transactions take the database write lock up front
        (``BEGIN IMMEDIATE``) so that concurrent ingestions for the same
        hostname serialize instead of interleaving read, diff and write.

        Args:
            write: Acquire the write lock immediately

        Yields:
            InventoryTransaction bound to the open transaction
        """
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
            try:
                yield InventoryTransaction(conn)
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    def get_device(self, device_id: int) -> Optional[Device]:
        with self.transaction(write=False) as tx:
            return tx.get_device(device_id)

    def get_device_by_hostname(self, hostname: str) -> Optional[Device]:
        with self.transaction(write=False) as tx:
            return tx.get_device_by_hostname(hostname)

    def list_changes(
        self, device_id: int, component_type: Optional[ComponentType] = None
    ) -> List[ChangeRecord]:
        with self.transaction(write=False) as tx:
            return tx.list_changes(device_id, component_type)
