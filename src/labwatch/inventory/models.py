"""
Device inventory data models.

Two families live here: the snapshot a reporting agent submits (camelCase on
the wire) and the stored device with its baseline components.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class DeviceStatus(str, Enum):
    """Lifecycle status of a lab computer."""

    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    OFFLINE = "offline"


def _blank_to_none(value: Any) -> Any:
    """Agents send "" for undetected values; treat those as absent."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _text(value: Any) -> Any:
    """Coerce numeric readings (3200, 512.0) into text fields."""
    value = _blank_to_none(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


class _Snapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RamDetail(_Snapshot):
    """One detected memory module."""

    manufacturer: Optional[str] = None
    model: Optional[str] = None
    capacity: Optional[str] = None
    speed: Optional[str] = None
    type: Optional[str] = None
    form_factor: Optional[str] = Field(None, alias="formFactor")
    serial_number: Optional[str] = Field(None, alias="serialNumber")
    bank: Optional[str] = None
    slot_index: Optional[int] = Field(None, alias="slotIndex", ge=0)

    @field_validator(
        "manufacturer", "model", "capacity", "speed", "type",
        "form_factor", "serial_number", "bank",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> Any:
        return _text(v)

    @property
    def explicit_index(self) -> Optional[int]:
        return self.slot_index


class StorageDetail(_Snapshot):
    """One detected disk."""

    manufacturer: Optional[str] = None
    model: Optional[str] = None
    size: Optional[str] = None
    interface: Optional[str] = None
    type: Optional[str] = None
    serial_number: Optional[str] = Field(None, alias="serialNumber")
    disk_index: Optional[int] = Field(None, alias="diskIndex", ge=0)

    @field_validator(
        "manufacturer", "model", "size", "interface", "type", "serial_number",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> Any:
        return _text(v)

    @property
    def explicit_index(self) -> Optional[int]:
        return self.disk_index


class InterfaceDetail(_Snapshot):
    """One detected network interface."""

    name: str = "Unknown"
    mac_addr: Optional[str] = Field(None, alias="macAddr")
    ipv4: Optional[str] = None
    is_up: bool = Field(True, alias="isUp")
    bandwidth: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, v: Any) -> Any:
        return _text(v) or "Unknown"

    @field_validator("mac_addr", "ipv4", "bandwidth", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> Any:
        return _text(v)

    @field_validator("is_up", mode="before")
    @classmethod
    def _default_up(cls, v: Any) -> Any:
        return True if v is None else v


class SpecSnapshot(_Snapshot):
    """
    Hardware snapshot submitted by a reporting agent.

    Only the hostname is required; every component family is optional and a
    family that is absent is simply not reconciled.
    """

    hostname: str = Field(..., min_length=1, description="Unique device hostname")

    # Scalar device info
    brand: Optional[str] = None
    os: Optional[str] = None
    os_version: Optional[str] = Field(None, alias="osVersion")
    os_build: Optional[str] = Field(None, alias="osBuild")
    arch: Optional[str] = None

    # CPU
    cpu_model: Optional[str] = Field(None, alias="cpuModel")
    cpu_cores: Optional[int] = Field(None, alias="cpuCores", ge=0)
    cpu_clock: Optional[str] = Field(None, alias="cpuClock")

    # GPU and motherboard
    gpu: Optional[str] = None
    motherboard: Optional[str] = None
    motherboard_serial: Optional[str] = Field(None, alias="motherboardSerial")

    # Multi-entry families
    ram_details: List[RamDetail] = Field(default_factory=list, alias="ramDetails")
    storage_details: List[StorageDetail] = Field(default_factory=list, alias="storageDetails")
    interfaces: List[InterfaceDetail] = Field(default_factory=list)

    @field_validator("hostname", mode="before")
    @classmethod
    def _strip_hostname(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator(
        "brand", "os", "os_version", "os_build", "arch",
        "cpu_model", "cpu_clock", "gpu", "motherboard", "motherboard_serial",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> Any:
        return _text(v)

    @field_validator("cpu_cores", mode="before")
    @classmethod
    def _blank_cores(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("ram_details", "storage_details", "interfaces", mode="before")
    @classmethod
    def _null_list(cls, v: Any) -> Any:
        return [] if v is None else v

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "hostname": "LAB1-PC07",
                "brand": "Dell",
                "os": "Microsoft Windows 10 Pro",
                "cpuModel": "Intel(R) Core(TM) i5-10400 CPU @ 2.90GHz",
                "cpuCores": 6,
                "gpu": "Intel(R) UHD Graphics 630",
                "motherboard": "0K3CM7",
                "motherboardSerial": "/7XK2Q93/CNWS200123/",
                "ramDetails": [
                    {"manufacturer": "Samsung", "capacity": "8 GB", "serialNumber": "4A1B2C3D", "slotIndex": 0}
                ],
                "storageDetails": [
                    {"model": "KINGSTON SA400S37240G", "size": "240 GB", "serialNumber": "50026B7782A1", "diskIndex": 0}
                ],
                "interfaces": [
                    {"name": "Ethernet", "macAddr": "D8:9E:F3:11:22:33", "ipv4": "10.10.1.57", "isUp": True}
                ],
            }
        },
    )


class CpuComponent(BaseModel):
    """Baseline CPU."""

    id: Optional[int] = None
    model: str
    cores: int = 0
    clock: Optional[str] = None


class GpuComponent(BaseModel):
    """Baseline GPU."""

    id: Optional[int] = None
    model: str


class MotherboardComponent(BaseModel):
    """Baseline motherboard; the serial is the identity signal."""

    id: Optional[int] = None
    model: str
    serial_number: Optional[str] = None


class RamModule(BaseModel):
    """Baseline memory module at a fixed slot index."""

    id: Optional[int] = None
    slot_index: int
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    capacity: Optional[str] = None
    speed: Optional[str] = None
    type: Optional[str] = None
    form_factor: Optional[str] = None
    serial_number: Optional[str] = None
    bank_label: Optional[str] = None


class StorageDisk(BaseModel):
    """Baseline disk at a fixed disk index."""

    id: Optional[int] = None
    disk_index: int
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    size: Optional[str] = None
    interface: Optional[str] = None
    type: Optional[str] = None
    serial_number: Optional[str] = None


class NetworkInterface(BaseModel):
    """Network interface as last reported."""

    id: Optional[int] = None
    name: str
    mac_addr: Optional[str] = None
    ipv4: Optional[str] = None
    is_up: bool = True
    bandwidth: Optional[str] = None


class Device(BaseModel):
    """
    A lab computer and its recorded hardware baseline.

    Scalar fields track the latest contact; the nested components are the
    baseline captured on first contact.
    """

    id: Optional[int] = None
    hostname: str
    status: DeviceStatus = DeviceStatus.ACTIVE
    first_seen: datetime = Field(default_factory=utcnow)
    last_seen: datetime = Field(default_factory=utcnow)

    brand: Optional[str] = None
    os: Optional[str] = None
    os_version: Optional[str] = None
    os_build: Optional[str] = None
    arch: Optional[str] = None
    location: Optional[str] = None

    cpu: Optional[CpuComponent] = None
    gpu: Optional[GpuComponent] = None
    motherboard: Optional[MotherboardComponent] = None
    rams: List[RamModule] = Field(default_factory=list)
    storages: List[StorageDisk] = Field(default_factory=list)
    networks: List[NetworkInterface] = Field(default_factory=list)


class DeviceSummary(Device):
    """Device row in the fleet listing."""

    change_count: int = Field(
        default=0,
        description="Warning/critical change records within the rolling window",
    )


class DeviceUpdate(BaseModel):
    """Administrative edits to a device."""

    model_config = ConfigDict(extra="ignore")

    status: Optional[str] = None
    location: Optional[str] = None


class BreakdownEntry(BaseModel):
    name: str
    count: int


class FleetStats(BaseModel):
    """Fleet-wide counters for the dashboard."""

    total_pcs: int = 0
    active_pcs: int = 0
    maintenance_pcs: int = 0
    offline_pcs: int = 0
    os_breakdown: List[BreakdownEntry] = Field(default_factory=list)
    location_breakdown: List[BreakdownEntry] = Field(default_factory=list)
    recent_changes: List[Dict[str, Any]] = Field(default_factory=list)
