"""
Change monitoring data models.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..inventory.models import Device, utcnow


class ComponentType(str, Enum):
    """Hardware families reconciled against the baseline."""

    CPU = "cpu"
    GPU = "gpu"
    MOTHERBOARD = "motherboard"
    RAM = "ram"
    STORAGE = "storage"


class ChangeType(str, Enum):
    """Kinds of divergence from the baseline."""

    MODIFIED = "modified"
    REPLACED = "replaced"
    SERIAL_CHANGED = "serial_changed"


class Severity(str, Enum):
    """Change severity; critical is reserved for serial-number mismatches."""

    WARNING = "warning"
    CRITICAL = "critical"


class ComponentDrift(BaseModel):
    """
    A divergence between the baseline and an incoming snapshot for one
    component family.

    Several mismatching RAM slots or disks collapse into a single drift whose
    values are composites of every divergent entry.
    """

    component_type: ComponentType
    change_type: ChangeType
    severity: Severity
    old_value: Optional[str] = None
    new_value: str
    message: str


class ChangeRecord(BaseModel):
    """
    Persisted change record for a device.

    At most one record per (device, component type) is open at a time; the
    open record is what new drift is deduplicated against.
    """

    id: Optional[int] = None
    device_id: int
    component_type: ComponentType
    change_type: ChangeType
    severity: Severity
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    message: str
    created_at: datetime = Field(default_factory=utcnow)
    is_open: bool = True

    class Config:
        json_schema_extra = {
            "example": {
                "id": 12,
                "device_id": 3,
                "component_type": "cpu",
                "change_type": "modified",
                "severity": "warning",
                "old_value": "Intel i5-10400",
                "new_value": "Intel i7-10700",
                "message": 'CPU mismatch: baseline "Intel i5-10400" vs actual "Intel i7-10700"',
                "created_at": "2026-10-18T08:30:00+00:00",
                "is_open": True,
            }
        }


class ReconcileResult(BaseModel):
    """Outcome of one reconciliation pass."""

    drifts: Dict[ComponentType, ComponentDrift] = Field(default_factory=dict)
    matched: List[ComponentType] = Field(default_factory=list)
    created: List[ChangeRecord] = Field(default_factory=list)
    healed: Dict[ComponentType, int] = Field(default_factory=dict)
    suppressed: bool = False


class DeviceDetail(Device):
    """Device with its most recent warning/critical change records."""

    recent_changes: List[ChangeRecord] = Field(default_factory=list)


class IngestResponse(BaseModel):
    """Response returned to a reporting agent."""

    success: bool = True
    message: str
    data: DeviceDetail
    changes: int = Field(0, description="Change records produced by this submission")
