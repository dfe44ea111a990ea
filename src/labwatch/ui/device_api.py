"""
Device inventory API endpoints.

Reporting agents post hardware snapshots here; the dashboard reads the
fleet listing and per-device detail.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request

from ..change_monitor.models import DeviceDetail, IngestResponse
from ..core.config import get_config
from ..inventory.models import DeviceSummary, DeviceUpdate, FleetStats, SpecSnapshot
from ..inventory.service import InventoryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pcs", tags=["pcs"])
stats_router = APIRouter(prefix="/api/stats", tags=["stats"])


def get_inventory_service(request: Request) -> InventoryService:
    """Return the app's inventory service, creating it on first use."""
    service = getattr(request.app.state, "inventory_service", None)
    if service is None:
        service = InventoryService.from_config(get_config())
        request.app.state.inventory_service = service
    return service


@router.post("", response_model=IngestResponse)
def ingest_snapshot(
    snapshot: SpecSnapshot,
    service: InventoryService = Depends(get_inventory_service),
) -> IngestResponse:
    """
    Accept a hardware snapshot from a reporting agent.

    The first snapshot for a hostname becomes its baseline; later snapshots
    are reconciled against it.
    """
    logger.debug(f"Snapshot received from {snapshot.hostname}")
    return service.ingest(snapshot)


@router.get("", response_model=Dict[str, Any])
def list_devices(
    service: InventoryService = Depends(get_inventory_service),
) -> Dict[str, Any]:
    """
    List all devices.

    Active devices that have not reported within the staleness window are
    marked offline before the listing is built.
    """
    devices: List[DeviceSummary] = service.list_devices()
    return {"success": True, "data": [d.model_dump(mode="json") for d in devices]}


@router.get("/{device_id}", response_model=Dict[str, Any])
def get_device(
    device_id: int,
    service: InventoryService = Depends(get_inventory_service),
) -> Dict[str, Any]:
    """Get one device with its components and recent changes."""
    detail: DeviceDetail = service.get_device(device_id)
    return {"success": True, "data": detail.model_dump(mode="json")}


@router.patch("/{device_id}", response_model=Dict[str, Any])
def update_device(
    device_id: int,
    update: DeviceUpdate,
    service: InventoryService = Depends(get_inventory_service),
) -> Dict[str, Any]:
    """Set a device's status (e.g. maintenance) or location."""
    device = service.update_device(device_id, update)
    return {"success": True, "data": device.model_dump(mode="json")}


@router.delete("/{device_id}", response_model=Dict[str, Any])
def delete_device(
    device_id: int,
    service: InventoryService = Depends(get_inventory_service),
) -> Dict[str, Any]:
    """Delete a device together with its baseline and change history."""
    service.delete_device(device_id)
    return {"success": True, "message": "PC deleted successfully"}


@stats_router.get("", response_model=Dict[str, Any])
def get_stats(
    service: InventoryService = Depends(get_inventory_service),
) -> Dict[str, Any]:
    """Fleet-wide counters for the dashboard."""
    stats: FleetStats = service.get_stats()
    return {"success": True, "data": stats.model_dump(mode="json")}
