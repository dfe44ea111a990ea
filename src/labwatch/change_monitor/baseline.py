"""
Baseline creation from a device's first snapshot.
"""

import logging
from datetime import datetime
from typing import List, Optional

from ..inventory.models import (
    CpuComponent,
    Device,
    DeviceStatus,
    GpuComponent,
    InterfaceDetail,
    MotherboardComponent,
    NetworkInterface,
    RamModule,
    SpecSnapshot,
    StorageDisk,
    utcnow,
)
from .slots import assign_indices

logger = logging.getLogger(__name__)


class BaselineBuilder:
    """
    Builds the trusted hardware baseline from a first-seen snapshot.

    The snapshot is taken verbatim; nothing is compared or inferred.
    """

    def build_device(self, snapshot: SpecSnapshot, now: Optional[datetime] = None) -> Device:
        """
        Build an unsaved baseline device.

        Args:
            snapshot: First snapshot reported for the hostname
            now: Contact time (default: now)

        Returns:
            Device with status active and nested baseline components
        """
        if now is None:
            now = utcnow()

        device = Device(
            hostname=snapshot.hostname,
            status=DeviceStatus.ACTIVE,
            first_seen=now,
            last_seen=now,
            brand=snapshot.brand,
            os=snapshot.os,
            os_version=snapshot.os_version,
            os_build=snapshot.os_build,
            arch=snapshot.arch,
        )

        if snapshot.cpu_model:
            device.cpu = CpuComponent(
                model=snapshot.cpu_model,
                cores=snapshot.cpu_cores or 0,
                clock=snapshot.cpu_clock,
            )
        if snapshot.gpu:
            device.gpu = GpuComponent(model=snapshot.gpu)
        if snapshot.motherboard:
            device.motherboard = MotherboardComponent(
                model=snapshot.motherboard,
                serial_number=snapshot.motherboard_serial,
            )

        device.rams = [
            RamModule(
                slot_index=index,
                manufacturer=ram.manufacturer,
                model=ram.model,
                capacity=ram.capacity,
                speed=ram.speed,
                type=ram.type,
                form_factor=ram.form_factor,
                serial_number=ram.serial_number,
                bank_label=ram.bank,
            )
            for index, ram in assign_indices(snapshot.ram_details).items()
        ]
        device.storages = [
            StorageDisk(
                disk_index=index,
                manufacturer=disk.manufacturer,
                model=disk.model,
                size=disk.size,
                interface=disk.interface,
                type=disk.type,
                serial_number=disk.serial_number,
            )
            for index, disk in assign_indices(snapshot.storage_details).items()
        ]
        device.networks = build_interfaces(snapshot.interfaces)

        logger.debug(
            f"Built baseline for {device.hostname}: "
            f"{len(device.rams)} RAM module(s), {len(device.storages)} disk(s)"
        )

        return device


def build_interfaces(interfaces: List[InterfaceDetail]) -> List[NetworkInterface]:
    """Convert reported interfaces, keeping the first entry per name."""
    seen = {}
    for net in interfaces:
        if net.name in seen:
            continue
        seen[net.name] = NetworkInterface(
            name=net.name,
            mac_addr=net.mac_addr,
            ipv4=net.ipv4,
            is_up=net.is_up,
            bandwidth=net.bandwidth,
        )
    return list(seen.values())
