"""
Tests for the passive liveness sweep and fleet read paths.
"""

from datetime import timedelta

from labwatch.inventory.liveness import LivenessMonitor
from labwatch.inventory.models import DeviceStatus, DeviceUpdate
from labwatch.inventory.service import InventoryService, os_family

from conftest import T0, make_snapshot


class TestLivenessSweep:
    """Active devices unseen for 24h go offline on the next listing."""

    def test_stale_device_goes_offline_on_listing(self, service, baseline):
        devices = service.list_devices(now=T0 + timedelta(hours=24, minutes=1))
        assert devices[0].status == DeviceStatus.OFFLINE

    def test_recent_device_stays_active(self, service, baseline):
        devices = service.list_devices(now=T0 + timedelta(hours=23))
        assert devices[0].status == DeviceStatus.ACTIVE

    def test_maintenance_is_never_demoted(self, service, baseline):
        service.update_device(baseline.id, DeviceUpdate(status="maintenance"))
        devices = service.list_devices(now=T0 + timedelta(days=30))
        assert devices[0].status == DeviceStatus.MAINTENANCE

    def test_sweep_reports_demoted_hostnames(self, service, baseline):
        service.ingest(make_snapshot(hostname="LAB1-PC02"), now=T0 + timedelta(hours=20))
        demoted = service.sweep(now=T0 + timedelta(hours=30))
        assert demoted == ["LAB1-PC01"]
        assert service.sweep(now=T0 + timedelta(hours=30)) == []

    def test_custom_window(self, store, baseline):
        service = InventoryService(store=store, liveness=LivenessMonitor(stale_after_hours=2))
        devices = service.list_devices(now=T0 + timedelta(hours=3))
        assert devices[0].status == DeviceStatus.OFFLINE


class TestListing:
    """Listing order and rolling change counts."""

    def test_ordered_by_last_seen(self, service, baseline):
        service.ingest(make_snapshot(hostname="LAB1-PC02"), now=T0 + timedelta(hours=1))
        devices = service.list_devices(now=T0 + timedelta(hours=2))
        assert [d.hostname for d in devices] == ["LAB1-PC02", "LAB1-PC01"]

    def test_listing_includes_components(self, service, baseline):
        device = service.list_devices(now=T0)[0]
        assert device.cpu.model == "Intel i5-10400"
        assert len(device.storages) == 2

    def test_change_count_uses_rolling_window(self, service, baseline):
        service.ingest(make_snapshot(cpuModel="Intel i7-10700", gpu="NVIDIA GTX 1650"), now=T0)
        assert service.list_devices(now=T0 + timedelta(days=6))[0].change_count == 2
        assert service.list_devices(now=T0 + timedelta(days=8))[0].change_count == 0


class TestFleetStats:
    """Dashboard counters."""

    def test_status_and_breakdowns(self, service, baseline):
        service.ingest(make_snapshot(hostname="LAB1-PC02", os="Microsoft Windows 10 Education"), now=T0)
        service.ingest(make_snapshot(hostname="LAB2-PC01", os="Ubuntu 22.04.3 LTS"), now=T0)
        pc02 = [d for d in service.list_devices(now=T0) if d.hostname == "LAB1-PC02"][0]
        service.update_device(pc02.id, DeviceUpdate(status="maintenance", location="Lab 1"))

        stats = service.get_stats(now=T0 + timedelta(hours=1))
        assert stats.total_pcs == 3
        assert stats.active_pcs == 2
        assert stats.maintenance_pcs == 1
        assert stats.offline_pcs == 0
        assert [(e.name, e.count) for e in stats.os_breakdown] == [("Windows 10", 2), ("Ubuntu", 1)]
        assert {e.name: e.count for e in stats.location_breakdown} == {"Unassigned": 2, "Lab 1": 1}

    def test_recent_changes_carry_hostname(self, service, baseline):
        service.ingest(make_snapshot(gpu="NVIDIA GTX 1650"), now=T0)
        stats = service.get_stats(now=T0)
        assert stats.recent_changes[0]["sub_message"] == "LAB1-PC01"
        assert stats.recent_changes[0]["location"] == "Unassigned"

    def test_os_family(self):
        assert os_family("Microsoft Windows 11 Pro") == "Windows 11"
        assert os_family("Microsoft Windows Server 2019") == "Windows Server 2019"
        assert os_family(None) == "Unknown"
