"""
Tests for snapshot validation and configuration.
"""

import pytest
from pydantic import ValidationError

from labwatch.core import config as config_module
from labwatch.core.config import AppConfig, get_config, reload_config
from labwatch.inventory.models import SpecSnapshot

from conftest import make_payload


class TestSpecSnapshot:
    """Boundary validation of agent payloads."""

    def test_camel_case_payload(self):
        snapshot = SpecSnapshot.model_validate(make_payload())
        assert snapshot.cpu_model == "Intel i5-10400"
        assert snapshot.motherboard_serial == "MB-0001"
        assert snapshot.ram_details[1].serial_number == "RAM-B"
        assert snapshot.ram_details[1].slot_index == 1
        assert snapshot.storage_details[0].disk_index == 0
        assert snapshot.interfaces[0].mac_addr == "D8:9E:F3:11:22:33"

    def test_hostname_required(self):
        payload = make_payload()
        del payload["hostname"]
        with pytest.raises(ValidationError):
            SpecSnapshot.model_validate(payload)

    def test_hostname_is_stripped(self):
        assert SpecSnapshot(hostname="  LAB1-PC01 ").hostname == "LAB1-PC01"

    def test_blank_values_are_absent(self):
        snapshot = SpecSnapshot.model_validate(
            {"hostname": "x", "gpu": "", "cpuModel": "  ", "ramDetails": None, "cpuCores": ""}
        )
        assert snapshot.gpu is None
        assert snapshot.cpu_model is None
        assert snapshot.cpu_cores is None
        assert snapshot.ram_details == []

    def test_numbers_coerced_to_text(self):
        snapshot = SpecSnapshot.model_validate(
            {"hostname": "x", "ramDetails": [{"capacity": 8, "speed": 3200}], "cpuClock": 2.9}
        )
        assert snapshot.ram_details[0].capacity == "8"
        assert snapshot.ram_details[0].speed == "3200"
        assert snapshot.cpu_clock == "2.9"

    def test_interface_defaults(self):
        snapshot = SpecSnapshot.model_validate({"hostname": "x", "interfaces": [{"isUp": None}]})
        assert snapshot.interfaces[0].name == "Unknown"
        assert snapshot.interfaces[0].is_up is True

    def test_negative_slot_rejected(self):
        with pytest.raises(ValidationError):
            SpecSnapshot.model_validate({"hostname": "x", "ramDetails": [{"slotIndex": -1}]})


class TestConfig:
    """Environment-driven settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LABWATCH_STALE_AFTER_HOURS", raising=False)
        config = AppConfig()
        assert config.monitor.stale_after_hours == 24
        assert config.monitor.change_window_days == 7
        assert config.monitor.recent_changes_limit == 10

    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setattr(config_module, "_config", None)
        monkeypatch.setenv("LABWATCH_STALE_AFTER_HOURS", "48")
        monkeypatch.setenv("LABWATCH_DB_PATH", str(tmp_path / "x.db"))
        config = reload_config()
        assert config.monitor.stale_after_hours == 48
        assert config.database.path == str(tmp_path / "x.db")
        assert get_config() is config

    def test_log_level_validated(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(ValidationError):
            AppConfig()

    def test_log_level_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppConfig().log_level == "DEBUG"
