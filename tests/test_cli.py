"""
Tests for the labctl CLI.
"""

import json
from datetime import timedelta

import pytest

from labwatch.cli.labctl import main
from labwatch.core import config as config_module
from labwatch.inventory.models import utcnow

from conftest import make_snapshot


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    monkeypatch.setattr(config_module, "_config", None)


class TestLabctl:
    """Subcommands against a temporary database."""

    def test_version(self, capsys):
        assert main(["version"]) == 0
        assert "labctl version" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_sweep(self, capsys, store, service):
        service.ingest(make_snapshot(), now=utcnow() - timedelta(days=2))
        assert main(["--db", str(store.db_path), "sweep"]) == 0
        out = capsys.readouterr().out
        assert "LAB1-PC01" in out

        assert main(["--db", str(store.db_path), "sweep"]) == 0
        assert "No stale devices" in capsys.readouterr().out

    def test_stats_json(self, capsys, store, service):
        service.ingest(make_snapshot(), now=utcnow())
        assert main(["--db", str(store.db_path), "stats", "--json"]) == 0
        stats = json.loads(capsys.readouterr().out)
        assert stats["total_pcs"] == 1
        assert stats["active_pcs"] == 1
