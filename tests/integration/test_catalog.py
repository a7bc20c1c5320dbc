"""
Integration tests for ReferenceCatalog and logging setup.

Tests cover:
- Provisioning every configured database at start-up
- Partial failures not stopping the remaining databases
- Collaborator access through query/exec_sql
- Root logger configuration (text and JSON)
"""

import logging

import json_log_formatter
import pytest

from refstore import ReferenceCatalog, Settings, setup_logging
from refstore.devices import BluetoothDevice, DeviceRegistry
from refstore.errors import DatabaseUnavailableError, ProvisionError
from refstore.lookups import list_countries, lookup_judicial_district
from refstore.provision import ProvisionOutcome, ProvisionState, RecordingObserver
from tests.assets import build_countries, build_courts, build_devices


@pytest.fixture
def settings(asset_dir, data_dir):
    return Settings(
        asset_dir=asset_dir,
        data_dir=data_dir,
        copy_buffer_size=128,
        database_versions={"paises.db": 2, "juzgados.db": 1, "dispositivos.db": 1},
    )


@pytest.fixture
def catalog(settings, observer):
    with ReferenceCatalog(settings, observer=observer) as catalog:
        yield catalog


class TestProvisionAll:
    """Tests for ReferenceCatalog.provision_all."""

    def test_all_assets_present(self, catalog, asset_dir):
        build_countries(asset_dir / "paises.db")
        build_courts(asset_dir / "juzgados.db")
        build_devices(asset_dir / "dispositivos.db")

        results = catalog.provision_all()

        assert list(results) == ["paises.db", "juzgados.db", "dispositivos.db"]
        assert all(r.state is ProvisionState.CURRENT for r in results.values())
        assert list_countries(catalog["paises.db"]) == ["España", "Francia", "Portugal"]
        assert (
            lookup_judicial_district(catalog["juzgados.db"], "AS-II, km 5, Llanera, Asturias")
            == "Oviedo"
        )

    def test_missing_assets_degrade(self, catalog, caplog):
        with caplog.at_level(logging.WARNING, logger="refstore.bootstrap"):
            results = catalog.provision_all()

        assert all(isinstance(r, ProvisionOutcome) and r.degraded for r in results.values())
        assert catalog.query("dispositivos.db", "SELECT * FROM dispositivos") == []
        degraded = [r for r in caplog.records if "is degraded" in r.getMessage()]
        assert len(degraded) == 3

    def test_failure_does_not_stop_later_databases(self, catalog, asset_dir, data_dir):
        """An overversioned file without an asset fails alone."""
        build_countries(data_dir / "paises.db", version=5)
        build_courts(asset_dir / "juzgados.db")
        build_devices(asset_dir / "dispositivos.db")

        results = catalog.provision_all()

        assert isinstance(results["paises.db"], ProvisionError)
        assert results["juzgados.db"].state is ProvisionState.CURRENT
        assert results["dispositivos.db"].state is ProvisionState.CURRENT
        assert catalog["paises.db"].state is ProvisionState.FAILED
        with pytest.raises(DatabaseUnavailableError):
            catalog.query("paises.db", "SELECT nombre FROM paises")

    def test_summary_log_carries_schema_fingerprint(self, catalog, caplog):
        with caplog.at_level(logging.INFO, logger="refstore.bootstrap"):
            catalog.provision_all()

        summary = [r for r in caplog.records if r.getMessage() == "Reference databases loaded"]
        assert len(summary) == 1
        assert summary[0].ready == 3
        assert summary[0].schema_fingerprint == catalog.registry.fingerprint
        assert summary[0].schema_fingerprint.startswith("sha256:")

    def test_events_per_database(self, catalog, observer, asset_dir):
        build_countries(asset_dir / "paises.db")

        catalog.provision_all()

        assert observer.kinds("paises.db") == ["detected", "transition"]
        assert observer.kinds("juzgados.db")[-2:] == ["fallback", "transition"]


class TestCatalogAccess:
    """Tests for catalog lookups and statements."""

    def test_unknown_identifier(self, catalog):
        with pytest.raises(KeyError, match="Unknown reference database"):
            catalog["missing.db"]

    def test_iteration_follows_configuration(self, catalog):
        assert [db.identifier for db in catalog] == ["paises.db", "juzgados.db", "dispositivos.db"]
        assert len(catalog) == 3

    def test_ensure_provisioned_single(self, catalog, asset_dir):
        build_countries(asset_dir / "paises.db")

        outcome = catalog.ensure_provisioned("paises.db")

        assert outcome.stored_version == 2

    def test_exec_sql_and_devices(self, catalog, asset_dir):
        build_devices(asset_dir / "dispositivos.db")
        catalog.ensure_provisioned("dispositivos.db")
        devices = DeviceRegistry(catalog["dispositivos.db"])

        devices.save(BluetoothDevice("Zebra ZQ220", "AA:BB:CC:DD:EE:FF"))
        catalog.exec_sql(
            "dispositivos.db",
            "UPDATE dispositivos SET nombre = ? WHERE mac = ?",
            ("Zebra", "AA:BB:CC:DD:EE:FF"),
        )

        assert devices.list_devices() == [BluetoothDevice("Zebra", "AA:BB:CC:DD:EE:FF")]

    def test_close_releases_connections(self, settings, observer, asset_dir):
        build_devices(asset_dir / "dispositivos.db")
        catalog = ReferenceCatalog(settings, observer=observer)
        catalog.ensure_provisioned("dispositivos.db")
        catalog.exec_sql("dispositivos.db", "DELETE FROM dispositivos")

        catalog.close()

        assert all(db._writable is None for db in catalog)

    def test_default_observer_logs(self, settings, asset_dir, caplog):
        build_countries(asset_dir / "paises.db")
        catalog = ReferenceCatalog(settings)

        with caplog.at_level(logging.INFO, logger="refstore"):
            catalog.ensure_provisioned("paises.db")

        assert any("transition" in r.getMessage() for r in caplog.records)


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    def test_text_format(self):
        setup_logging(Settings(log_level="DEBUG"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert not isinstance(root.handlers[0].formatter, json_log_formatter.JSONFormatter)

    def test_json_format(self):
        setup_logging(Settings(log_format="json", log_level="warning"))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, json_log_formatter.JSONFormatter)

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(Settings(log_level="chatty"))

        assert logging.getLogger().level == logging.INFO

    def test_recording_observer_is_accepted(self, settings):
        observer = RecordingObserver()

        assert ReferenceCatalog(settings, observer=observer).provisioner.observer is observer
