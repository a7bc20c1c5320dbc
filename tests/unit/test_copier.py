"""
Unit tests for the asset copier.

Tests cover:
- Byte-exact copies across chunk boundaries
- Version stamping after copy
- Directory creation
- Missing assets and stage-tagged failures
"""

import pytest

from refstore.errors import AssetNotFoundError, CopyError
from refstore.provision import AssetCopier, read_version
from tests.assets import COUNTRY_ROWS, build_countries, build_garbage


class TestAssetCopier:
    """Tests for AssetCopier.provision."""

    def test_copies_and_stamps(self, asset_dir, make_database):
        """Copy matches the asset apart from the stamped version."""
        asset = build_countries(asset_dir / "paises.db", version=0)
        database = make_database("paises.db", 2)

        copied = AssetCopier(buffer_size=100).provision(database)

        assert copied == asset.stat().st_size
        assert read_version(database.install_path) == 2
        rows = database.query("SELECT id, nombre FROM paises ORDER BY id")
        assert [(int(r["id"]), r["nombre"]) for r in rows] == COUNTRY_ROWS

    def test_asset_is_not_modified(self, asset_dir, make_database):
        asset = build_countries(asset_dir / "paises.db", version=0)
        before = asset.read_bytes()
        database = make_database("paises.db", 5)

        AssetCopier().provision(database)

        assert asset.read_bytes() == before
        assert read_version(asset) == 0

    @pytest.mark.parametrize("buffer_size", [1, 7, 1024, 1 << 20])
    def test_buffer_size_does_not_change_content(self, asset_dir, make_database, buffer_size):
        build_garbage(asset_dir / "blob.db", size=5000)
        database = make_database("blob.db", 0)

        # Raw bytes only; stamping a non-database fails after the copy
        with pytest.raises(CopyError):
            AssetCopier(buffer_size=buffer_size).provision(database)

        assert database.install_path.read_bytes() == (asset_dir / "blob.db").read_bytes()

    def test_creates_install_directories(self, asset_dir, data_dir, make_database):
        build_countries(asset_dir / "paises.db")
        database = make_database("paises.db", 1)
        assert not data_dir.exists()

        AssetCopier().provision(database)

        assert data_dir.is_dir()
        assert database.install_path.is_file()

    def test_overwrites_existing_install(self, asset_dir, data_dir, make_database):
        build_countries(asset_dir / "paises.db")
        build_garbage(data_dir / "paises.db", size=100_000)
        database = make_database("paises.db", 3)

        AssetCopier().provision(database)

        assert database.install_path.stat().st_size == (asset_dir / "paises.db").stat().st_size
        assert read_version(database.install_path) == 3

    def test_closes_writable_connection_first(self, asset_dir, make_database):
        build_countries(asset_dir / "paises.db")
        database = make_database("paises.db", 1)
        database.ensure_table_exists()
        assert database._writable is not None

        AssetCopier().provision(database)

        assert database._writable is None

    def test_missing_asset(self, make_database):
        """No asset raises AssetNotFoundError and writes nothing."""
        database = make_database("paises.db", 1)

        with pytest.raises(AssetNotFoundError) as exc_info:
            AssetCopier().provision(database)

        error = exc_info.value
        assert isinstance(error, CopyError)
        assert error.code == "ASSET_NOT_FOUND"
        assert error.stage == "open_asset"
        assert error.identifier == "paises.db"
        assert not database.install_path.exists()

    def test_stamp_failure_leaves_partial_copy(self, asset_dir, make_database):
        build_garbage(asset_dir / "paises.db")
        database = make_database("paises.db", 1)

        with pytest.raises(CopyError) as exc_info:
            AssetCopier().provision(database)

        assert exc_info.value.stage == "stamp"
        assert database.install_path.exists()

    def test_mkdir_failure(self, asset_dir, make_database, paths):
        """A file where the install directory should be is a mkdir failure."""
        build_countries(asset_dir / "paises.db")
        paths.data_dir.parent.mkdir(parents=True)
        paths.data_dir.write_text("not a directory")
        database = make_database("paises.db", 1)

        with pytest.raises(CopyError) as exc_info:
            AssetCopier().provision(database)

        assert exc_info.value.stage == "mkdir"

    def test_write_failure_mid_copy(self, asset_dir, make_database, failing_copy):
        """An OSError while writing is a copy-stage error and both streams are closed."""
        asset = build_countries(asset_dir / "paises.db")
        database = make_database("paises.db", 1)
        opened = failing_copy(2)

        with pytest.raises(CopyError) as exc_info:
            AssetCopier(buffer_size=100).provision(database)

        error = exc_info.value
        assert error.stage == "copy"
        assert error.identifier == "paises.db"
        assert "after 200 bytes" in error.message
        assert isinstance(error.__cause__, OSError)
        assert opened["rb"].closed
        assert opened["wb"].closed
        # No rollback: the partial destination stays behind
        assert database.install_path.read_bytes() == asset.read_bytes()[:200]

    def test_write_failure_skips_stamp(self, asset_dir, make_database, failing_copy):
        build_countries(asset_dir / "paises.db", version=0)
        database = make_database("paises.db", 4)
        failing_copy(0)

        with pytest.raises(CopyError):
            AssetCopier().provision(database)

        assert database.install_path.stat().st_size == 0

    @pytest.mark.parametrize("buffer_size", [0, -1])
    def test_invalid_buffer_size(self, buffer_size):
        with pytest.raises(ValueError, match="buffer_size must be positive"):
            AssetCopier(buffer_size=buffer_size)
