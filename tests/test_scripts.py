# =============================================================================
# tests/test_scripts.py - Command Line Entry Point Tests
# =============================================================================
# This module contains tests for:
# - migrate_assets.py: --kind / --only / --limit wiring, exit codes
# - verify_migration.py: --only / --limit / --all / --check-cdn wiring,
#   exit codes (0 clean, 1 fatal, 2 problems)
#
# Scripts are loaded from their files; the builders they import are patched
# to return the in-memory fixtures.
# =============================================================================

from __future__ import annotations

import importlib.util
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from app.exceptions import ConfigurationError
from tests.conftest import BUCKET, CANONICAL_BASE

SCRIPTS_DIR = Path(__file__).resolve().parent.parent / "scripts"


def _load_script(name: str):
    spec = importlib.util.spec_from_file_location(f"{name}_script", SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def migrate_script(store, migrator):
    module = _load_script("migrate_assets")
    with patch.object(module, "get_settings", return_value=MagicMock()), \
         patch.object(module, "configure_logging"), \
         patch.object(module, "build_store", return_value=store), \
         patch.object(module, "build_migrator", return_value=migrator):
        yield module


@pytest.fixture
def verify_script(store, verifier):
    module = _load_script("verify_migration")
    with patch.object(module, "get_settings", return_value=MagicMock()), \
         patch.object(module, "configure_logging"), \
         patch.object(module, "build_store", return_value=store), \
         patch.object(module, "build_verifier", return_value=verifier):
        yield module


# =============================================================================
# migrate_assets.py
# =============================================================================

class TestMigrateAssetsScript:
    """Test the migration command."""

    def test_inline_run_prints_summary(self, store, migrate_script, s3, capsys):
        store.create("businesses", {"name": "Cafe", "logo": "data:image/png;base64,AAAA"}, document_id="b1")

        exit_code = migrate_script.main(["--kind=inline", "--only=businesses"])
        out = capsys.readouterr().out

        assert exit_code == 0
        assert "INLINE ASSET MIGRATION SUMMARY" in out
        assert "Total Processed: 1" in out
        assert "Success: 1" in out
        assert len(s3.keys(BUCKET)) == 1

    def test_limit_is_applied_per_collection(self, store, migrate_script, capsys):
        for i in range(3):
            store.create("ff_products", {"businessId": "b1", "imageUrl": "data:image/png;base64,AAAA"})

        exit_code = migrate_script.main(["--only=ff_products", "--limit=2"])

        assert exit_code == 0
        assert "Total Processed: 2" in capsys.readouterr().out

    def test_legacy_kind_leaves_inline_alone(self, store, migrate_script, capsys):
        store.create("ff_products", {"businessId": "b1", "imageUrl": "data:image/png;base64,AAAA"}, document_id="p1")

        migrate_script.main(["--kind=legacy", "--only=ff_products"])

        assert "Skipped: 1" in capsys.readouterr().out
        assert store.get("ff_products", "p1")["imageUrl"].startswith("data:")

    def test_unknown_collection_is_fatal(self, migrate_script):
        assert migrate_script.main(["--only=nope"]) == 1

    def test_missing_storage_credentials_is_fatal(self, migrate_script):
        with patch.object(migrate_script, "build_migrator", side_effect=ConfigurationError(["CLOUDFLARE_R2_BUCKET_NAME"])):
            assert migrate_script.main([]) == 1

    def test_invalid_kind_is_rejected(self, migrate_script):
        with pytest.raises(SystemExit):
            migrate_script.main(["--kind=video"])


# =============================================================================
# verify_migration.py
# =============================================================================

class TestVerifyMigrationScript:
    """Test the verification command."""

    def test_clean_run_exits_zero(self, store, storage, verify_script, capsys):
        url = storage.put("logos/b1/1_logo.png", b"bytes", "image/png").url
        store.create("businesses", {"name": "A", "logo": url}, document_id="b1")

        exit_code = verify_script.main(["--only=businesses"])
        out = capsys.readouterr().out

        assert exit_code == verify_script.EXIT_CLEAN == 0
        assert "Public (baseUrl) URLs found: 1" in out
        assert "Result: CLEAN" in out

    def test_residual_legacy_reference_exits_two(self, store, verify_script, capsys):
        store.create("ff_products", {"businessId": "b1", "imageUrl": "https://legacy.example.com/o/p1.png"}, document_id="p1")

        exit_code = verify_script.main(["--only=ff_products"])
        out = capsys.readouterr().out

        assert exit_code == verify_script.EXIT_PROBLEMS == 2
        assert "Legacy URLs found: 1" in out
        assert "Result: PROBLEMS FOUND" in out

    def test_residual_inline_reference_exits_two(self, store, verify_script, capsys):
        store.create("ff_products", {"businessId": "b1", "imageUrl": "data:image/png;base64,AAAA"}, document_id="p1")

        assert verify_script.main(["--only=ff_products"]) == 2
        assert "Inline references found: 1" in capsys.readouterr().out

    def test_limit_and_all(self, store, verify_script, capsys):
        for i in range(5):
            store.create("qr_scans", {"n": i})

        verify_script.main(["--only=qr_scans", "--limit=2"])
        assert "Documents scanned: 2" in capsys.readouterr().out

        verify_script.main(["--only=qr_scans", "--limit=2", "--all"])
        assert "Documents scanned: 5" in capsys.readouterr().out

    def test_check_cdn_flag(self, store, storage, verify_script, capsys):
        url = storage.put("a/dead.png", b"bytes", "image/png").url
        store.create("ff_products", {"businessId": "b1", "imageUrl": url}, document_id="p1")

        assert verify_script.main(["--only=ff_products"]) == 0
        assert "CDN 404 (HEAD)" not in capsys.readouterr().out

        assert verify_script.main(["--only=ff_products", "--check-cdn"]) == 2
        out = capsys.readouterr().out
        assert "CDN 404 (HEAD): 1" in out
        assert f"{CANONICAL_BASE}/a/dead.png" in out

    def test_missing_configuration_exits_one(self, verify_script):
        with patch.object(verify_script, "build_verifier", side_effect=ConfigurationError(["CLOUDFLARE_R2_ACCOUNT_ID"])):
            assert verify_script.main([]) == verify_script.EXIT_FATAL == 1

    def test_unloadable_settings_exit_one(self, verify_script, capsys):
        with patch.object(verify_script, "get_settings", side_effect=ValueError("bad env")):
            assert verify_script.main([]) == 1
        assert "Configuration error: bad env" in capsys.readouterr().err
