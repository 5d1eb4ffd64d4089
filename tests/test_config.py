"""Tests for configuration manager and settings."""
import os
import tempfile
import shutil
import unittest
from pathlib import Path
from unittest import mock

from cetieflow.config import AppSettings, Config, ConfigManager
from cetieflow.config import settings as settings_module
from cetieflow.utils.exceptions import ConfigError

CLIENT_ID = "0f8fad5b-d9cb-469f-a165-70867728950e"


class TestConfigManager(unittest.TestCase):
    """Test ConfigManager functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = Path(tempfile.mkdtemp())
        self.config_manager = ConfigManager(config_dir=self.test_dir)

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_missing_config_is_none(self):
        self.assertIsNone(self.config_manager.load_config())

    def test_save_and_load_config(self):
        """Test saving and loading configuration."""
        config = Config(client_id=CLIENT_ID, tenant_id="cetie.onmicrosoft.com", log_level="DEBUG")

        self.config_manager.save_config(config)
        loaded_config = self.config_manager.load_config()

        self.assertEqual(loaded_config, config)

    def test_unknown_keys_ignored(self):
        self.config_manager.config_file.write_text(
            f'{{"client_id": "{CLIENT_ID}", "tenant_id": "t", "polling_interval_minutes": 5}}'
        )
        self.assertEqual(self.config_manager.load_config().tenant_id, "t")

    def test_corrupt_file(self):
        self.config_manager.config_file.write_text("{not json")
        with self.assertRaises(ConfigError):
            self.config_manager.load_config()

    def test_validate_config_valid(self):
        """Test validation with valid config."""
        is_valid, message = self.config_manager.validate_config(Config(client_id=CLIENT_ID, tenant_id="t"))
        self.assertTrue(is_valid)

    def test_validate_config_bad_client_id(self):
        is_valid, message = self.config_manager.validate_config(Config(client_id="my-app", tenant_id="t"))
        self.assertFalse(is_valid)
        self.assertIn("GUID", message)

    def test_validate_config_missing_tenant(self):
        is_valid, message = self.config_manager.validate_config(Config(client_id=CLIENT_ID, tenant_id=""))
        self.assertFalse(is_valid)
        self.assertIn("Tenant", message)

    def test_validate_config_log_level(self):
        config = Config(client_id=CLIENT_ID, tenant_id="t", log_level="LOUD")
        self.assertFalse(self.config_manager.validate_config(config)[0])


class TestAppSettings(unittest.TestCase):
    def test_packaged_defaults(self):
        settings = AppSettings.load()

        self.assertEqual(settings.search_path, "1-Essais/1-Temporaire")
        self.assertEqual(settings.templates_path, "1-Essais/4-PVEA standards")
        self.assertEqual(settings.archive_path, "/1-Essais/2-Valide")
        self.assertEqual(settings.validation_file, "validation.json")
        self.assertIn(".png", settings.photo_extensions)
        self.assertEqual(settings.authority_for("tid"), "https://login.microsoftonline.com/tid")

    def test_env_override(self):
        test_dir = Path(tempfile.mkdtemp())
        self.addCleanup(shutil.rmtree, test_dir, True)
        custom = test_dir / "custom.yaml"
        custom.write_text(
            (Path(settings_module.__file__).parent / "config.yaml").read_text(encoding="utf-8")
            .replace("1-Essais/2-Valide", "Archive"),
            encoding="utf-8"
        )

        with mock.patch.dict(os.environ, {"CETIEFLOW_SETTINGS": str(custom)}):
            settings = AppSettings.load()

        self.assertEqual(settings.archive_path, "/Archive")

    def test_missing_section(self):
        test_dir = Path(tempfile.mkdtemp())
        self.addCleanup(shutil.rmtree, test_dir, True)
        broken = test_dir / "broken.yaml"
        broken.write_text("app:\n  name: X\n  version: 1\n", encoding="utf-8")

        with self.assertRaises(ConfigError):
            AppSettings.load(broken)

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            AppSettings.load(Path("/nonexistent/config.yaml"))


if __name__ == "__main__":
    unittest.main()
