import tempfile
import unittest
from pathlib import Path

from app_config_schema import UIServerSettings
from server.config import ServerConfigurationError, UIServerConfig


class UIServerConfigTests(unittest.TestCase):
    def test_from_settings_uses_bundled_ui(self) -> None:
        settings = UIServerSettings(enabled=True, host="127.0.0.1", port=8765, index_file="")

        config = UIServerConfig.from_settings(settings)

        self.assertEqual(("web_ui", "index.html"), Path(config.index_file).parts[-2:])
        self.assertTrue(Path(config.index_file).is_file())
        self.assertEqual("/ws", config.websocket_path)
        self.assertEqual(Path(config.index_file).resolve().parent, config.ui_root)

    def test_from_settings_prefers_explicit_index_file(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            custom = Path(temp_dir) / "index.html"
            custom.write_text("<html></html>", encoding="utf-8")

            settings = UIServerSettings(index_file=str(custom))
            config = UIServerConfig.from_settings(settings, api_base_url="http://api:9000")

            self.assertEqual(str(custom), config.index_file)
            self.assertEqual("http://api:9000", config.api_base_url)

    def test_default_api_base_url(self) -> None:
        config = UIServerConfig.from_settings(UIServerSettings())
        self.assertEqual("http://127.0.0.1:8000", config.api_base_url)

    def test_rejects_missing_index_file(self) -> None:
        settings = UIServerSettings(index_file="/definitely/not/here/index.html")

        with self.assertRaises(ServerConfigurationError):
            UIServerConfig.from_settings(settings)

    def test_rejects_invalid_port(self) -> None:
        with self.assertRaises(ServerConfigurationError):
            UIServerConfig(enabled=False, port=0)

    def test_disabled_server_skips_index_check(self) -> None:
        config = UIServerConfig(enabled=False, index_file="")
        self.assertFalse(config.enabled)


if __name__ == "__main__":
    unittest.main()
