import os
import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest.mock import patch

from app_config import AppConfigurationError, load_app_config, resolve_config_path


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class AppConfigLoadingTests(unittest.TestCase):
    def _load(self, content: str):
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            _write_text(config_path, textwrap.dedent(content).strip())
            return load_app_config(str(config_path)), Path(temp_dir)

    def test_load_app_config_resolves_relative_paths(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            config_path = root / "config.toml"
            _write_text(
                config_path,
                textwrap.dedent(
                    """
                    [storage]
                    backend = "json"
                    path = "state/tasks.json"

                    [ui_server]
                    index_file = "web/index.html"
                    """
                ).strip(),
            )

            app_config = load_app_config(str(config_path))

            self.assertEqual(str(config_path), app_config.source_file)
            self.assertEqual("json", app_config.storage.backend)
            self.assertEqual(
                str((root / "state/tasks.json").resolve()),
                app_config.storage.path,
            )
            self.assertEqual(
                str((root / "web/index.html").resolve()),
                app_config.ui_server.index_file,
            )

    def test_empty_file_uses_defaults(self) -> None:
        app_config, root = self._load("")

        self.assertEqual("127.0.0.1", app_config.api.host)
        self.assertEqual(8000, app_config.api.port)
        self.assertEqual("local", app_config.api.default_user_id)
        self.assertEqual("sqlite", app_config.storage.backend)
        self.assertEqual(
            str((root / "data/pomorange.db").resolve()),
            app_config.storage.path,
        )
        self.assertEqual(25, app_config.timer.focus_minutes)
        self.assertEqual(5, app_config.timer.break_minutes)
        self.assertEqual(600, app_config.timer.preparation_seconds)
        self.assertTrue(app_config.timer.restore_state)
        self.assertTrue(app_config.ui_server.enabled)
        self.assertEqual("", app_config.ui_server.index_file)
        self.assertEqual("INFO", app_config.logging.level)

    def test_json_backend_gets_json_default_path(self) -> None:
        app_config, root = self._load('[storage]\nbackend = "JSON"\n')

        self.assertEqual("json", app_config.storage.backend)
        self.assertEqual(
            str((root / "data/pomorange.json").resolve()),
            app_config.storage.path,
        )

    def test_parses_timer_api_and_logging_sections(self) -> None:
        app_config, _ = self._load(
            """
            [api]
            port = 9000
            default_user_id = "alice"
            cors_origins = ["http://example.test", " "]

            [timer]
            focus_minutes = 50
            break_minutes = 10
            tick_interval_seconds = 1
            restore_state = false

            [logging]
            level = "debug"
            """
        )

        self.assertEqual(9000, app_config.api.port)
        self.assertEqual("alice", app_config.api.default_user_id)
        self.assertEqual(("http://example.test",), app_config.api.cors_origins)
        self.assertEqual(50, app_config.timer.focus_minutes)
        self.assertEqual(10, app_config.timer.break_minutes)
        self.assertEqual(1.0, app_config.timer.tick_interval_seconds)
        self.assertFalse(app_config.timer.restore_state)
        self.assertEqual("DEBUG", app_config.logging.level)

    def test_rejects_invalid_values(self) -> None:
        cases = {
            "storage.backend": '[storage]\nbackend = "redis"\n',
            "timer.focus_minutes": "[timer]\nfocus_minutes = 121\n",
            "timer.break_minutes": "[timer]\nbreak_minutes = 0\n",
            "timer.preparation_seconds": "[timer]\npreparation_seconds = 0\n",
            "timer.tick_interval_seconds": "[timer]\ntick_interval_seconds = 10\n",
            "api.port": "[api]\nport = 70000\n",
            "api.default_user_id": '[api]\ndefault_user_id = " "\n',
            "logging.level": '[logging]\nlevel = "LOUD"\n',
            "ui_server.enabled": '[ui_server]\nenabled = "maybe"\n',
        }
        for field, content in cases.items():
            with self.subTest(field=field):
                with self.assertRaises(AppConfigurationError) as context:
                    self._load(content)
                self.assertIn(field, str(context.exception))

    def test_rejects_boolean_where_integer_expected(self) -> None:
        with self.assertRaises(AppConfigurationError):
            self._load("[timer]\nfocus_minutes = true\n")

    def test_rejects_non_table_section(self) -> None:
        with self.assertRaises(AppConfigurationError) as context:
            self._load('timer = "fast"\n')
        self.assertIn("[timer]", str(context.exception))

    def test_rejects_malformed_toml(self) -> None:
        with self.assertRaises(AppConfigurationError):
            self._load("[timer\nfocus_minutes = 1\n")

    def test_missing_file_raises(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with self.assertRaises(AppConfigurationError) as context:
                load_app_config(str(Path(temp_dir) / "absent.toml"))
        self.assertIn("not found", str(context.exception))

    def test_directory_path_raises(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with self.assertRaises(AppConfigurationError):
                load_app_config(temp_dir)

    def test_resolve_config_path_honors_environment_variable(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "custom.toml"
            _write_text(config_path, "[timer]\nfocus_minutes = 30\n")

            with patch.dict(os.environ, {"APP_CONFIG_FILE": str(config_path)}):
                resolved = resolve_config_path()
                app_config = load_app_config()

            self.assertEqual(config_path, resolved)
            self.assertEqual(30, app_config.timer.focus_minutes)

    def test_explicit_path_wins_over_environment_variable(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            explicit = Path(temp_dir) / "explicit.toml"
            _write_text(explicit, "")

            with patch.dict(os.environ, {"APP_CONFIG_FILE": "/nowhere/else.toml"}):
                resolved = resolve_config_path(str(explicit))

            self.assertEqual(explicit, resolved)

    def test_resolve_config_path_is_relative_to_cwd(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            cwd = Path(temp_dir).resolve()
            with patch.dict(os.environ, {}, clear=True):
                with patch("app_config.Path.cwd", return_value=cwd):
                    resolved = resolve_config_path()

            self.assertEqual(cwd / "config.toml", resolved)


if __name__ == "__main__":
    unittest.main()
