"""
Tests for configuration and logging setup
"""

import logging
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from backend.config import Settings as BackendSettings
from backend.config import get_settings as get_backend_settings
from backend.main import create_app
from trainer.config import Settings, get_settings
from trainer.logging_config import setup_logging


class TestTrainerSettings(unittest.TestCase):

    def test_defaults(self):
        """Test the engine defaults with an empty environment."""
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.opening_delay, 0.3)
        self.assertTrue(settings.auto_advance)
        self.assertEqual(settings.mistake_penalty_seconds, 3.0)
        self.assertEqual(settings.set_completion_bonus_seconds, 1.0)

    def test_env_prefix(self):
        """Test engine settings read TRAINER_ prefixed variables."""
        env = {"TRAINER_AUTO_ADVANCE": "false", "TRAINER_REPLY_DELAY": "0"}
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)
        self.assertFalse(settings.auto_advance)
        self.assertEqual(settings.reply_delay, 0.0)


class TestBackendSettings(unittest.TestCase):

    def test_async_driver_is_filled_in(self):
        """Test database URLs get an async driver."""
        cases = {
            "postgres://u:p@db:5432/trainer": "postgresql+asyncpg://u:p@db:5432/trainer",
            "postgresql://db/trainer": "postgresql+asyncpg://db/trainer",
            "sqlite:///./trainer.db": "sqlite+aiosqlite:///./trainer.db",
            "postgresql+asyncpg://db/trainer": "postgresql+asyncpg://db/trainer",
        }
        for url, expected in cases.items():
            settings = BackendSettings(database_url=url, _env_file=None)
            self.assertEqual(settings.database_url_async, expected)

    def test_sql_echo_follows_environment(self):
        """Test SQL echo defaults on outside production."""
        self.assertTrue(BackendSettings(env="development", _env_file=None).echo_sql)
        self.assertFalse(BackendSettings(env="production", _env_file=None).echo_sql)
        self.assertFalse(BackendSettings(env="development", db_echo=False, _env_file=None).echo_sql)

    def test_cors_origin_list(self):
        """Test splitting the CORS origin list."""
        settings = BackendSettings(cors_origins="http://a.test, http://b.test,", _env_file=None)
        self.assertEqual(settings.cors_origin_list, ["http://a.test", "http://b.test"])


class TestSetupLogging(unittest.TestCase):

    def setUp(self):
        self.root = logging.getLogger()
        self.saved_handlers = list(self.root.handlers)
        self.saved_level = self.root.level
        get_settings.cache_clear()

    def tearDown(self):
        for handler in self.root.handlers:
            if handler not in self.saved_handlers:
                handler.close()
        self.root.handlers = self.saved_handlers
        self.root.setLevel(self.saved_level)
        get_settings.cache_clear()

    def test_console_and_file_handlers(self):
        """Test setup with a log file installs console and file handlers."""
        with tempfile.TemporaryDirectory() as tmp:
            log_file = Path(tmp) / "logs" / "trainer.log"
            env = {"TRAINER_LOG_LEVEL": "DEBUG", "TRAINER_LOG_FILE": str(log_file)}
            with mock.patch.dict(os.environ, env, clear=True):
                setup_logging()

            added = [h for h in self.root.handlers if h not in self.saved_handlers]
            self.assertEqual(len(added), 2)
            self.assertEqual(self.root.level, logging.DEBUG)
            self.assertTrue(log_file.exists())
            self.assertEqual(logging.getLogger("httpx").level, logging.WARNING)

            for handler in added:
                handler.close()
            self.root.handlers = list(self.saved_handlers)

    def test_app_factory_installs_handlers_once(self):
        """Test that building the app twice replaces its log handlers instead of stacking them."""
        with mock.patch.dict(os.environ, {"LOG_LEVEL": "WARNING"}, clear=True):
            get_backend_settings.cache_clear()
            create_app()
            create_app()
        get_backend_settings.cache_clear()

        added = [h for h in self.root.handlers if h not in self.saved_handlers]
        self.assertEqual(len(added), 1)
        self.assertIsInstance(added[0], logging.StreamHandler)
        self.assertEqual(self.root.level, logging.WARNING)
        self.assertEqual(logging.getLogger("sqlalchemy.engine").level, logging.WARNING)


if __name__ == "__main__":
    unittest.main()
