from __future__ import annotations

import logging
import os
import unittest
from unittest import mock

from src.config.defaults import DEFAULT_API_URL, load_service_config
from src.config.logging import SESSION_LOGGERS, TRANSPORT_LOGGERS, resolve_log_level, setup_logging


class TestLoggingConfig(unittest.TestCase):
    def tearDown(self) -> None:
        for name in (*SESSION_LOGGERS, *TRANSPORT_LOGGERS):
            logging.getLogger(name).setLevel(logging.NOTSET)

    def test_resolve_log_level_aliases(self) -> None:
        self.assertEqual(resolve_log_level("warn"), logging.WARNING)
        self.assertEqual(resolve_log_level("trace"), logging.DEBUG)
        self.assertEqual(resolve_log_level("15"), 15)
        self.assertEqual(resolve_log_level(logging.ERROR), logging.ERROR)
        self.assertEqual(resolve_log_level(None, default=logging.DEBUG), logging.DEBUG)
        self.assertEqual(resolve_log_level("  "), logging.INFO)
        self.assertEqual(resolve_log_level("unknown"), logging.INFO)

    def test_setup_logging_prefers_explicit_level(self) -> None:
        with mock.patch.dict(os.environ, {"LOG_LEVEL": "DEBUG"}, clear=True):
            resolved = setup_logging("ERROR")

        self.assertEqual(resolved, logging.ERROR)
        self.assertEqual(logging.getLogger().level, logging.ERROR)
        self.assertEqual(logging.getLogger("src.lib.session").level, logging.ERROR)
        self.assertEqual(logging.getLogger("httpx").level, logging.WARNING)

    def test_setup_logging_reads_environment(self) -> None:
        with mock.patch.dict(os.environ, {"LOG_LEVEL": "DEBUG"}, clear=True):
            resolved = setup_logging()

        self.assertEqual(resolved, logging.DEBUG)
        self.assertEqual(logging.getLogger("httpx").level, logging.NOTSET)

    def test_session_loggers_can_be_more_verbose_than_root(self) -> None:
        env = {"LOG_LEVEL": "WARNING", "SESSION_LOG_LEVEL": "debug"}
        with mock.patch.dict(os.environ, env, clear=True):
            setup_logging()

        self.assertEqual(logging.getLogger().level, logging.WARNING)
        for name in SESSION_LOGGERS:
            self.assertEqual(logging.getLogger(name).level, logging.DEBUG)
        self.assertTrue(logging.getLogger("src.lib.document.engine").isEnabledFor(logging.DEBUG))

    def test_explicit_session_level_overrides_environment(self) -> None:
        with mock.patch.dict(os.environ, {"SESSION_LOG_LEVEL": "DEBUG"}, clear=True):
            setup_logging("INFO", session_level="error")

        self.assertEqual(logging.getLogger("src.lib.service").level, logging.ERROR)


class TestServiceConfig(unittest.TestCase):
    def test_defaults_without_environment(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            config = load_service_config()

        self.assertEqual(config["url"], DEFAULT_API_URL)
        self.assertIsNone(config["api_key"])
        self.assertFalse(config["persist"])

    def test_environment_overrides(self) -> None:
        env = {"PT_API_KEY": "user-key", "PT_PERSIST": "1", "PT_TIMEOUT": "2.5"}
        with mock.patch.dict(os.environ, env, clear=True):
            config = load_service_config()

        self.assertEqual(config["api_key"], "user-key")
        self.assertTrue(config["persist"])
        self.assertEqual(config["timeout"], 2.5)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
