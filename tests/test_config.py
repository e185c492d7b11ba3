#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""ConfigManager precedence: defaults < JSON file < environment."""

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from pydantic import ValidationError

from signal_bus.core.config import BusConfig, ConfigManager

_ENV_KEYS = (
    "SIGNAL_BUS_CONFIG_PATH",
    "SIGNAL_BUS_REPLAY_DEFERRED_ON_ERROR",
    "SIGNAL_BUS_RECORD_HISTORY",
    "SIGNAL_BUS_LOG_LEVEL",
)


class TestConfigManager(unittest.TestCase):
    def setUp(self):
        clean = {k: v for k, v in os.environ.items() if k not in _ENV_KEYS}
        self._env = mock.patch.dict(os.environ, clean, clear=True)
        self._env.start()
        self._tmp = tempfile.TemporaryDirectory(prefix="signal-bus-config-")
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._env.stop()
        self._tmp.cleanup()

    def _write(self, data, name="bus.json"):
        path = self.tmp / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_defaults_without_file(self):
        cfg = ConfigManager().load()
        self.assertEqual(cfg, BusConfig())
        self.assertTrue(cfg.replay_deferred_on_error)
        self.assertTrue(cfg.record_history)
        self.assertEqual(cfg.log_level, "WARNING")

    def test_missing_file_falls_back_to_defaults(self):
        cfg = ConfigManager(self.tmp / "absent.json").load()
        self.assertEqual(cfg, BusConfig())

    def test_file_values_are_loaded(self):
        path = self._write({"replay_deferred_on_error": False, "log_level": "DEBUG"})
        cfg = ConfigManager(path).load()
        self.assertFalse(cfg.replay_deferred_on_error)
        self.assertEqual(cfg.log_level, "DEBUG")

    def test_env_path_wins_over_constructor_path(self):
        ignored = self._write({"record_history": False}, "ignored.json")
        used = self._write({"log_level": "ERROR"}, "used.json")
        os.environ["SIGNAL_BUS_CONFIG_PATH"] = str(used)
        cfg = ConfigManager(ignored).load()
        self.assertTrue(cfg.record_history)
        self.assertEqual(cfg.log_level, "ERROR")

    def test_env_overrides_file(self):
        path = self._write({"record_history": True, "log_level": "DEBUG"})
        os.environ["SIGNAL_BUS_RECORD_HISTORY"] = "off"
        os.environ["SIGNAL_BUS_LOG_LEVEL"] = "info"
        cfg = ConfigManager(path).load()
        self.assertFalse(cfg.record_history)
        self.assertEqual(cfg.log_level, "INFO")

    def test_truthy_env_values(self):
        for raw in ("1", "true", "YES", " on "):
            os.environ["SIGNAL_BUS_REPLAY_DEFERRED_ON_ERROR"] = raw
            self.assertTrue(ConfigManager().load().replay_deferred_on_error, raw)

    def test_blank_env_value_is_ignored(self):
        path = self._write({"replay_deferred_on_error": False})
        os.environ["SIGNAL_BUS_REPLAY_DEFERRED_ON_ERROR"] = "  "
        self.assertFalse(ConfigManager(path).load().replay_deferred_on_error)

    def test_corrupted_file_is_logged_and_ignored(self):
        path = self.tmp / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with self.assertLogs("signal_bus.core.config", level="WARNING"):
            cfg = ConfigManager(path).load()
        self.assertEqual(cfg, BusConfig())
        self.assertTrue(path.exists())

    def test_non_object_file_is_ignored(self):
        path = self._write([1, 2, 3])
        with self.assertLogs("signal_bus.core.config", level="WARNING"):
            cfg = ConfigManager(path).load()
        self.assertEqual(cfg, BusConfig())

    def test_file_with_invalid_values_is_logged_and_ignored(self):
        path = self._write({"record_history": "maybe", "log_level": "DEBUG"})
        with self.assertLogs("signal_bus.core.config", level="WARNING"):
            cfg = ConfigManager(path).load()
        self.assertEqual(cfg, BusConfig())

    def test_env_still_applies_over_ignored_file(self):
        path = self._write({"log_level": "noisy"})
        os.environ["SIGNAL_BUS_RECORD_HISTORY"] = "no"
        with self.assertLogs("signal_bus.core.config", level="WARNING"):
            cfg = ConfigManager(path).load()
        self.assertFalse(cfg.record_history)
        self.assertEqual(cfg.log_level, "WARNING")

    def test_invalid_log_level_is_rejected(self):
        os.environ["SIGNAL_BUS_LOG_LEVEL"] = "chatty"
        with self.assertRaises(ValidationError):
            ConfigManager().load()


if __name__ == "__main__":
    unittest.main(verbosity=2)
