#!/usr/bin/env python3

import os
import pathlib
import tempfile
import unittest
from unittest import mock

from pgroles.common import ConfigError
from pgroles.config import (
    DEFAULT_CONFIGPATH, Config, SecretsConfig, get_configpath, set_configpath,
)
from tests.common import TEST_CONFIGPATH


class TestConfiguration(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch.dict(os.environ)
        patcher.start()
        self.addCleanup(patcher.stop)
        os.environ.pop("PGROLES_CONFIGPATH", None)
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.tmp = pathlib.Path(tmpdir.name)

    def _write(self, name: str, content: str) -> pathlib.Path:
        path = self.tmp / name
        path.write_text(content)
        return path

    def test_configpath(self) -> None:
        with self.assertRaises(ConfigError):
            get_configpath()
        self.assertEqual(DEFAULT_CONFIGPATH, get_configpath(fallback=True))
        self.assertEqual(str(DEFAULT_CONFIGPATH), os.environ["PGROLES_CONFIGPATH"])
        set_configpath(self.tmp / "other.py")
        self.assertEqual(self.tmp / "other.py", get_configpath())

    def test_override(self) -> None:
        configpath = self._write(
            "config.py", "DB_NAME = 'roles'\nDB_PORT = 6432\nUNKNOWN = 1\n")
        set_configpath(configpath)
        config = Config()
        self.assertEqual("roles", config["DB_NAME"])
        self.assertEqual(6432, config["DB_PORT"])
        self.assertEqual("localhost", config["DB_HOST"])
        self.assertIsNone(config["LOG_DIR"])
        with self.assertRaises(KeyError):
            config["UNKNOWN"]

    def test_missing_config_file(self) -> None:
        set_configpath(self.tmp / "missing.py")
        with self.assertRaises(ConfigError):
            Config()

    def test_secrets(self) -> None:
        secretspath = self._write(
            "secrets.py", "DB_PASSWORDS = {'admin': 'secret'}\nOTHER = 2\n")
        set_configpath(self._write(
            "config.py", f"SECRETS_CONFIGPATH = {str(secretspath)!r}\n"))
        secrets = SecretsConfig()
        self.assertEqual({'admin': 'secret'}, secrets["DB_PASSWORDS"])
        with self.assertRaises(KeyError):
            secrets["OTHER"]

    def test_missing_secrets_file(self) -> None:
        set_configpath(self._write(
            "config.py", f"SECRETS_CONFIGPATH = {str(self.tmp / 'nope.py')!r}\n"))
        with self.assertRaises(ConfigError):
            SecretsConfig()

    def test_suite_config(self) -> None:
        set_configpath(TEST_CONFIGPATH)
        config = Config()
        self.assertTrue(pathlib.Path(config["SECRETS_CONFIGPATH"]).is_file())
        self.assertIn(config["DB_USER"], SecretsConfig()["DB_PASSWORDS"])
