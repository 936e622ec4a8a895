"""Tests for netbench.config -- run configuration and file persistence."""

import os
import tempfile
import unittest
from unittest import mock

from netbench.config import (
    DEFAULTS,
    RunConfig,
    TransferConfig,
    load_config,
    save_config,
)
from netbench.constants import (
    DEFAULT_DOWNLOAD_URL,
    DEFAULT_UPLOAD_URL,
    UPLOAD_PAYLOAD_SIZE,
)


class TestConfigDefaults(unittest.TestCase):
    def test_defaults_have_required_keys(self):
        for key in ("iterations", "server", "upload_url", "request_timeout", "connect_timeout",
                    "expected_download_bytes"):
            self.assertIn(key, DEFAULTS)

    def test_run_config_defaults(self):
        cfg = RunConfig()
        self.assertEqual(cfg.iterations, 3)
        self.assertEqual(cfg.download_url, DEFAULT_DOWNLOAD_URL)
        self.assertEqual(cfg.upload_url, DEFAULT_UPLOAD_URL)
        self.assertEqual(cfg.request_timeout, 300.0)
        self.assertEqual(cfg.connect_timeout, 30.0)


class TestRunConfig(unittest.TestCase):
    def test_from_mapping_defaults(self):
        cfg = RunConfig.from_mapping(DEFAULTS)
        self.assertEqual(cfg, RunConfig())

    def test_from_mapping_overrides(self):
        cfg = RunConfig.from_mapping({
            "iterations": 5,
            "server": "http://example.com/10MB.bin",
            "request_timeout": 60,
            "unknown": "ignored",
        })
        self.assertEqual(cfg.iterations, 5)
        self.assertEqual(cfg.download_url, "http://example.com/10MB.bin")
        self.assertEqual(cfg.request_timeout, 60.0)
        self.assertEqual(cfg.upload_url, DEFAULT_UPLOAD_URL)

    def test_download_transfer_config(self):
        cfg = RunConfig(download_url="http://a/b", request_timeout=12, connect_timeout=3)
        dl = cfg.download()
        self.assertIsInstance(dl, TransferConfig)
        self.assertEqual(dl.target_url, "http://a/b")
        self.assertIsNone(dl.expected_total_bytes)
        self.assertEqual(dl.request_timeout, 12)
        self.assertEqual(dl.connect_timeout, 3)

    def test_upload_transfer_config(self):
        ul = RunConfig(upload_url="https://up/").upload()
        self.assertEqual(ul.target_url, "https://up/")
        self.assertEqual(ul.expected_total_bytes, UPLOAD_PAYLOAD_SIZE)

    def test_from_mapping_keeps_zero_values(self):
        cfg = RunConfig.from_mapping(dict(DEFAULTS, iterations=0, request_timeout=0, connect_timeout=0))
        self.assertEqual(cfg.iterations, 0)
        self.assertEqual(cfg.request_timeout, 0.0)
        self.assertEqual(cfg.connect_timeout, 0.0)

    def test_zero_file_values_fail_validation(self):
        from speedtrial import _validate
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with mock.patch("netbench.config._config_path", return_value=path):
                save_config({"iterations": 0})
                cfg = RunConfig.from_mapping(load_config())
        with self.assertRaises(ValueError):
            _validate(cfg)

    def test_from_mapping_null_falls_back_to_default(self):
        cfg = RunConfig.from_mapping({"iterations": None, "request_timeout": None})
        self.assertEqual(cfg.iterations, 3)
        self.assertEqual(cfg.request_timeout, 300.0)

    def test_from_mapping_expected_download_bytes(self):
        cfg = RunConfig.from_mapping({"expected_download_bytes": "104857600"})
        self.assertEqual(cfg.expected_download_bytes, 104_857_600)
        self.assertEqual(cfg.download().expected_total_bytes, 104_857_600)

    def test_frozen(self):
        cfg = RunConfig()
        with self.assertRaises(Exception):
            cfg.iterations = 9


class TestLoadSaveConfig(unittest.TestCase):
    def test_load_defaults_when_missing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with mock.patch("netbench.config._config_path", return_value=path):
                cfg = load_config()
                self.assertEqual(cfg["iterations"], 3)
                self.assertIsNone(cfg["server"])

    def test_save_and_load(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "sub", "config.json")
            with mock.patch("netbench.config._config_path", return_value=path):
                returned = save_config({"iterations": 7, "server": "http://x/y"})
                self.assertEqual(returned, path)
                cfg = load_config()
                self.assertEqual(cfg["iterations"], 7)
                self.assertEqual(cfg["server"], "http://x/y")
                # Defaults still present
                self.assertEqual(cfg["connect_timeout"], 30.0)

    def test_corrupt_file_returns_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with open(path, "w") as f:
                f.write("NOT JSON")
            with mock.patch("netbench.config._config_path", return_value=path):
                cfg = load_config()
                self.assertEqual(cfg["iterations"], 3)

    def test_non_dict_json_ignored(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with open(path, "w") as f:
                f.write("[1, 2, 3]")
            with mock.patch("netbench.config._config_path", return_value=path):
                self.assertEqual(load_config(), DEFAULTS)


if __name__ == "__main__":
    unittest.main()
