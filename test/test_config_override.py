"""Tests for config override behavior with defaults."""

import sys
import tempfile
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from IndexPilot.config import load_config, load_config_with_defaults


_BASE_YAML = """
log:
  level: INFO
  to_file: false
  dir: log

elasticsearch:
  default:
    hosts:
      - http://localhost:9200
    timeout: 30
    pool:
      max_connections: 10
"""


class TestConfigOverride(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.base_path = Path(self._tmp.name) / "default.yml"
        self.base_path.write_text(_BASE_YAML, encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _override(self, text: str) -> Path:
        path = Path(self._tmp.name) / "override.yml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_override_merges_with_defaults(self) -> None:
        override_path = self._override(
            """
log:
  level: DEBUG

elasticsearch:
  default:
    timeout: 5
  search:
    hosts: [http://search:9200]
"""
        )

        cfg = load_config_with_defaults(override_path, default_path=self.base_path)

        self.assertEqual(cfg.runtime.level, "DEBUG")
        default = cfg.connections.pools["default"]
        self.assertEqual(default.timeout, 5.0)
        self.assertEqual(default.hosts, ("http://localhost:9200",))
        self.assertEqual(default.max_connections, 10)
        self.assertEqual(cfg.connections.pools["search"].hosts, ("http://search:9200",))

    def test_empty_override_uses_defaults(self) -> None:
        cfg = load_config_with_defaults(self._override("{}"), default_path=self.base_path)

        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertEqual(list(cfg.connections.pools), ["default"])

    def test_load_config_reads_single_file(self) -> None:
        cfg = load_config(self.base_path)
        self.assertEqual(cfg.connections.pools["default"].timeout, 30.0)

    def test_repository_default_config_parses(self) -> None:
        cfg = load_config(REPO_ROOT / "config" / "default.yml")
        self.assertIn("default", cfg.connections.pools)


if __name__ == "__main__":
    unittest.main()
