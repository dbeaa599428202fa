import unittest
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from workify.core.pipeline_config import get_pipeline_config, get_pipeline_value, get_ttl


class PipelineConfigTests(unittest.TestCase):
    def test_loader_and_value_lookup(self):
        config = get_pipeline_config()
        self.assertIsInstance(config, dict)
        self.assertEqual(get_pipeline_value("caches.ai.max_size"), 500)
        self.assertEqual(get_pipeline_value("caches.sweep_interval"), 60)

    def test_missing_paths_use_default(self):
        self.assertEqual(get_pipeline_value("caches.unknown.max_size", 7), 7)
        self.assertEqual(get_pipeline_value("caches.ai.max_size.deeper", "x"), "x")
        self.assertIsNone(get_pipeline_value(""))

    def test_operation_ttls(self):
        self.assertEqual(get_ttl("similarity", 1), 1800.0)
        self.assertEqual(get_ttl("tailored_content", 1), 3600.0)
        self.assertEqual(get_ttl("not_configured", 12.5), 12.5)


if __name__ == "__main__":
    unittest.main()
