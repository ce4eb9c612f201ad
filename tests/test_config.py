import os
import tempfile
import unittest

from pg_objstats.config import StatsConfig, load_settings
from pg_objstats.errors import ConfigError


class TestStatsConfig(unittest.TestCase):
    def test_defaults(self):
        config = StatsConfig.from_settings({})
        self.assertEqual(config.top_databases_n, 5)
        self.assertEqual(config.top_tables_n, 10)
        self.assertEqual(config.min_observations, 10000)
        self.assertEqual(config.fk_min_table_mb, 9)

    def test_overrides(self):
        config = StatsConfig.from_settings({'host': 'db1', 'object_stats': {'top_tables_n': 3}})
        self.assertEqual(config.top_tables_n, 3)

    def test_invalid_values(self):
        for section in ({'top_tables_n': 0}, {'top_indexes_n': 2.5}, {'top_databases_n': True},
                        {'min_observations': -1}, {'fk_min_table_mb': 'big'}):
            with self.assertRaises(ConfigError):
                StatsConfig.from_settings({'object_stats': section})

    def test_unknown_keys(self):
        with self.assertRaises(ConfigError) as ctx:
            StatsConfig.from_settings({'object_stats': {'top_n': 3}})
        self.assertEqual(ctx.exception.detail, 'top_n')


class TestLoadSettings(unittest.TestCase):
    def _write(self, text):
        handle = tempfile.NamedTemporaryFile('w', suffix='.yaml', delete=False)
        with handle:
            handle.write(text)
        self.addCleanup(os.unlink, handle.name)
        return handle.name

    def test_yaml_file(self):
        path = self._write('host: localhost\nobject_stats:\n  top_tables_n: 4\n')
        settings = load_settings(path)
        self.assertEqual(settings['object_stats']['top_tables_n'], 4)

    def test_empty_file(self):
        self.assertEqual(load_settings(self._write('')), {})

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            load_settings('/nonexistent/config.yaml')

    def test_malformed_file(self):
        with self.assertRaises(ConfigError):
            load_settings(self._write('host: [unclosed\n'))


if __name__ == '__main__':
    unittest.main()
