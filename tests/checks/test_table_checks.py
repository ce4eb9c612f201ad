import unittest
from unittest.mock import MagicMock

from pg_objstats.config import StatsConfig
from pg_objstats.errors import InvariantViolation
from pg_objstats.models import NoneFoundRecord, TableRecord
from pg_objstats.plugins.postgres.checks import table_bloat, table_size, table_stats

BANNER = 'PostgreSQL 15.2 on x86_64-pc-linux-gnu, 64-bit'


class TestTableSizeChecks(unittest.TestCase):
    def setUp(self):
        self.connector = MagicMock()
        self.config = StatsConfig(top_tables_n=3)

    def test_run_tables_by_size(self):
        self.connector.execute_query.return_value = [
            ('public', 'A', 100), ('public', 'B', 90), ('public', 'C', 80), ('public', 'D', 20), ('public', 'E', 10),
        ]
        records = table_size.run_tables_by_size(self.connector, self.config, 'shop')

        self.assertEqual([(r.table, r.value) for r in records],
                         [('A', 100), ('B', 90), ('C', 80), ('all the other', 30)])
        self.assertTrue(all(isinstance(r, TableRecord) and r.db == 'shop' for r in records))

    def test_run_tables_by_tuple_count(self):
        self.connector.execute_query.return_value = [('public', 'orders', 10, 5), ('pg_toast', 'pg_toast_1', None, 2)]
        records = table_size.run_tables_by_tuple_count(self.connector, self.config, 'shop')
        self.assertEqual([(r.table, r.value) for r in records], [('orders', 15), ('pg_toast_1', 2)])

    def test_wrong_row_width(self):
        self.connector.execute_query.return_value = [('public', 'orders')]
        with self.assertRaises(InvariantViolation):
            table_size.run_tables_by_size(self.connector, self.config, 'shop')


class TestTableStatsChecks(unittest.TestCase):
    def setUp(self):
        self.connector = MagicMock()
        self.config = StatsConfig()

    def _by_message(self, records):
        grouped = {}
        for record in records:
            grouped.setdefault(record.message, []).append(record)
        return grouped

    def test_run_table_stats(self):
        self.connector.execute_query.return_value = [
            ('public', 'orders', 100, 50, 10, 5, 1, 2, 30000, 10000, 1, 2),
            ('public', 'idle', 0, 0, 0, 0, 0, 0, 0, 0, 0, 0),
        ]
        records = self._by_message(table_stats.run_table_stats(self.connector, self.config, 'shop'))

        self.assertEqual(len(records), 10)
        self.assertEqual(records['Top tables by total fetched rows'][0].value, 150)
        self.assertEqual(records['Top tables by total least HOT-updated rows'][0].value, 3)
        self.assertEqual(records['Top tables by dead tuple fraction (>10000 tuples)'],
                         [TableRecord('Top tables by dead tuple fraction (>10000 tuples)', 'shop', 'public', 'orders', 0.25)])

    def test_ratio_below_floor_is_none_found(self):
        self.connector.execute_query.return_value = [('public', 'orders', 100, 50, 10, 5, 1, 2, 100, 10, 1, 2)]
        records = self._by_message(table_stats.run_table_stats(self.connector, self.config, 'shop'))
        self.assertEqual(records['No tables by dead tuple fraction (>10000 tuples)'],
                         [NoneFoundRecord('No tables by dead tuple fraction (>10000 tuples)', 'shop')])

    def test_run_table_io_stats(self):
        self.connector.execute_query.return_value = [
            ('public', 'orders', 2500, 10000),
            ('public', 'cold', 100, 0),
        ]
        records = table_stats.run_table_io_stats(self.connector, self.config, 'shop')
        self.assertEqual([(r.table, r.value) for r in records], [('orders', 0.2)])


class TestTableBloatCheck(unittest.TestCase):
    def test_run_table_bloat(self):
        connector = MagicMock()
        connector.version_info = {'version_banner': BANNER}
        connector.execute_query.side_effect = [
            [('public', 'orders', 'id', 0.0, 4)],
            [('public', 'orders', 1000.0, 1000, 0, 65536, None, 8192)],
        ]
        records = table_bloat.run_table_bloat(connector, StatsConfig(), 'shop')
        self.assertEqual(records, [TableRecord('Top tables by approximate bloat fraction', 'shop', 'public', 'orders', 50.0)])


if __name__ == '__main__':
    unittest.main()
