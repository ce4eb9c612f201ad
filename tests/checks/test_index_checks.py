import unittest
from unittest.mock import MagicMock

from pg_objstats.config import StatsConfig
from pg_objstats.models import ForeignKeyRecord, IndexRecord, NoneFoundRecord, RedundantIndexRecord
from pg_objstats.plugins.postgres.checks import database_size, foreign_key_audit, index_bloat, index_stats, redundant_indexes

BANNER = 'PostgreSQL 15.2 on x86_64-pc-linux-gnu, 64-bit'
MB = 1024 ** 2


class TestDatabaseSizeCheck(unittest.TestCase):
    def test_enumerate_and_rank(self):
        connector = MagicMock()
        connector.execute_query.return_value = [('shop', 300), ('billing', 200), ('postgres', 100)]
        targets = database_size.enumerate_databases(connector)
        self.assertEqual([t.name for t in targets], ['shop', 'billing', 'postgres'])

        records = database_size.run_top_databases(targets, StatsConfig(top_databases_n=2))
        self.assertEqual([(r.db, r.value) for r in records], [('shop', 300), ('billing', 200), ('all the other', 100)])


class TestIndexStatsChecks(unittest.TestCase):
    def setUp(self):
        self.connector = MagicMock()
        self.config = StatsConfig()

    def test_run_indexes_by_size(self):
        self.connector.execute_query.return_value = [('public', 'orders_pkey', 16384)]
        records = index_stats.run_indexes_by_size(self.connector, self.config, 'shop')
        self.assertEqual(records, [IndexRecord('Top indexes by size', 'shop', 'public', 'orders_pkey', 16384)])

    def test_run_index_stats_lists_least_fetching_first(self):
        self.connector.execute_query.return_value = [
            ('public', 'orders_pkey', 20000, 19000),
            ('public', 'orders_status_idx', 40000, 2000),
            ('public', 'orders_rare_idx', 500, 1),
        ]
        records = index_stats.run_index_stats(self.connector, self.config, 'shop')
        self.assertEqual([(r.index, r.value) for r in records], [('orders_status_idx', 0.05), ('orders_pkey', 0.95)])

    def test_run_index_io_stats(self):
        self.connector.execute_query.return_value = [('public', 'orders_pkey', 1000, 19000)]
        records = index_stats.run_index_io_stats(self.connector, self.config, 'shop')
        self.assertEqual(records[0].value, 0.05)

    def test_run_index_usage(self):
        self.connector.execute_query.return_value = [
            ('public', 'orders_status_idx', 10, 50000),
            ('public', 'orders_created_idx', 100000, 50000),
            ('public', 'items_sku_idx', 0, 0),
        ]
        records = index_stats.run_index_usage(self.connector, self.config, 'shop')
        self.assertEqual([(r.index, r.value) for r in records],
                         [('orders_status_idx', 0.0), ('orders_created_idx', 2.0)])


class TestIndexBloatCheck(unittest.TestCase):
    def test_run_index_bloat(self):
        connector = MagicMock()
        connector.version_info = {'version_banner': BANNER}
        connector.execute_query.side_effect = [
            [('public', 'orders', 'id', 0.0, 4)],
            [('public', 'orders', 'orders_pkey', 36600.0, 202, None, 1, 'id', 'id', False, 8192)],
        ]
        records = index_bloat.run_index_bloat(connector, StatsConfig(), 'shop')
        self.assertEqual(records, [IndexRecord('Top indexes by approximate bloat fraction', 'shop', 'public', 'orders_pkey', 50.0)])


class TestStructuralChecks(unittest.TestCase):
    def setUp(self):
        self.connector = MagicMock()
        self.config = StatsConfig()

    def test_no_redundant_indexes(self):
        self.connector.execute_query.return_value = [
            ('public', 'orders', 'orders_pkey', 16384, [1], 1, ['id']),
        ]
        records = redundant_indexes.run_redundant_indexes(self.connector, self.config, 'shop')
        self.assertEqual(records, [NoneFoundRecord('No redundant indexes', 'shop')])

    def test_redundant_indexes(self):
        self.connector.execute_query.return_value = [
            ('public', 'orders', 'orders_customer_idx', 16384, [2], 1, ['customer_id']),
            ('public', 'orders', 'orders_customer_date_idx', 16384, [2, 3], 2, ['customer_id', 'created']),
        ]
        records = redundant_indexes.run_redundant_indexes(self.connector, self.config, 'shop')
        self.assertEqual(records[0], RedundantIndexRecord(
            'Redundant indexes', 'shop', 'public', 'orders', 'orders_customer_idx',
            ['customer_id'], ['orders_customer_date_idx']))
        self.assertEqual(len(records), 2)

    def test_foreign_key_audit(self):
        self.connector.execute_query.side_effect = [
            [(1, 'public', 'orders', 'orders_customer_fk', 'customers', 16384, [2], ['customer_id'],
              50 * MB, 0, 5000, 0)],
            [(16384, 'orders_pkey', [1], 1, False, 'btree')],
        ]
        records = foreign_key_audit.run_foreign_key_audit(self.connector, self.config, 'shop')
        self.assertEqual(records, [ForeignKeyRecord(
            'Foreign keys without indexes', 'shop', 'public', 'orders', 'orders_customer_fk',
            'no index', 'customers', ['customer_id'])])

    def test_foreign_key_audit_without_foreign_keys(self):
        self.connector.execute_query.return_value = []
        records = foreign_key_audit.run_foreign_key_audit(self.connector, self.config, 'shop')
        self.assertEqual(records, [NoneFoundRecord('No foreign keys without indexes', 'shop')])
        self.assertEqual(self.connector.execute_query.call_count, 1)


if __name__ == '__main__':
    unittest.main()
