import unittest

from pg_objstats.errors import InvariantViolation
from pg_objstats.plugins.postgres.utils.row_decoding import as_count, build_samples, decode_rows, ratio


class TestRowDecoding(unittest.TestCase):
    def test_rows_become_dictionaries(self):
        rows = decode_rows([('public', 'orders', 10)], ('schema_name', 'table_name', 'total_size'), 'tables by total size')
        self.assertEqual(rows, [{'schema_name': 'public', 'table_name': 'orders', 'total_size': 10}])

    def test_wrong_width_names_the_category(self):
        with self.assertRaises(InvariantViolation) as ctx:
            decode_rows([('public', 'orders', 10), ('public', 'items')],
                        ('schema_name', 'table_name', 'total_size'), 'tables by total size')
        self.assertIn('tables by total size', ctx.exception.message)
        self.assertEqual(ctx.exception.detail, 'row 2 has 2 values, expected 3')

    def test_null_counters_and_ratios(self):
        self.assertEqual(as_count(None), 0)
        self.assertIsNone(ratio(5, 0))
        self.assertIsNone(ratio(None, None))
        self.assertEqual(ratio(1, 4), 0.25)

    def test_build_samples_skips_undefined_values(self):
        rows = [{'s': 'public', 'n': 'a', 'v': 1}, {'s': 'public', 'n': 'b', 'v': None}]
        samples = build_samples(rows, ('s', 'n'), lambda r: r['v'], lambda r: 20000)
        self.assertEqual(len(samples), 1)
        self.assertEqual(samples[0].key, ('public', 'a'))
        self.assertEqual(samples[0].observations, 20000)


if __name__ == '__main__':
    unittest.main()
