# This file defines the categories of one collection run and their order.
# Cluster actions run once and receive the enumerated databases; database
# actions run for every database, in the order listed.

CHECKS = 'pg_objstats.plugins.postgres.checks'

REPORT_SECTIONS = [
    {
        'title': 'Cluster',
        'scope': 'cluster',
        'actions': [
            {'category': 'databases by size', 'module': f'{CHECKS}.database_size', 'function': 'run_top_databases'},
        ]
    },
    {
        'title': 'Tables',
        'scope': 'database',
        'actions': [
            {'category': 'tables by total size', 'module': f'{CHECKS}.table_size', 'function': 'run_tables_by_size'},
            {'category': 'tables by tuple count', 'module': f'{CHECKS}.table_size', 'function': 'run_tables_by_tuple_count'},
            {'category': 'tables stats', 'module': f'{CHECKS}.table_stats', 'function': 'run_table_stats'},
            {'category': 'tables IO stats', 'module': f'{CHECKS}.table_stats', 'function': 'run_table_io_stats'},
            {'category': 'tables bloat', 'module': f'{CHECKS}.table_bloat', 'function': 'run_table_bloat'},
        ]
    },
    {
        'title': 'Indexes',
        'scope': 'database',
        'actions': [
            {'category': 'indexes by size', 'module': f'{CHECKS}.index_stats', 'function': 'run_indexes_by_size'},
            {'category': 'indexes stats', 'module': f'{CHECKS}.index_stats', 'function': 'run_index_stats'},
            {'category': 'indexes IO stats', 'module': f'{CHECKS}.index_stats', 'function': 'run_index_io_stats'},
            {'category': 'indexes bloat', 'module': f'{CHECKS}.index_bloat', 'function': 'run_index_bloat'},
            {'category': 'indexes usage', 'module': f'{CHECKS}.index_stats', 'function': 'run_index_usage'},
            {'category': 'redundant indexes', 'module': f'{CHECKS}.redundant_indexes', 'function': 'run_redundant_indexes'},
            {'category': 'foreign keys', 'module': f'{CHECKS}.foreign_key_audit', 'function': 'run_foreign_key_audit'},
        ]
    },
]
