from pg_objstats.models import DatabaseTarget
from pg_objstats.plugins.common.ranking import DESCENDING, MODE_SUM, rank_samples
from pg_objstats.plugins.postgres.utils.qrylib.database_size import (
    DATABASE_COLUMNS,
    get_database_list_query
)
from pg_objstats.plugins.postgres.utils.row_decoding import as_count, build_samples, decode_rows
from pg_objstats.utils.event_reporter import OBJECT_DATABASE, ranking_records


def enumerate_databases(connector):
    """
    Lists the databases that accept connections, largest first.

    Returns:
        list[DatabaseTarget]: The databases in descending size order.
    """
    rows = decode_rows(connector.execute_query(get_database_list_query(connector)), DATABASE_COLUMNS, 'database list')
    return [DatabaseTarget(name=row['datname'], size=as_count(row['size'])) for row in rows]


def run_top_databases(targets, config):
    """Ranks the enumerated databases by size."""
    rows = [{'datname': t.name, 'size': t.size} for t in targets]
    samples = build_samples(rows, ('datname',), lambda r: r['size'])
    result = rank_samples(
        samples, 'Top databases by size, B', config.top_databases_n,
        order=DESCENDING, mode=MODE_SUM, arity=1)
    return ranking_records(result, None, OBJECT_DATABASE)
