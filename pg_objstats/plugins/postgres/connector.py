import logging
import time

import psycopg2

from pg_objstats.errors import OperationalFailure

logger = logging.getLogger(__name__)


class PostgresConnector:
    """
    Read-only PostgreSQL query executor.

    Holds at most one connection at a time. The collector connects to the
    maintenance database to enumerate the cluster, then reconnects to every
    target database in turn.

    Every driver error, including a statement cancelled by
    ``statement_timeout``, surfaces as ``OperationalFailure``.
    """

    def __init__(self, settings):
        self.settings = settings
        self.conn = None
        self.cursor = None
        self.dbname = None
        self.version_info = {}

    def connect(self, dbname=None):
        """
        Opens a connection to ``dbname``, closing any previous one.

        Args:
            dbname (str, optional): Target database. Defaults to the
                configured maintenance database.

        Raises:
            OperationalFailure: If the connection cannot be established.
        """
        self.disconnect()
        dbname = dbname or self.settings.get('database', 'postgres')
        timeout = self.settings.get('statement_timeout', 30000)

        try:
            self.conn = psycopg2.connect(
                host=self.settings.get('host'),
                port=self.settings.get('port', 5432),
                dbname=dbname,
                user=self.settings.get('user'),
                password=self.settings.get('password'),
                connect_timeout=self.settings.get('connect_timeout', 10),
                application_name=self.settings.get('application_name', 'pg_objstats'),
                options=f"-c statement_timeout={timeout} -c default_transaction_read_only=on"
            )
            self.conn.autocommit = True
            self.cursor = self.conn.cursor()
            self.dbname = dbname
        except psycopg2.Error as e:
            self.conn = None
            self.cursor = None
            raise OperationalFailure(f"Can not connect to database {dbname}", _error_detail(e)) from e

        self.version_info = self._get_version_info()
        logger.info(f"Connected to {dbname} (PostgreSQL {self.version_info.get('version_string', 'unknown')})")

    def disconnect(self):
        """Closes the current connection, if any."""
        if self.conn:
            try:
                self.conn.close()
                logger.debug(f"Closed connection to {self.dbname}")
            except psycopg2.Error as e:
                logger.warning(f"Error closing connection to {self.dbname}: {e}")
        self.conn = None
        self.cursor = None
        self.dbname = None

    def _get_version_info(self):
        """Get PostgreSQL version information."""
        rows = self.execute_query(
            "SELECT current_setting('server_version_num')::integer, "
            "current_setting('server_version'), version()"
        )
        version_num, version_string, version_banner = rows[0]
        major_version = version_num // 10000

        return {
            'version_num': version_num,
            'version_string': version_string,
            'version_banner': version_banner,
            'major_version': major_version,
            'is_pg10_or_newer': major_version >= 10,
            'is_pg11_or_newer': major_version >= 11,
            'is_pg12_or_newer': major_version >= 12,
            'is_pg13_or_newer': major_version >= 13,
        }

    def execute_query(self, query, params=None):
        """Executes a read-only query and returns its rows.

        Args:
            query: SQL query to execute
            params: Query parameters

        Returns:
            list[tuple]: The rows, in the order the server returned them.

        Raises:
            OperationalFailure: If there is no open connection or the server
                reports an error.
        """
        if not self.conn or self.conn.closed:
            raise OperationalFailure("No open database connection", self.dbname)

        started = time.monotonic()
        try:
            if not self.cursor or self.cursor.closed:
                self.cursor = self.conn.cursor()
            self.cursor.execute(query, params)
            rows = self.cursor.fetchall() if self.cursor.description is not None else []
        except psycopg2.Error as e:
            raise OperationalFailure("Query failed", _error_detail(e)) from e

        logger.debug(f"Query on {self.dbname} returned {len(rows)} rows in {time.monotonic() - started:.3f}s")
        return rows


def _error_detail(error):
    """Raw server message of a driver error, without trailing whitespace."""
    detail = getattr(error, 'pgerror', None) or str(error)
    return detail.strip()
