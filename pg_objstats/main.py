#!/usr/bin/env python3
"""
Main entrypoint for the object statistics collector.

Parses command-line arguments, loads the configuration and runs one
collection pass over the cluster. Findings are written as JSON lines on the
``pg_objstats.events`` logger; the exit status tells whether the pass
completed.
"""

import argparse
import logging
import sys

from pg_objstats import __version__
from pg_objstats.config import DEFAULT_CONFIG_PATH, StatsConfig, load_settings
from pg_objstats.errors import ConfigError
from pg_objstats.plugins.postgres import PostgresPlugin
from pg_objstats.utils.event_reporter import EVENT_LOGGER_NAME, EventReporter
from pg_objstats.utils.report_builder import ReportBuilder

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_CONFIG_ERROR = 2

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(settings):
    """Configures the root logger from the ``log_level`` and ``log_file`` settings."""
    level_name = str(settings.get('log_level', 'INFO')).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ConfigError("Invalid 'log_level'", level_name)

    handlers = [logging.StreamHandler()]
    if settings.get('log_file'):
        handlers.append(logging.FileHandler(settings['log_file']))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    # log_level applies to diagnostics only, never to emitted records
    logging.getLogger(EVENT_LOGGER_NAME).setLevel(logging.INFO)


class ObjectStats:
    """Runs one collection pass from start to finish."""

    def __init__(self, settings, databases=None, report_config_file=None):
        """
        Args:
            settings (dict): Settings loaded from the YAML configuration.
            databases (list, optional): Restricts the per-database categories
                to these databases.
            report_config_file (str, optional): Path to a custom report
                definition. Defaults to the plugin's default definition.

        Raises:
            ConfigError: If the analysis settings are invalid.
        """
        self.settings = settings
        self.config = StatsConfig.from_settings(settings)
        self.plugin = PostgresPlugin()
        self.report_sections = self.plugin.get_report_definition(report_config_file)
        self.connector = self.plugin.get_connector(settings)
        self.databases = databases

    def run(self):
        builder = ReportBuilder(
            self.connector, self.config, self.report_sections,
            reporter=EventReporter(), databases=self.databases)
        return builder.build()


def main(argv=None):
    """Parses command line arguments and runs the collection."""
    parser = argparse.ArgumentParser(description='PostgreSQL object statistics collector')
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH, help='Path to configuration file')
    parser.add_argument('--report-config', help='Path to a custom report definition file.')
    parser.add_argument('--database', action='append', metavar='NAME',
                        help='Only collect table and index statistics for this database (repeatable)')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
        setup_logging(settings)
        object_stats = ObjectStats(settings, args.database, args.report_config)
    except ConfigError as e:
        logging.basicConfig(format=LOG_FORMAT)
        logger.error(str(e))
        return EXIT_CONFIG_ERROR

    logger.info(f"Running object statistics collector v{__version__}")
    result = object_stats.run()
    if result.aborted:
        failure = result.failure
        logger.error(f"Collection aborted in {failure.category} ({failure.database or 'cluster'})")
        return EXIT_ABORTED
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
