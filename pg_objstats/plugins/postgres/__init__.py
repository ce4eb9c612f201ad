import importlib.util
from pathlib import Path

from pg_objstats.errors import ConfigError
from pg_objstats.plugins.base import BasePlugin

from .connector import PostgresConnector


class PostgresPlugin(BasePlugin):
    """The PostgreSQL implementation of the plugin interface."""

    @property
    def technology_name(self):
        return "postgres"

    def get_connector(self, settings):
        """Returns an instance of the PostgreSQL connector."""
        return PostgresConnector(settings)

    def get_report_definition(self, report_config_file=None):
        """
        Loads the category sections from a report definition file.
        Falls back to the default if no file is specified.
        """
        if report_config_file:
            config_path = Path(report_config_file)
        else:
            config_path = Path(__file__).parent / "reports" / "default.py"

        if not config_path.is_file():
            raise ConfigError("Report definition file not found", str(config_path))

        spec = importlib.util.spec_from_file_location("report_config_module", config_path)
        report_module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(report_module)

        return getattr(report_module, 'REPORT_SECTIONS')
