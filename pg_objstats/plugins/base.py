from abc import ABC, abstractmethod


class BasePlugin(ABC):
    """A database technology the collector can gather object statistics from."""

    @property
    @abstractmethod
    def technology_name(self):
        """Short lowercase name of the technology (e.g., 'postgres')."""

    @abstractmethod
    def get_connector(self, settings):
        """Returns a query executor built from the connection settings."""

    @abstractmethod
    def get_report_definition(self, report_config_file=None):
        """Returns the ordered category sections of a collection run.

        Each section has a ``scope`` (``'cluster'`` or ``'database'``) and a
        list of ``actions`` naming the category, module and function to run.
        """
