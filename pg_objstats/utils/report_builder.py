"""
Defines the ReportBuilder class, which runs one collection pass over the
cluster by executing the categories of a report definition in order.
"""

import importlib
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from pg_objstats.errors import StatsError
from pg_objstats.plugins.postgres.checks.database_size import enumerate_databases
from pg_objstats.utils.event_reporter import EventReporter, failure_record

logger = logging.getLogger(__name__)

SCOPE_CLUSTER = 'cluster'
SCOPE_DATABASE = 'database'

CATEGORY_ENUMERATION = 'database list'
CATEGORY_CONNECT = 'connect'


@dataclass(frozen=True)
class CategoryFailure:
    """Where a run stopped, and why."""
    database: Optional[str]
    category: str
    message: str
    detail: Optional[str] = None


@dataclass(frozen=True)
class CategoryOutcome:
    """Result of one step: its records, or the failure that ended the run."""
    category: str
    records: tuple = ()
    failure: Optional[CategoryFailure] = None

    @property
    def failed(self):
        return self.failure is not None


@dataclass
class RunResult:
    aborted: bool = False
    failure: Optional[CategoryFailure] = None
    records_emitted: int = 0
    databases: List[str] = field(default_factory=list)


class ReportBuilder:
    """Runs every category of a report definition against a cluster.

    The run enumerates the databases on the maintenance connection, runs
    the cluster sections once, then connects to each database in turn and
    runs the database sections. The first failing step ends the run: its
    failure record is the last record emitted and nothing else is attempted.

    Attributes:
        connector (PostgresConnector): Executes the queries; reconnected for
            every database.
        config (StatsConfig): Ranking thresholds and reporting floors.
        report_sections (list): The report definition, a list of section
            dictionaries with a ``scope`` and ``actions``.
        reporter (EventReporter): Receives the records as they are produced.
        databases (list, optional): Restricts the per-database sections to
            these database names.
    """

    def __init__(self, connector, config, report_sections, reporter=None, databases=None):
        self.connector = connector
        self.config = config
        self.report_sections = report_sections
        self.reporter = reporter or EventReporter()
        self.databases = list(databases) if databases else None

    def build(self) -> RunResult:
        """Runs the whole collection pass.

        Returns:
            RunResult: ``aborted`` is True when a step failed; the failure
            has already been reported by then.
        """
        result = RunResult()
        try:
            outcome = self._run_step(None, CATEGORY_ENUMERATION, self._enumerate)
            if not self._report(outcome, result):
                return result
            targets = outcome.records

            for action in self._actions(SCOPE_CLUSTER):
                outcome = self._run_module(None, action, targets, self.config)
                if not self._report(outcome, result):
                    return result

            for target in self._selected(targets):
                if not self._run_database(target.name, result):
                    return result
                result.databases.append(target.name)
        finally:
            self.connector.disconnect()
            result.records_emitted = self.reporter.emitted

        logger.info(f"Collection finished: {len(result.databases)} databases, {result.records_emitted} records")
        return result

    def _enumerate(self):
        self.connector.connect()
        return enumerate_databases(self.connector)

    def _connect(self, database):
        self.connector.connect(database)
        return ()

    def _run_database(self, database, result) -> bool:
        """Runs the database sections for one database."""
        outcome = self._run_step(database, CATEGORY_CONNECT, lambda: self._connect(database))
        if not self._report(outcome, result):
            return False

        logger.info(f"Collecting object statistics for {database}")
        for action in self._actions(SCOPE_DATABASE):
            outcome = self._run_module(database, action, self.connector, self.config, database)
            if not self._report(outcome, result):
                return False
        return True

    def _actions(self, scope):
        for section in self.report_sections:
            if section.get('scope', SCOPE_DATABASE) == scope:
                yield from section['actions']

    def _selected(self, targets):
        if self.databases is None:
            return list(targets)
        known = {t.name for t in targets}
        for name in self.databases:
            if name not in known:
                logger.warning(f"Database {name} is not in the cluster or does not accept connections")
        return [t for t in targets if t.name in self.databases]

    def _run_module(self, database, action, *args) -> CategoryOutcome:
        """Dynamically imports and executes the function of a category action."""
        def call():
            module = importlib.import_module(action['module'])
            return getattr(module, action['function'])(*args)
        return self._run_step(database, action['category'], call)

    def _run_step(self, database, category, func) -> CategoryOutcome:
        """Runs one step and captures its records or its failure."""
        try:
            records = func()
        except StatsError as e:
            return CategoryOutcome(category, failure=CategoryFailure(database, category, e.message, e.detail))
        except Exception as e:
            logger.exception(f"Unexpected error in {category} for {database}")
            return CategoryOutcome(
                category, failure=CategoryFailure(database, category, f"Unexpected error in {category}", repr(e)))
        return CategoryOutcome(category, records=tuple(records or ()))

    def _report(self, outcome, result) -> bool:
        """Emits an outcome. Returns False once the run has to stop."""
        if outcome.failed:
            self.reporter.emit(failure_record(outcome.failure))
            result.aborted = True
            result.failure = outcome.failure
            return False
        if outcome.category != CATEGORY_ENUMERATION:
            self.reporter.emit_all(outcome.records)
        return True
