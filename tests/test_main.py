import importlib
import logging
import logging.handlers
import os
import tempfile
import unittest
from unittest.mock import patch

from pg_objstats import main as cli
from pg_objstats.models import NoneFoundRecord
from pg_objstats.plugins.postgres import PostgresPlugin
from pg_objstats.utils.event_reporter import EVENT_LOGGER_NAME, EventReporter
from pg_objstats.utils.report_builder import CategoryFailure, RunResult


class TestReportDefinition(unittest.TestCase):
    def test_default_actions_resolve(self):
        sections = PostgresPlugin().get_report_definition()
        actions = [action for section in sections for action in section['actions']]

        self.assertEqual(sections[0]['scope'], 'cluster')
        self.assertEqual(len(actions), 13)
        for action in actions:
            module = importlib.import_module(action['module'])
            self.assertTrue(callable(getattr(module, action['function'])), action['function'])


class TestSetupLogging(unittest.TestCase):
    def setUp(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        event_logger = logging.getLogger(EVENT_LOGGER_NAME)

        def restore():
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
            event_logger.setLevel(logging.NOTSET)
        self.addCleanup(restore)

    def test_records_survive_a_quiet_log_level(self):
        cli.setup_logging({'log_level': 'WARNING'})
        captured = logging.handlers.BufferingHandler(capacity=100)
        logging.getLogger().addHandler(captured)

        logging.getLogger('pg_objstats.utils.report_builder').info('Collecting object statistics for shop')
        EventReporter().emit(NoneFoundRecord('No redundant indexes', 'shop'))

        self.assertEqual([r.name for r in captured.buffer], [EVENT_LOGGER_NAME])
        self.assertIn('No redundant indexes', captured.buffer[0].getMessage())

    def test_invalid_log_level(self):
        with self.assertRaises(cli.ConfigError):
            cli.setup_logging({'log_level': 'LOUD'})


@patch('pg_objstats.main.setup_logging')
class TestMain(unittest.TestCase):
    def setUp(self):
        handle = tempfile.NamedTemporaryFile('w', suffix='.yaml', delete=False)
        with handle:
            handle.write('host: localhost\ndatabase: postgres\nobject_stats:\n  top_tables_n: 5\n')
        self.addCleanup(os.unlink, handle.name)
        self.config_file = handle.name

    def test_missing_config_file(self, _setup_logging):
        self.assertEqual(cli.main(['--config', '/nonexistent/config.yaml']), cli.EXIT_CONFIG_ERROR)

    @patch('pg_objstats.main.ReportBuilder')
    def test_successful_run(self, mock_builder, _setup_logging):
        mock_builder.return_value.build.return_value = RunResult()
        self.assertEqual(cli.main(['--config', self.config_file, '--database', 'shop']), cli.EXIT_OK)
        self.assertEqual(mock_builder.call_args.kwargs['databases'], ['shop'])
        self.assertEqual(mock_builder.call_args.args[1].top_tables_n, 5)

    @patch('pg_objstats.main.ReportBuilder')
    def test_aborted_run(self, mock_builder, _setup_logging):
        failure = CategoryFailure('shop', 'tables stats', 'Query failed', 'canceling statement due to statement timeout')
        mock_builder.return_value.build.return_value = RunResult(aborted=True, failure=failure)
        self.assertEqual(cli.main(['--config', self.config_file]), cli.EXIT_ABORTED)


if __name__ == '__main__':
    unittest.main()
