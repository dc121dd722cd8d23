"""
Tests for logging configuration.
"""
import json
import logging

from schemasync.logging_config import setup_logging, get_logger, JSONFormatter, ColoredFormatter


def make_record(msg='Test message', level=logging.INFO):
    return logging.LogRecord(
        name='test', level=level, pathname='', lineno=0,
        msg=msg, args=(), exc_info=None
    )


class TestLoggingConfig:
    """Test logging configuration."""

    def test_setup_logging_default(self):
        setup_logging(verbose=0)
        logger = get_logger()
        assert logger.level == logging.WARNING

    def test_setup_logging_verbose(self):
        setup_logging(verbose=1)
        logger = get_logger()
        assert logger.level == logging.INFO

    def test_setup_logging_debug(self):
        setup_logging(verbose=2)
        logger = get_logger()
        assert logger.level == logging.DEBUG

    def test_setup_logging_json_format(self):
        setup_logging(verbose=1, log_format='json')
        logger = get_logger()
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_setup_logging_no_color(self):
        setup_logging(verbose=1, log_format='text', no_color=True)
        logger = get_logger()
        assert isinstance(logger.handlers[0].formatter, ColoredFormatter)
        assert not logger.handlers[0].formatter.use_color

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(verbose=1)
        setup_logging(verbose=1)
        logger = get_logger()
        assert len(logger.handlers) == 1

    def test_get_logger_default(self):
        assert get_logger().name == 'schemasync'

    def test_get_logger_with_name(self):
        assert get_logger('executor').name == 'schemasync.executor'


class TestJSONFormatter:
    """Test JSON log formatter."""

    def test_basic_format(self):
        output = json.loads(JSONFormatter().format(make_record()))
        assert output['message'] == 'Test message'
        assert output['level'] == 'INFO'
        assert output['timestamp'].endswith('Z')

    def test_format_with_migration_extras(self):
        record = make_record('Database migration: Create table users')
        record.table_name = 'users'
        record.operation = 'CREATE_TABLE'
        record.sql = 'CREATE TABLE users(id)'
        record.rows_affected = -1

        output = json.loads(JSONFormatter().format(record))

        assert output['table_name'] == 'users'
        assert output['operation'] == 'CREATE_TABLE'
        assert output['sql'] == 'CREATE TABLE users(id)'
        assert output['rows_affected'] == -1


class TestColoredFormatter:
    """Test colored log formatter."""

    def test_format_with_color(self):
        output = ColoredFormatter(use_color=True).format(make_record('Error message', logging.ERROR))
        assert 'Error message' in output
        assert '\033[31m' in output

    def test_format_without_color(self):
        output = ColoredFormatter(use_color=False).format(make_record('Info message'))
        assert output == '[INFO] Info message'

    def test_context_from_extras(self):
        record = make_record('Affected rows: 2')
        record.table_name = 'users'
        record.operation = 'COPY_INTERSECTING_COLUMNS'
        record.rows_affected = 2

        output = ColoredFormatter(use_color=False).format(record)

        assert output.endswith('[table=users, op=COPY_INTERSECTING_COLUMNS, rows=2]')
