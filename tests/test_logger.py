"""Tests for logging setup and progress tracking."""

import logging

import colorlog
import pytest

from logger import LOGGER_NAME, ProgressTracker, _sanitize_config, setup_logging


class TestSetupLogging:
    """Test verbosity levels and handlers."""

    @pytest.mark.parametrize("verbosity,expected", [
        (0, logging.WARNING),
        (1, logging.INFO),
        (2, logging.DEBUG),
        (5, logging.DEBUG),
    ])
    def test_verbosity_levels(self, verbosity, expected):
        assert setup_logging(verbosity=verbosity).level == expected

    def test_explicit_level_wins(self):
        assert setup_logging(verbosity=0, level='debug').level == logging.DEBUG

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logging(level='LOUD')

    def test_console_uses_colored_formatter(self):
        logger = setup_logging(verbosity=1)
        assert logger.name == LOGGER_NAME
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, colorlog.ColoredFormatter)

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(verbosity=1)
        logger = setup_logging(verbosity=2)
        assert len(logger.handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / 'export.log'
        logger = setup_logging(verbosity=1, log_file=str(log_file))

        logger.info("written to file")
        for handler in logger.handlers:
            handler.flush()

        assert len(logger.handlers) == 2
        assert "written to file" in log_file.read_text(encoding='utf-8')


class TestProgressTracker:
    """Test progress counters."""

    def test_counts(self):
        with ProgressTracker(total_items=4, item_type='pages') as tracker:
            tracker.increment()
            tracker.increment()
            tracker.increment(success=False)

        stats = tracker.get_stats()
        assert stats['processed'] == 3
        assert stats['successful'] == 2
        assert stats['failed'] == 1
        assert stats['success_rate'] == pytest.approx(50.0)

    def test_unknown_total(self):
        with ProgressTracker(item_type='pages') as tracker:
            tracker.increment()

        stats = tracker.get_stats()
        assert stats['total'] is None
        assert stats['success_rate'] == pytest.approx(100.0)

    def test_summary_logged_as_error_when_everything_failed(self, caplog):
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            with ProgressTracker(item_type='pages') as tracker:
                tracker.increment(success=False)

        summary = [r for r in caplog.records if 'Progress Summary' in r.getMessage()]
        assert summary and summary[0].levelno == logging.ERROR

    @pytest.mark.parametrize("seconds,expected", [
        (5.5, '5.5s'),
        (125, '2m 5s'),
        (3725, '1h 2m 5s'),
    ])
    def test_format_elapsed(self, seconds, expected):
        assert ProgressTracker._format_elapsed(seconds) == expected


class TestSanitizeConfig:
    """Test secret masking."""

    def test_token_masked(self):
        config = {'notion': {'token': 'secret_abc', 'base_url': 'https://api.notion.com/v1'}}
        sanitized = _sanitize_config(config)
        assert sanitized['notion']['token'] == '***REDACTED***'
        assert sanitized['notion']['base_url'] == 'https://api.notion.com/v1'
        assert config['notion']['token'] == 'secret_abc'
