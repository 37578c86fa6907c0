"""Unit tests for the logging module."""

import logging
import os
import unittest
from unittest.mock import MagicMock, patch

from mapcluster.utils.logging import (
    Colors,
    LogLevel,
    MapclusterLogger,
    ProgressTracker,
    SimpleFormatter,
    Symbols,
    log_debug,
    log_detail,
    log_error,
    log_info,
    log_progress,
    log_success,
    log_warning,
    setup_logging,
    suppress_third_party_logs,
)


class TestLogLevel(unittest.TestCase):
    """Test cases for LogLevel enum."""

    def test_log_levels(self):
        """Test that log levels have correct values."""
        self.assertEqual(LogLevel.QUIET.value, 0)
        self.assertEqual(LogLevel.NORMAL.value, 1)
        self.assertEqual(LogLevel.VERBOSE.value, 2)
        self.assertEqual(LogLevel.DEBUG.value, 3)


class TestSimpleFormatter(unittest.TestCase):
    """Test cases for SimpleFormatter class."""

    def _record(self, level, msg, args=()):
        return logging.LogRecord(
            name="test",
            level=level,
            pathname="",
            lineno=0,
            msg=msg,
            args=args,
            exc_info=None,
        )

    def test_format_with_colors(self):
        """Test that formatter adds colors based on log level."""
        formatted = SimpleFormatter().format(self._record(logging.INFO, "Test message"))
        self.assertIn(Colors.CYAN, formatted)
        self.assertIn("Test message", formatted)
        self.assertIn(Colors.RESET, formatted)

    def test_format_with_args(self):
        """Test that formatter handles message arguments."""
        formatted = SimpleFormatter().format(
            self._record(logging.WARNING, "Test %s message", ("warning",))
        )
        self.assertIn(Colors.YELLOW, formatted)
        self.assertIn("Test warning message", formatted)


class TestMapclusterLogger(unittest.TestCase):
    """Test cases for MapclusterLogger class."""

    def setUp(self):
        MapclusterLogger.set_level(LogLevel.NORMAL)

    def test_set_and_get_level(self):
        MapclusterLogger.set_level(LogLevel.DEBUG)
        self.assertEqual(MapclusterLogger.get_level(), LogLevel.DEBUG)

        MapclusterLogger.set_level(LogLevel.QUIET)
        self.assertEqual(MapclusterLogger.get_level(), LogLevel.QUIET)

    def test_get_logger(self):
        """Getting the same name twice returns the same instance."""
        logger = MapclusterLogger.get_logger("test.module")
        self.assertIsInstance(logger, logging.Logger)
        self.assertEqual(logger.name, "test.module")
        self.assertIs(logger, MapclusterLogger.get_logger("test.module"))

    def test_set_level_reconfigures_existing_loggers(self):
        logger = MapclusterLogger.get_logger("test.reconfigure")
        MapclusterLogger.set_level(LogLevel.QUIET)
        self.assertEqual(logger.level, logging.ERROR)

        MapclusterLogger.set_level(LogLevel.DEBUG)
        self.assertEqual(logger.level, logging.DEBUG)

    @patch.dict(os.environ, {"MAPCLUSTER_EFFECTIVE_LOG_LEVEL": "DEBUG"})
    def test_environment_variable_override(self):
        """The effective level from the environment wins over the class level."""
        MapclusterLogger.set_level(LogLevel.NORMAL)
        logger = MapclusterLogger.get_logger("test.env")
        self.assertEqual(logger.level, logging.DEBUG)

    @patch("logging.Logger.info")
    def test_progress_message(self, mock_info):
        MapclusterLogger.progress("Test progress")

        mock_info.assert_called_once()
        call_args = mock_info.call_args[0][0]
        self.assertIn("Test progress", call_args)
        self.assertIn(Symbols.GEAR, call_args)

    @patch("logging.Logger.info")
    def test_success_message(self, mock_info):
        MapclusterLogger.success("Test success")

        call_args = mock_info.call_args[0][0]
        self.assertIn("Test success", call_args)
        self.assertIn(Colors.GREEN, call_args)

    @patch("logging.Logger.info")
    def test_info_silent_when_quiet(self, mock_info):
        MapclusterLogger.set_level(LogLevel.QUIET)
        MapclusterLogger.info("hidden")
        mock_info.assert_not_called()

    @patch("logging.Logger.info")
    def test_detail_message_verbose_only(self, mock_info):
        """Detail messages only show in VERBOSE mode."""
        MapclusterLogger.detail("Test detail")
        mock_info.assert_not_called()

        MapclusterLogger.set_level(LogLevel.VERBOSE)
        MapclusterLogger.detail("Test detail")
        mock_info.assert_called_once()

    @patch("logging.Logger.debug")
    def test_debug_message_debug_only(self, mock_debug):
        MapclusterLogger.set_level(LogLevel.VERBOSE)
        MapclusterLogger.debug("Test debug")
        mock_debug.assert_not_called()

        MapclusterLogger.set_level(LogLevel.DEBUG)
        MapclusterLogger.debug("Test debug")
        mock_debug.assert_called_once()

    @patch("logging.Logger.warning")
    def test_warning_message(self, mock_warning):
        MapclusterLogger.warning("Test warning")

        call_args = mock_warning.call_args[0][0]
        self.assertIn("Test warning", call_args)
        self.assertIn(Symbols.WARNING, call_args)

    @patch("logging.Logger.error")
    def test_error_message(self, mock_error):
        """Errors are logged even in QUIET mode."""
        MapclusterLogger.set_level(LogLevel.QUIET)
        MapclusterLogger.error("Test error")

        mock_error.assert_called_once()
        call_args = mock_error.call_args[0][0]
        self.assertIn("Test error", call_args)
        self.assertIn(Symbols.CROSS, call_args)


class TestLoggingSetup(unittest.TestCase):
    """Test cases for logging setup functions."""

    def test_suppress_third_party_logs(self):
        suppress_third_party_logs()

        self.assertEqual(logging.getLogger("sklearn").level, logging.WARNING)
        self.assertEqual(logging.getLogger("urllib3").level, logging.WARNING)

    @patch.dict(os.environ, {}, clear=True)
    def test_setup_logging_default(self):
        setup_logging()
        self.assertEqual(MapclusterLogger.get_level(), LogLevel.NORMAL)
        self.assertEqual(os.environ["MAPCLUSTER_EFFECTIVE_LOG_LEVEL"], "NORMAL")

    @patch.dict(os.environ, {"MAPCLUSTER_LOG_LEVEL": "debug"}, clear=True)
    def test_setup_logging_from_env(self):
        setup_logging()
        self.assertEqual(MapclusterLogger.get_level(), LogLevel.DEBUG)

    @patch.dict(os.environ, {"MAPCLUSTER_LOG_LEVEL": "chatty"}, clear=True)
    def test_setup_logging_unknown_env_level(self):
        setup_logging()
        self.assertEqual(MapclusterLogger.get_level(), LogLevel.NORMAL)

    @patch.dict(os.environ, {}, clear=True)
    def test_setup_logging_with_explicit_level(self):
        setup_logging(LogLevel.QUIET)
        self.assertEqual(MapclusterLogger.get_level(), LogLevel.QUIET)

        root = logging.getLogger()
        self.assertEqual(len(root.handlers), 1)
        self.assertIsInstance(root.handlers[0].formatter, SimpleFormatter)
        self.assertEqual(root.handlers[0].level, logging.ERROR)


class TestProgressTracker(unittest.TestCase):
    """Test cases for ProgressTracker class."""

    def setUp(self):
        MapclusterLogger.set_level(LogLevel.NORMAL)

    @patch("mapcluster.utils.logging.tqdm")
    def test_progress_tracker_normal_mode(self, mock_tqdm):
        tracker = ProgressTracker(["step1", "step2", "step3"])

        mock_tqdm.assert_called_once()
        self.assertEqual(mock_tqdm.call_args.kwargs["total"], 3)
        self.assertIsNotNone(tracker.pbar)

    def test_progress_tracker_quiet_mode(self):
        MapclusterLogger.set_level(LogLevel.QUIET)

        tracker = ProgressTracker(["step1", "step2"])
        self.assertIsNone(tracker.pbar)

        tracker.advance("Completed step")
        tracker.close()
        self.assertEqual(tracker.current, 1)

    @patch("mapcluster.utils.logging.tqdm")
    def test_progress_tracker_advance(self, mock_tqdm):
        mock_pbar = MagicMock()
        mock_tqdm.return_value = mock_pbar

        tracker = ProgressTracker(["step1"])
        tracker.advance("Completed step", status="warning")

        mock_pbar.write.assert_called_once()
        self.assertIn(Symbols.WARNING, mock_pbar.write.call_args[0][0])
        mock_pbar.update.assert_called_once_with(1)

    @patch("mapcluster.utils.logging.tqdm")
    def test_progress_tracker_close(self, mock_tqdm):
        mock_pbar = MagicMock()
        mock_tqdm.return_value = mock_pbar

        tracker = ProgressTracker(["step1"])
        tracker.close()

        mock_pbar.write.assert_called()
        mock_pbar.close.assert_called_once()


class TestConvenienceFunctions(unittest.TestCase):
    """Test cases for convenience logging functions."""

    @patch.object(MapclusterLogger, "progress")
    def test_log_progress(self, mock_progress):
        log_progress("Test message")
        mock_progress.assert_called_once_with("Test message", Symbols.GEAR)

    @patch.object(MapclusterLogger, "success")
    def test_log_success(self, mock_success):
        log_success("Test message")
        mock_success.assert_called_once_with("Test message", Symbols.CHECK)

    @patch.object(MapclusterLogger, "info")
    def test_log_info(self, mock_info):
        log_info("Test message")
        mock_info.assert_called_once_with("Test message")

    @patch.object(MapclusterLogger, "detail")
    def test_log_detail(self, mock_detail):
        log_detail("Test message")
        mock_detail.assert_called_once_with("Test message", "  ")

    @patch.object(MapclusterLogger, "warning")
    def test_log_warning(self, mock_warning):
        log_warning("Test message")
        mock_warning.assert_called_once_with("Test message", Symbols.WARNING)

    @patch.object(MapclusterLogger, "error")
    def test_log_error(self, mock_error):
        log_error("Test message")
        mock_error.assert_called_once_with("Test message", Symbols.CROSS)

    @patch.object(MapclusterLogger, "debug")
    def test_log_debug(self, mock_debug):
        log_debug("Test message", "custom.logger")
        mock_debug.assert_called_once_with("Test message", "custom.logger")


if __name__ == "__main__":
    unittest.main()
