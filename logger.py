"""Structured logging infrastructure with verbosity levels and progress tracking."""

import copy
import logging
import logging.handlers
import time
from typing import Any, Dict, Optional

import colorlog

LOGGER_NAME = 'notion_markdown_exporter'


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Set up structured logging with configurable verbosity levels.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG)
        log_file: Optional path to log file
        log_format: Optional custom log format string
        date_format: Optional custom date format string
        level: Optional explicit log level string

    Returns:
        Configured logger instance
    """
    if level:
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level_upper = level.upper()
        if level_upper not in allowed_levels:
            raise ValueError(
                f"Invalid log level '{level}'. Must be one of: {sorted(allowed_levels)}"
            )
        log_level = getattr(logging, level_upper)
    elif verbosity >= 2:
        log_level = logging.DEBUG
    elif verbosity >= 1:
        log_level = logging.INFO
    else:
        log_level = logging.WARNING

    if log_format is None:
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    if date_format is None:
        date_format = '%Y-%m-%d %H:%M:%S'

    # Root stays at WARNING so requests/urllib3 do not flood the console
    logging.basicConfig(
        level=logging.WARNING,
        format=log_format,
        datefmt=date_format
    )

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(colorlog.ColoredFormatter(
        fmt='%(log_color)s' + log_format,
        datefmt=date_format,
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    ))
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))
            logger.addHandler(file_handler)

            logger.info(f"Logging to file: {log_file}")
            logger.info(f"Log level: {logging.getLevelName(log_level)}")
        except OSError as e:
            logger.warning(f"Failed to set up file logging: {str(e)}")
    else:
        logger.info(f"Console logging only. Level: {logging.getLevelName(log_level)}")

    return logger


class ProgressTracker:
    """Context manager for tracking progress across operations."""

    def __init__(self, total_items: Optional[int] = None, item_type: str = "items"):
        """
        Initialize progress tracker.

        Args:
            total_items: Total number of items to process, None when the
                total is only known once the traversal finishes
            item_type: Description of item type (e.g., "pages", "images")
        """
        self.total_items = total_items
        self.item_type = item_type
        self.processed_items = 0
        self.successful_items = 0
        self.failed_items = 0
        self.start_time: Optional[float] = None
        self.logger = logging.getLogger(LOGGER_NAME)

    def __enter__(self) -> 'ProgressTracker':
        """Enter progress tracking context."""
        self.start_time = time.time()
        if self.total_items is None:
            self.logger.info(f"Starting processing of {self.item_type}")
        else:
            self.logger.info(
                f"Starting processing of {self.total_items} {self.item_type}"
            )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit progress tracking context and log summary."""
        if self.start_time is None:
            return

        elapsed = time.time() - self.start_time

        if self.failed_items > 0 and self.failed_items == self.processed_items:
            log_method = self.logger.error
        elif self.failed_items > 0:
            log_method = self.logger.warning
        else:
            log_method = self.logger.info

        log_method(f"=== Progress Summary: {self.item_type.upper()} ===")
        if self.total_items is not None:
            log_method(f"Total: {self.total_items}")
        log_method(f"Processed: {self.processed_items}")
        log_method(f"Successful: {self.successful_items}")
        log_method(f"Failed: {self.failed_items}")
        log_method(f"Success Rate: {self._success_rate():.1f}%")
        log_method(f"Elapsed Time: {self._format_elapsed(elapsed)}")

    def increment(self, success: bool = True) -> None:
        """
        Increment progress counter.

        Args:
            success: Whether the item was processed successfully
        """
        self.processed_items += 1

        if success:
            self.successful_items += 1
        else:
            self.failed_items += 1

        # Every 10 items, and on every failure
        if self.processed_items % 10 == 0 or not success:
            status = "Success" if success else "Failed"
            if self.total_items is None:
                self.logger.info(
                    f"Processed {self.processed_items} {self.item_type} - Last: {status}"
                )
            else:
                remaining = self.total_items - self.processed_items
                self.logger.info(
                    f"Processed {self.processed_items}/{self.total_items} {self.item_type} "
                    f"({remaining} remaining) - Last: {status}"
                )

    def get_stats(self) -> Dict[str, Any]:
        """Get current progress statistics."""
        if self.start_time is None:
            elapsed = 0.0
        else:
            elapsed = time.time() - self.start_time

        return {
            'total': self.total_items,
            'processed': self.processed_items,
            'successful': self.successful_items,
            'failed': self.failed_items,
            'success_rate': self._success_rate(),
            'elapsed_time': elapsed,
            'elapsed_time_formatted': self._format_elapsed(elapsed)
        }

    def _success_rate(self) -> float:
        denominator = self.total_items if self.total_items else self.processed_items
        if not denominator:
            return 0.0
        return self.successful_items / denominator * 100

    @staticmethod
    def _format_elapsed(seconds: float) -> str:
        """Format elapsed time in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"

        minutes = int(seconds // 60)
        seconds = int(seconds % 60)

        if minutes < 60:
            return f"{minutes}m {seconds}s"

        hours = minutes // 60
        minutes = minutes % 60

        return f"{hours}h {minutes}m {seconds}s"


def log_section(title: str) -> None:
    """
    Log a decorative section header.

    Args:
        title: Section title to display
    """
    logger = logging.getLogger(LOGGER_NAME)

    separator = "=" * 60
    logger.info("")
    logger.info(separator)
    logger.info(f"  {title.upper()}")
    logger.info(separator)
    logger.info("")


def log_config(config: Dict[str, Any]) -> None:
    """
    Log sanitized configuration for debugging.

    Args:
        config: Configuration dictionary to log
    """
    logger = logging.getLogger(LOGGER_NAME)

    sanitized_config = _sanitize_config(config)

    log_section("Configuration")

    notion = sanitized_config.get('notion', {})
    logger.info(f"Notion API: {notion.get('base_url', 'https://api.notion.com/v1')}")
    logger.info(f"Notion Version: {notion.get('api_version', '2022-06-28')}")
    logger.info("Token: ***REDACTED***" if notion.get('token') else "Token: Not Set")
    logger.info("")

    export_settings = sanitized_config.get('export', {})
    logger.info(f"Output Directory: {export_settings.get('output_directory', './notion-export')}")
    logger.info(f"Root Page ID: {export_settings.get('root_page_id') or 'Not Set (whole workspace)'}")
    logger.info(f"Max Depth: {export_settings.get('max_depth', 100)}")
    logger.info("")

    media = sanitized_config.get('media', {})
    logger.info(f"Download Images: {media.get('download_images', True)}")
    logger.info(f"Media Hosts: {media.get('hosts', ['notion.so'])}")
    logger.info(f"Max Redirects: {media.get('max_redirects', 5)}")


def _sanitize_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a sanitized copy of configuration with sensitive fields masked.

    Args:
        config: Configuration dictionary

    Returns:
        Sanitized configuration copy
    """
    sanitized = copy.deepcopy(config)

    sensitive_fields = {'token', 'secret', 'password', 'api_key', 'auth_header'}

    def mask_sensitive(data: Any) -> Any:
        """Recursively mask sensitive fields."""
        if isinstance(data, dict):
            masked = {}
            for key, value in data.items():
                is_sensitive = any(sensitive in key.lower() for sensitive in sensitive_fields)

                if is_sensitive and isinstance(value, str):
                    masked[key] = "***REDACTED***"
                else:
                    masked[key] = mask_sensitive(value)

            return masked
        elif isinstance(data, list):
            return [mask_sensitive(item) for item in data]
        else:
            return data

    return mask_sensitive(sanitized)


__all__ = [
    'LOGGER_NAME',
    'setup_logging',
    'ProgressTracker',
    'log_section',
    'log_config'
]
