#!/usr/bin/env python3
"""
Notion to Markdown Export Tool - Main CLI Entry Point

This script provides the command-line interface for exporting a Notion page
tree, or every page an integration can access, to a directory of Markdown
files mirroring the page hierarchy.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from config_loader import ConfigLoader, DEFAULT_OUTPUT_DIRECTORY, get_nested
from logger import setup_logging, log_section, log_config
from orchestrator import ExportDriver, ExportReport

# Version
__version__ = "1.0.0"

DEFAULT_CONFIG_PATH = 'config.yaml'


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='notion-export',
        description="Export Notion pages to a directory tree of Markdown files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export every page shared with the integration
  NOTION_TOKEN=secret_xxx notion-export

  # Export one page and all of its subpages
  notion-export --root-page-id 0f1e2d3c4b5a69788796a5b4c3d2e1f0

  # Use a config file and write a JSON report
  notion-export --config config.yaml --report-path export_report.json

  # Keep remote image links instead of downloading them
  notion-export --no-images

  # Verbose logging
  notion-export -vv
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=str,
        help=f'Path to configuration YAML file (default: {DEFAULT_CONFIG_PATH} if present)'
    )

    parser.add_argument(
        '--env-file',
        type=str,
        help='Path to a .env file (default: .env in the working directory if present)'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        help=f'Directory the export is written to (default: {DEFAULT_OUTPUT_DIRECTORY})'
    )

    parser.add_argument(
        '--root-page-id',
        type=str,
        help='Page to export with all of its subpages (default: whole workspace)'
    )

    parser.add_argument(
        '--report-path',
        type=str,
        help='Write a JSON export report to this path'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file'
    )

    parser.add_argument(
        '--no-images',
        action='store_true',
        help='Keep remote image references instead of downloading them'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def load_configuration(args: argparse.Namespace) -> dict:
    """
    Build the effective configuration: config file, then environment, then CLI.

    Raises:
        FileNotFoundError: If an explicitly given config file does not exist
        ValueError: If validation fails
    """
    ConfigLoader.load_env_file(args.env_file)

    if args.config:
        config = ConfigLoader.load(args.config)
    elif os.path.exists(DEFAULT_CONFIG_PATH):
        config = ConfigLoader.load(DEFAULT_CONFIG_PATH)
    else:
        config = {}

    config = ConfigLoader.apply_environment(config)
    config = ConfigLoader.merge_with_args(config, args)
    ConfigLoader.validate(config)

    return config


def run_export(config: dict, logger: logging.Logger) -> int:
    """Execute the export and print its outcome."""
    try:
        driver = ExportDriver(config, logger)
        report = driver.run()

        console_report = ExportReport(logger).format_console_report(report)
        print("\n" + console_report)

        summary = report['summary']
        print(f"\nExport complete! Files saved to: {summary['output_directory']}")
        print(f"Total pages exported: {summary['processed_pages']}")

        failures = summary['pages_failed'] + report['media']['failed']
        if failures:
            print(f"Failures: {summary['pages_failed']} pages, {report['media']['failed']} images "
                  f"(see log for details)")
            logger.warning(f"Export completed with {failures} failures")
        else:
            logger.info("Export completed successfully")

        return 0

    except KeyboardInterrupt:
        logger.error("Export interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Export failed: {str(e)}", exc_info=True)
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        # Minimal logging while the configuration is loaded
        setup_logging(verbosity=args.verbose)
        logger = logging.getLogger('notion_markdown_exporter')

        log_section("Notion to Markdown Export Tool")
        logger.info(f"Version: {__version__}")

        config = load_configuration(args)

        # Reconfigure logging with config file settings
        logging_config = config.get('logging', {})
        setup_logging(
            verbosity=args.verbose,
            log_file=logging_config.get('file'),
            log_format=logging_config.get('format'),
            level=logging_config.get('level')
        )
        logger = logging.getLogger('notion_markdown_exporter')

        log_config(config)
        logger.debug(f"Output directory: {get_nested(config, 'export.output_directory', DEFAULT_OUTPUT_DIRECTORY)}")

        return run_export(config, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nExport interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"ERROR: Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
