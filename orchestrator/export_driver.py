"""
Export driver for wiring and running a complete export.

This module builds the API client, listing, conversion and media components
from configuration, runs the tree export and turns the result into a report.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

from config_loader import DEFAULT_OUTPUT_DIRECTORY
from converters import BlockConverter
from exporters import MediaRehoster, TreeExporter
from fetchers import PaginatedLister
from logger import log_section
from models import ExportRun
from notion_api_client import NotionApiClient
from orchestrator.export_report import ExportReport

logger = logging.getLogger('notion_markdown_exporter.orchestrator.export_driver')


class ExportDriver:
    """Central coordinator sequencing one export run: Connect -> Export -> Report."""

    def __init__(self, config: Dict[str, Any], logger: Optional[logging.Logger] = None, client=None):
        """
        Initialize export driver.

        Args:
            config: Validated configuration dictionary
            logger: Optional logger instance
            client: Optional pre-built Notion client (built from config when omitted)
        """
        self.config = config
        self.logger = logger or logging.getLogger('notion_markdown_exporter.orchestrator.export_driver')
        self.client = client
        self.owns_client = client is None
        self.rehoster: Optional[MediaRehoster] = None

        export_config = config.get('export', {})
        self.output_directory = Path(export_config.get('output_directory', DEFAULT_OUTPUT_DIRECTORY))
        self.root_page_id = export_config.get('root_page_id')
        self.report_path = export_config.get('report_path')

        self.report_generator = ExportReport(self.logger)
        self.run_state: Optional[ExportRun] = None

    def _build_exporter(self) -> TreeExporter:
        """Create the exporter and its collaborators for a fresh run."""
        if self.client is None:
            self.client = NotionApiClient.from_config(self.config)

        page_size = self.config.get('advanced', {}).get('page_size', 100)
        lister = PaginatedLister(self.client, page_size=page_size, logger=self.logger)
        converter = BlockConverter(lister, logger=self.logger)
        self.rehoster = MediaRehoster(self.config, logger=self.logger)

        self.run_state = ExportRun()
        return TreeExporter(
            self.client,
            self.config,
            output_dir=self.output_directory,
            run=self.run_state,
            lister=lister,
            converter=converter,
            rehoster=self.rehoster,
            logger=self.logger
        )

    def run(self) -> Dict[str, Any]:
        """
        Run the export and build its report.

        Returns:
            Export report dictionary

        Raises:
            requests.exceptions.RequestException: If the workspace listing fails
            OSError: If the output directory cannot be created
        """
        log_section("Exporting Notion pages")
        if self.root_page_id:
            self.logger.info(f"Exporting page tree rooted at {self.root_page_id}")
        else:
            self.logger.info("No root page configured - exporting every accessible page")

        start_time = time.time()
        exporter = self._build_exporter()

        try:
            run = exporter.export_all()
        finally:
            self._close()

        export_duration = time.time() - start_time
        self.logger.info(f"Export finished in {export_duration:.2f}s")

        report = self.report_generator.generate_report(
            run,
            output_directory=str(self.output_directory),
            export_duration=export_duration,
            root_page_id=self.root_page_id
        )

        if self.report_path:
            self.report_generator.export_json_report(report, self.report_path)

        return report

    def _close(self) -> None:
        """Release HTTP sessions; an injected client is left to its owner."""
        self.rehoster.close()
        if self.owns_client:
            self.client.close()


__all__ = ['ExportDriver']
