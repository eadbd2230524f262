"""Recursive exporter mirroring a Notion page tree into nested markdown files."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from converters import BlockConverter
from fetchers import PaginatedLister
from logger import ProgressTracker
from models import ExportRun, ExportTarget, PageNode, is_full_page
from .media_rehoster import MediaRehoster
from .name_sanitizer import sanitize_filename

NAVIGATION_HEADING = "Subnotes"
DEFAULT_MAX_DEPTH = 100


class ExportError(Exception):
    """Base exception for a page that cannot be exported."""
    pass


class MaxDepthExceeded(ExportError):
    """Raised when the page tree is nested deeper than the configured ceiling."""
    pass


class TreeExporter:
    """
    Walks the Notion page hierarchy and writes one markdown file per page.

    For every page this exporter:
    1. Skips it if its ID was already visited in this run
    2. Retrieves the page and lists its child pages
    3. Converts the content and rehosts its images
    4. Writes <title>.md, with a Subnotes section linking the children
    5. Recurses into a <title>/ directory for the children
    """

    def __init__(
        self,
        client,
        config: Dict[str, Any],
        output_dir: Optional[Path] = None,
        run: Optional[ExportRun] = None,
        lister: Optional[PaginatedLister] = None,
        converter: Optional[BlockConverter] = None,
        rehoster: Optional[MediaRehoster] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the tree exporter.

        Args:
            client: NotionApiClient used for page retrieval
            config: Configuration dictionary with export settings
            output_dir: Optional output directory override (takes precedence over config)
            run: Export run state; a fresh one is created when omitted
            lister: PaginatedLister for search and child listings
            converter: BlockConverter rendering page content
            rehoster: MediaRehoster for embedded images
            logger: Logger instance
        """
        self.client = client
        self.config = config
        self.logger = logger or logging.getLogger('notion_markdown_exporter.exporters.tree_exporter')

        export_config = config.get('export', {})
        self.output_directory = Path(output_dir or export_config.get('output_directory', './notion-export'))
        self.root_page_id = export_config.get('root_page_id')
        self.max_depth = export_config.get('max_depth', DEFAULT_MAX_DEPTH)
        self.navigation_heading = export_config.get('navigation_heading', NAVIGATION_HEADING)

        page_size = config.get('advanced', {}).get('page_size', 100)
        self.run = run or ExportRun()
        self.lister = lister or PaginatedLister(client, page_size=page_size, logger=self.logger)
        self.converter = converter or BlockConverter(self.lister, logger=self.logger)
        self.rehoster = rehoster or MediaRehoster(config, logger=self.logger)

        self._tracker: Optional[ProgressTracker] = None

    def export_all(self) -> ExportRun:
        """
        Export the configured root page, or every accessible page, into the output directory.

        Returns:
            The export run with its processed ledger and counters

        Raises:
            OSError: If the output directory cannot be created
            requests.exceptions.RequestException: If the workspace listing fails
        """
        self.logger.info(f"Starting export to {self.output_directory}")
        self.output_directory.mkdir(parents=True, exist_ok=True)

        with ProgressTracker(item_type='pages') as tracker:
            self._tracker = tracker
            try:
                if self.root_page_id:
                    self.export_page(self.root_page_id, self.output_directory)
                else:
                    self._export_workspace()
            finally:
                self._tracker = None

        self.logger.info(f"Export complete! Files saved to: {self.output_directory}")
        self.logger.info(f"Total pages exported: {self.run.processed_count}")

        return self.run

    def _export_workspace(self) -> None:
        """Export every page returned by the workspace search into the output root."""
        for record in self.lister.iter_workspace_pages():
            self.export_page(record['id'], self.output_directory)

    def export_page(self, page_id: str, parent_dir: Path, depth: int = 0) -> None:
        """
        Export a single page and its children recursively.

        Failures are logged and counted here and never propagate, so
        siblings and ancestors carry on. The page stays in the processed
        ledger either way and is not retried within the run.

        Args:
            page_id: Notion page ID
            parent_dir: Directory the page file is written to
            depth: Nesting depth below the export root
        """
        if not self.run.mark_processed(page_id):
            self.logger.debug(f"Skipping already processed page {page_id}")
            return

        try:
            exported = self._export_page_content(page_id, Path(parent_dir), depth)
        except Exception as e:
            self.logger.error(f"Error exporting page {page_id}: {e}", exc_info=True)
            self.run.record_failure(page_id, str(e))
            self._track(False)
            return

        if exported is None:
            return

        target, page, children = exported
        self._track(True)

        if not page.has_children:
            return

        try:
            target.child_directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Error creating directory for page {page_id}: {e}")
            self.run.record_failure(page_id, str(e))
            return

        for child in children:
            self.export_page(child.id, target.child_directory, depth + 1)

    def _export_page_content(self, page_id: str, parent_dir: Path, depth: int):
        """
        Retrieve, convert and write one page.

        Returns:
            Tuple of (ExportTarget, PageNode, child nodes), or None if the page was skipped
        """
        if depth > self.max_depth:
            raise MaxDepthExceeded(
                f"Page {page_id} is nested deeper than the maximum depth of {self.max_depth}"
            )

        record = self.client.retrieve_page(page_id)
        if not is_full_page(record):
            self.logger.info(f"Skipping page {page_id} - insufficient permissions")
            self.run.stats['pages_skipped'] += 1
            return None

        page = PageNode.from_record(record)
        self.logger.info(f"Exporting: {page.title}")

        # Children decide whether a Subnotes section is needed
        children = self.lister.list_child_pages(page_id)
        page.has_children = bool(children)

        markdown = self.converter.page_to_markdown(page_id)

        markdown = self.rehoster.rehost(markdown, parent_dir)
        media_stats = self.rehoster.last_stats

        target = ExportTarget(parent_directory=parent_dir, file_name=sanitize_filename(page.title))

        if page.has_children:
            markdown += self.build_navigation_section(target.file_name, children)

        target.file_path.write_text(markdown, encoding='utf-8')
        self.run.record_media(media_stats)
        if not self.run.record_write(target.file_path):
            self.logger.warning(
                f"Overwrote {target.file_path} written earlier in this run "
                f"(page {page_id} shares its file name with another page)"
            )
        self.logger.debug(f"Wrote {target.file_path}")

        return target, page, children

    def build_navigation_section(self, file_name: str, children: List[PageNode]) -> str:
        """
        Build the links appended to a parent page, one per child in listing order.

        Each link predicts the file the child's own visit will write, so both
        sides go through sanitize_filename with the same title.

        Args:
            file_name: Sanitized file name of the parent page
            children: Child page nodes

        Returns:
            Markdown navigation section
        """
        lines = [f"\n\n## {self.navigation_heading}\n\n"]
        for child in children:
            child_file = sanitize_filename(child.title)
            lines.append(f"- [{child.title}](./{file_name}/{child_file}.md)\n")
        return ''.join(lines)

    def _track(self, success: bool) -> None:
        if self._tracker is not None:
            self._tracker.increment(success=success)


__all__ = ['TreeExporter', 'ExportError', 'MaxDepthExceeded', 'NAVIGATION_HEADING']
