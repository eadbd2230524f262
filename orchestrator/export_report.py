"""
Export report generator for summarizing a run and formatting it for output.

This module turns the state of a finished ExportRun into a report dictionary,
formatting it for console display and JSON export.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from models import ExportRun

logger = logging.getLogger('notion_markdown_exporter.orchestrator.export_report')


class ExportReport:
    """Generates export reports from the counters of a single run."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize export report generator.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('notion_markdown_exporter.orchestrator.export_report')

    def generate_report(
        self,
        run: ExportRun,
        output_directory: str,
        export_duration: float,
        root_page_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Generate the export report.

        Args:
            run: Finished export run
            output_directory: Root the files were written to
            export_duration: Total export duration in seconds
            root_page_id: Root page of the export, None for a workspace export

        Returns:
            Export report dictionary
        """
        stats = run.stats

        report = {
            'summary': {
                'output_directory': str(output_directory),
                'root_page_id': root_page_id,
                'scope': 'page tree' if root_page_id else 'workspace',
                'processed_pages': run.processed_count,
                'pages_written': stats.get('pages_written', 0),
                'pages_skipped': stats.get('pages_skipped', 0),
                'pages_failed': stats.get('pages_failed', 0),
                'duration_seconds': export_duration,
                'duration_formatted': self._format_duration(export_duration)
            },
            'media': {
                'downloaded': stats.get('media_downloaded', 0),
                'skipped': stats.get('media_skipped', 0),
                'failed': stats.get('media_failed', 0)
            },
            'errors': list(run.failures),
            'timestamp': datetime.now().isoformat()
        }

        self.logger.info(
            f"Report generated: {report['summary']['pages_written']} pages written, "
            f"{len(report['errors'])} errors"
        )

        return report

    def _format_duration(self, seconds: float) -> str:
        """Format duration in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes}m {secs}s"
        else:
            hours = int(seconds // 3600)
            minutes = int((seconds % 3600) // 60)
            secs = int(seconds % 60)
            return f"{hours}h {minutes}m {secs}s"

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """
        Format report for console display.

        Args:
            report: Export report dictionary

        Returns:
            Formatted console string
        """
        sections = []

        sections.append("=" * 60)
        sections.append("EXPORT REPORT")
        sections.append("=" * 60)
        sections.append("")

        summary = report.get('summary', {})
        sections.append("Summary:")
        sections.append(f"  Output:      {summary.get('output_directory', '')}")
        sections.append(f"  Scope:       {summary.get('scope', 'workspace')}")
        if summary.get('root_page_id'):
            sections.append(f"  Root Page:   {summary['root_page_id']}")
        sections.append(f"  Processed:   {summary.get('processed_pages', 0)} pages")
        sections.append(f"  Written:     {summary.get('pages_written', 0)}")
        sections.append(f"  Skipped:     {summary.get('pages_skipped', 0)}")
        sections.append(f"  Failed:      {summary.get('pages_failed', 0)}")
        sections.append(f"  Duration:    {summary.get('duration_formatted', '0s')}")
        sections.append("")

        media = report.get('media', {})
        if any(media.values()):
            sections.append("Images:")
            sections.append("-" * 60)
            sections.append(
                f"  {media.get('downloaded', 0)} downloaded, "
                f"{media.get('skipped', 0)} skipped, "
                f"{media.get('failed', 0)} failed"
            )
            sections.append("")

        errors = report.get('errors', [])
        if errors:
            sections.append("Error Summary:")
            sections.append(f"  Total errors: {len(errors)}")
            for error in errors[:10]:
                sections.append(f"  {error.get('page_id', 'unknown')}: {error.get('error', '')}")
            if len(errors) > 10:
                sections.append(f"  ... and {len(errors) - 10} more (see log for details)")
            sections.append("")

        sections.append("=" * 60)

        return "\n".join(sections)

    def export_json_report(self, report: Dict[str, Any], filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            report: Export report dictionary
            filepath: Output file path
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, ensure_ascii=False, default=str)

            self.logger.info(f"JSON report exported to {filepath}")

        except OSError as e:
            self.logger.error(f"Failed to export JSON report: {str(e)}")


__all__ = ['ExportReport']
