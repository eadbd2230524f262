"""Markdown export package for the Notion to Markdown exporter.

This package writes a Notion page tree to local markdown files, mirroring the
page hierarchy as nested directories.

Package Structure:
- tree_exporter: Recursive traversal writing one file per page plus Subnotes navigation
- media_rehoster: Downloads Notion-hosted images beside each document and rewrites references
- name_sanitizer: Derives filesystem-safe file names from page titles

Configuration Referenced:
- export.output_directory: Base output path for exported files
- export.root_page_id: Optional page to start from (whole workspace when unset)
- export.max_depth: Nesting ceiling for the traversal
- media.*: Image download settings
"""

from .tree_exporter import TreeExporter, ExportError, MaxDepthExceeded, NAVIGATION_HEADING
from .media_rehoster import MediaRehoster, MediaDownloadError
from .name_sanitizer import sanitize_filename

__all__ = [
    'TreeExporter',
    'ExportError',
    'MaxDepthExceeded',
    'NAVIGATION_HEADING',
    'MediaRehoster',
    'MediaDownloadError',
    'sanitize_filename'
]
