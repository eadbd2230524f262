"""Converters package for rendering Notion page content as Markdown."""

import logging

from .block_converter import BlockConverter, plain_text, render_rich_text

logger = logging.getLogger('notion_markdown_exporter.converters')


def convert_page(page_id, lister, logger=None):
    """
    Convenience function to convert one Notion page to Markdown.

    Args:
        page_id: Notion page ID
        lister: PaginatedLister used to list the page's blocks
        logger: Optional logger instance (uses module logger if not provided)

    Returns:
        str: Markdown document for the page

    Example:
        >>> from converters import convert_page
        >>> from fetchers import PaginatedLister
        >>> markdown = convert_page(page_id, PaginatedLister(client))
    """
    if logger is None:
        logger = logging.getLogger('notion_markdown_exporter.converters')

    return BlockConverter(lister, logger=logger).page_to_markdown(page_id)


__all__ = [
    'convert_page',
    'BlockConverter',
    'render_rich_text',
    'plain_text'
]
