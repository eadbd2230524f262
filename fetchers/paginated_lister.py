"""Cursor-following listing over the Notion search and block-children endpoints."""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

from models import PageNode, is_full_page

MAX_PAGE_SIZE = 100

# One batch request: (start_cursor, page_size) -> {"results", "has_more", "next_cursor"}
BatchFetcher = Callable[[Optional[str], int], Dict[str, Any]]


def iterate_cursor_pages(
    fetch_batch: BatchFetcher,
    page_size: int = MAX_PAGE_SIZE,
    logger: Optional[logging.Logger] = None
) -> Iterator[Dict[str, Any]]:
    """
    Yield every item of a cursor-paginated result set, one batch at a time.

    Only the current batch is held in memory. Errors raised by ``fetch_batch``
    propagate to the caller; the generator cannot be resumed after one.

    Args:
        fetch_batch: Callable performing one batch request
        page_size: Items requested per batch (capped at 100)
        logger: Logger instance

    Yields:
        Result items in the order the source returns them
    """
    log = logger or logging.getLogger('notion_markdown_exporter.fetchers.paginated_lister')
    page_size = max(1, min(page_size, MAX_PAGE_SIZE))

    start_cursor: Optional[str] = None
    batches = 0

    while True:
        response = fetch_batch(start_cursor, page_size)
        batches += 1

        for item in response.get('results', []):
            yield item

        if not response.get('has_more'):
            break

        start_cursor = response.get('next_cursor')
        if not start_cursor:
            log.warning("Listing reported more results but returned no cursor - stopping")
            break

        log.debug(f"Fetching batch {batches + 1} (cursor {start_cursor})")


class PaginatedLister:
    """
    Enumerates pages and blocks from the Notion API without buffering whole result sets.

    Provides the two listings the tree export needs:
    1. Workspace-wide search restricted to page objects
    2. Child pages of a page, resolved from its ``child_page`` blocks
    """

    def __init__(self, client, page_size: int = MAX_PAGE_SIZE, logger: Optional[logging.Logger] = None):
        """
        Initialize the lister.

        Args:
            client: NotionApiClient (or any object with search, list_block_children
                and retrieve_page methods)
            page_size: Items requested per batch
            logger: Logger instance
        """
        self.client = client
        self.page_size = page_size
        self.logger = logger or logging.getLogger('notion_markdown_exporter.fetchers.paginated_lister')

    def iter_workspace_pages(self) -> Iterator[Dict[str, Any]]:
        """
        Yield every page record the integration can access.

        Results that are not full page records are dropped.
        """
        def fetch_batch(cursor: Optional[str], size: int) -> Dict[str, Any]:
            return self.client.search(
                filter={'property': 'object', 'value': 'page'},
                start_cursor=cursor,
                page_size=size
            )

        for record in iterate_cursor_pages(fetch_batch, self.page_size, self.logger):
            if is_full_page(record):
                yield record
            else:
                self.logger.debug(f"Ignoring partial search result {record.get('id')}")

    def iter_block_children(self, block_id: str) -> Iterator[Dict[str, Any]]:
        """Yield the child blocks of a page or block in order."""
        def fetch_batch(cursor: Optional[str], size: int) -> Dict[str, Any]:
            return self.client.list_block_children(block_id, start_cursor=cursor, page_size=size)

        return iterate_cursor_pages(fetch_batch, self.page_size, self.logger)

    def iter_child_pages(self, page_id: str) -> Iterator[PageNode]:
        """
        Yield the child pages of a page, resolved to full records.

        A child that cannot be retrieved, or that comes back as a partial
        record, is logged and left out; the listing carries on.
        """
        for block in self.iter_block_children(page_id):
            if block.get('type') != 'child_page':
                continue

            child_id = block.get('id')
            try:
                record = self.client.retrieve_page(child_id)
            except Exception as e:
                self.logger.error(f"Error fetching child page {child_id}: {e}")
                continue

            if not is_full_page(record):
                self.logger.info(f"Skipping child page {child_id} - insufficient permissions")
                continue

            yield PageNode.from_record(record)

    def list_child_pages(self, page_id: str) -> List[PageNode]:
        """Drive the child-page listing to exhaustion."""
        children = list(self.iter_child_pages(page_id))
        self.logger.debug(f"Found {len(children)} child pages for page {page_id}")
        return children


__all__ = ['iterate_cursor_pages', 'PaginatedLister', 'MAX_PAGE_SIZE']
