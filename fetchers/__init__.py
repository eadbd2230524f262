"""Fetchers package for enumerating Notion content through paginated API listings."""

from .paginated_lister import PaginatedLister, iterate_cursor_pages, MAX_PAGE_SIZE

__all__ = [
    'PaginatedLister',
    'iterate_cursor_pages',
    'MAX_PAGE_SIZE'
]
