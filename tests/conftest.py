"""Shared fixtures: an in-memory Notion workspace and builders for its records."""

import logging
from typing import Any, Dict, List, Optional

import pytest

from logger import LOGGER_NAME


def page_record(page_id: str, title: Optional[str] = None) -> Dict[str, Any]:
    """Build a full page record whose title property holds a single run."""
    runs = [{'type': 'text', 'plain_text': title}] if title else []
    return {
        'object': 'page',
        'id': page_id,
        'url': f"https://www.notion.so/{page_id.replace('-', '')}",
        'properties': {
            'title': {'id': 'title', 'type': 'title', 'title': runs}
        }
    }


def partial_record(page_id: str) -> Dict[str, Any]:
    """Build a page record as returned for a page the integration cannot read."""
    return {'object': 'page', 'id': page_id}


def text_run(text: str, **annotations) -> Dict[str, Any]:
    href = annotations.pop('href', None)
    return {
        'type': 'text',
        'plain_text': text,
        'href': href,
        'annotations': annotations
    }


def block(block_type: str, block_id: str = None, has_children: bool = False, **content) -> Dict[str, Any]:
    return {
        'object': 'block',
        'id': block_id or f"{block_type}-block",
        'type': block_type,
        'has_children': has_children,
        block_type: content
    }


def paragraph(text: str, block_id: str = None) -> Dict[str, Any]:
    return block('paragraph', block_id, rich_text=[text_run(text)])


def child_page_block(page_id: str, title: str, has_children: bool = False) -> Dict[str, Any]:
    return block('child_page', page_id, has_children=has_children, title=title)


def image_block(url: str, caption: str = '', block_id: str = None) -> Dict[str, Any]:
    caption_runs = [text_run(caption)] if caption else []
    return block('image', block_id, type='external', external={'url': url}, caption=caption_runs)


class FakeNotionClient:
    """
    In-memory stand-in for NotionApiClient.

    Listings honour ``page_size`` and hand out string offsets as cursors, so
    callers have to follow ``next_cursor`` to see every result.
    """

    def __init__(self):
        self.pages: Dict[str, Dict[str, Any]] = {}
        self.blocks: Dict[str, List[Dict[str, Any]]] = {}
        self.search_results: List[Dict[str, Any]] = []
        self.retrieve_errors: Dict[str, Exception] = {}
        self.list_errors: Dict[str, Exception] = {}
        self.retrieve_calls: List[str] = []
        self.list_calls: List[tuple] = []
        self.search_calls: List[dict] = []
        self.closed = False

    def add_page(self, page_id: str, title: Optional[str], content: Optional[List[Dict[str, Any]]] = None,
                 children: Optional[List[tuple]] = None) -> Dict[str, Any]:
        """Register a page with content blocks followed by child_page blocks for ``children``."""
        record = page_record(page_id, title)
        self.pages[page_id] = record
        blocks = list(content or [])
        for child_id, child_title in children or []:
            blocks.append(child_page_block(child_id, child_title))
        self.blocks[page_id] = blocks
        return record

    @staticmethod
    def _batch(items: List[Dict[str, Any]], start_cursor: Optional[str], page_size: int) -> Dict[str, Any]:
        start = int(start_cursor) if start_cursor else 0
        end = start + page_size
        has_more = end < len(items)
        return {
            'object': 'list',
            'results': items[start:end],
            'has_more': has_more,
            'next_cursor': str(end) if has_more else None
        }

    def search(self, query=None, filter=None, start_cursor=None, page_size=100):
        self.search_calls.append({'filter': filter, 'start_cursor': start_cursor, 'page_size': page_size})
        return self._batch(self.search_results, start_cursor, page_size)

    def retrieve_page(self, page_id):
        self.retrieve_calls.append(page_id)
        if page_id in self.retrieve_errors:
            raise self.retrieve_errors[page_id]
        if page_id not in self.pages:
            raise KeyError(f"Could not find page with ID: {page_id}")
        return self.pages[page_id]

    def list_block_children(self, block_id, start_cursor=None, page_size=100):
        self.list_calls.append((block_id, start_cursor, page_size))
        if block_id in self.list_errors:
            raise self.list_errors[block_id]
        return self._batch(self.blocks.get(block_id, []), start_cursor, page_size)

    def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging between tests so caplog keeps seeing package records."""
    yield
    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


@pytest.fixture
def fake_client():
    return FakeNotionClient()


@pytest.fixture
def export_config(tmp_path):
    """Configuration pointing the export at a temporary directory."""
    return {
        'notion': {'token': 'secret_test_token'},
        'export': {'output_directory': str(tmp_path / 'export')},
        'media': {'download_images': True, 'progress_bars': False},
        'advanced': {'page_size': 100, 'request_timeout': 5}
    }
