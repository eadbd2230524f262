"""Data models for the Notion to Markdown export pipeline."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

UNTITLED_PAGE = "Untitled"


def is_full_page(record: Dict[str, Any]) -> bool:
    """Check whether a retrieved page record is complete (not permission-restricted)."""
    return isinstance(record, dict) and 'properties' in record


def extract_page_title(record: Dict[str, Any]) -> str:
    """
    Extract the title of a page record.

    The first property of type ``title`` with a non-empty list of text runs
    wins; the ``plain_text`` of its runs is concatenated in order.

    Args:
        record: Full page record as returned by the Notion API

    Returns:
        Page title, or ``"Untitled"`` when no usable title property exists
    """
    properties = record.get('properties') or {}

    for prop in properties.values():
        if not isinstance(prop, dict) or prop.get('type') != 'title':
            continue
        runs = prop.get('title')
        if isinstance(runs, list) and runs:
            return ''.join(run.get('plain_text') or '' for run in runs)

    return UNTITLED_PAGE


@dataclass
class PageNode:
    """A page of the source tree, materialized only while it is being exported."""

    id: str
    title: str
    url: Optional[str] = None
    has_children: bool = False

    def __post_init__(self) -> None:
        if not self.title:
            self.title = UNTITLED_PAGE

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'PageNode':
        """Build a node from a full page record."""
        return cls(
            id=record['id'],
            title=extract_page_title(record),
            url=record.get('url')
        )

    def __eq__(self, other: Any) -> bool:
        """Compare nodes by ID."""
        if not isinstance(other, PageNode):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        """Hash node by ID."""
        return hash(self.id)


@dataclass(frozen=True)
class ExportTarget:
    """Where a page lands on disk, derived from its sanitized title."""

    parent_directory: Path
    file_name: str

    @property
    def file_path(self) -> Path:
        return self.parent_directory / f"{self.file_name}.md"

    @property
    def child_directory(self) -> Path:
        return self.parent_directory / self.file_name


@dataclass
class MediaReference:
    """An embedded image reference found in a document."""

    original_url: str
    alt_text: str
    sequence_number: int
    local_name: Optional[str] = None

    @property
    def local_reference(self) -> Optional[str]:
        """Relative markdown target of the rehosted copy."""
        if not self.local_name:
            return None
        return f"./images/{self.local_name}"


@dataclass
class ExportRun:
    """
    State owned by a single export run.

    ``processed`` is the ledger of page IDs already visited. An ID is added
    once at the start of its visit and never removed, which is what stops
    cycles and duplicate writes when a page is reachable through several
    listings.
    """

    processed: Set[str] = field(default_factory=set)
    written_files: List[Path] = field(default_factory=list)
    written_paths: Set[Path] = field(default_factory=set)
    failures: List[Dict[str, str]] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Initialize default counters if empty."""
        if not self.stats:
            self.stats = {
                'pages_written': 0,
                'pages_skipped': 0,
                'pages_failed': 0,
                'media_downloaded': 0,
                'media_skipped': 0,
                'media_failed': 0
            }

    def mark_processed(self, page_id: str) -> bool:
        """
        Insert a page ID into the processed ledger.

        Returns:
            True if the ID was newly inserted, False if it was already present
        """
        if page_id in self.processed:
            return False
        self.processed.add(page_id)
        return True

    def record_write(self, path: Path) -> bool:
        """
        Remember a written file.

        Returns:
            False if the same path was already written earlier in this run
        """
        first_write = path not in self.written_paths
        self.written_paths.add(path)
        self.written_files.append(path)
        self.stats['pages_written'] += 1
        return first_write

    def record_failure(self, page_id: str, error: str) -> None:
        self.failures.append({'page_id': page_id, 'error': error})
        self.stats['pages_failed'] += 1

    def record_media(self, stats: Dict[str, int]) -> None:
        """Fold per-document media counters into the run totals."""
        for key in ('downloaded', 'skipped', 'failed'):
            self.stats[f'media_{key}'] += stats.get(key, 0)

    @property
    def processed_count(self) -> int:
        return len(self.processed)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize run outcome to dictionary."""
        return {
            'processed_pages': self.processed_count,
            'stats': dict(self.stats),
            'failures': list(self.failures),
            'written_files': [str(path) for path in self.written_files]
        }


__all__ = [
    'UNTITLED_PAGE',
    'is_full_page',
    'extract_page_title',
    'PageNode',
    'ExportTarget',
    'MediaReference',
    'ExportRun'
]
