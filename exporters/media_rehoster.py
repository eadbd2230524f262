"""Media rehoster for downloading embedded images and rewriting their references."""

import logging
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin, urlparse

import requests
from requests.adapters import HTTPAdapter
from tqdm import tqdm
from urllib3.util.retry import Retry

from models import MediaReference

REDIRECT_STATUSES = (301, 302, 303, 307, 308)
DEFAULT_MEDIA_HOSTS = ['notion.so']


class MediaDownloadError(Exception):
    """Raised when a single image cannot be downloaded."""
    pass


class MediaRehoster:
    """
    Mirrors Notion-hosted images of a document into a local ``images`` directory.

    This rehoster:
    1. Finds markdown images ![alt](url) in order of appearance
    2. Leaves local targets and images from foreign hosts untouched
    3. Downloads the rest as image-<n>.<ext>, following redirects itself
    4. Rewrites each successful occurrence to ./images/image-<n>.<ext>
    """

    def __init__(
        self,
        config: Dict[str, Any],
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the rehoster.

        Args:
            config: Configuration dictionary
            session: HTTP session for downloads (never carries the Notion token)
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger('notion_markdown_exporter.exporters.media_rehoster')

        media_config = config.get('media', {})
        advanced_config = config.get('advanced', {})
        self.enabled = media_config.get('download_images', True)
        self.media_directory = media_config.get('directory', 'images')
        self.hosts = [host.lower().lstrip('.') for host in media_config.get('hosts', DEFAULT_MEDIA_HOSTS)]
        self.max_redirects = media_config.get('max_redirects', 5)
        self.default_extension = media_config.get('default_extension', 'png')
        self.show_progress = media_config.get('progress_bars', True)
        self.timeout = advanced_config.get('request_timeout', 30)

        self.image_pattern = re.compile(r'!\[([^\]]*)\]\(([^)]+)\)')
        self.last_stats: Dict[str, int] = {}

        self._owns_session = session is None
        self.session = session or self._build_session(advanced_config)

    @staticmethod
    def _build_session(advanced_config: Dict[str, Any]) -> requests.Session:
        session = requests.Session()
        retry_strategy = Retry(
            total=advanced_config.get('max_retries', 3),
            backoff_factor=advanced_config.get('retry_backoff_factor', 2.0),
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def rehost(self, markdown: str, parent_dir: Path) -> str:
        """
        Download the document's Notion-hosted images next to it and rewrite references.

        Args:
            markdown: Document text
            parent_dir: Directory the document is written to

        Returns:
            Updated markdown; per-call counters are left in ``last_stats``
        """
        stats = {'found': 0, 'downloaded': 0, 'skipped': 0, 'failed': 0}
        self.last_stats = stats

        matches = list(self.image_pattern.finditer(markdown))
        if not matches:
            return markdown

        stats['found'] = len(matches)

        if not self.enabled:
            self.logger.debug("Image downloads disabled - keeping remote references")
            stats['skipped'] = len(matches)
            return markdown

        media_dir = Path(parent_dir) / self.media_directory
        created_media_dir = False
        sequence = 1
        pieces: List[str] = []
        position = 0

        match_iter = matches
        if self._should_show_progress(len(matches)):
            match_iter = tqdm(matches, desc="Images", leave=False)

        for match in match_iter:
            pieces.append(markdown[position:match.start()])
            position = match.end()

            original = match.group(0)
            alt_text, target = match.group(1), match.group(2)

            if not self._is_network_url(target):
                pieces.append(original)
                continue

            try:
                mirrored = self._is_mirrored_host(target)
                extension = self._extension_for(target)
            except ValueError as e:
                self.logger.error(f"  Invalid image URL {target}: {e}")
                stats['failed'] += 1
                pieces.append(original)
                continue

            if not mirrored:
                self.logger.info(f"  Skipping non-Notion image: {target}")
                stats['skipped'] += 1
                pieces.append(original)
                continue

            reference = MediaReference(
                original_url=target,
                alt_text=alt_text,
                sequence_number=sequence
            )
            reference.local_name = f"image-{sequence}.{extension}"

            try:
                if not media_dir.exists():
                    media_dir.mkdir(parents=True, exist_ok=True)
                    created_media_dir = True

                self.download(target, media_dir / reference.local_name)
            except (requests.exceptions.RequestException, MediaDownloadError, OSError, ValueError) as e:
                self.logger.error(f"  Failed to download image from {target}: {e}")
                stats['failed'] += 1
                pieces.append(original)
                continue

            self.logger.info(f"  Downloaded image: {reference.local_name}")
            stats['downloaded'] += 1
            sequence += 1
            pieces.append(f"![{alt_text}]({self._local_target(reference)})")

        pieces.append(markdown[position:])

        if created_media_dir and not any(media_dir.iterdir()):
            media_dir.rmdir()

        return ''.join(pieces)

    def close(self) -> None:
        """Close the download session if this rehoster created it."""
        if self._owns_session:
            self.session.close()

    def download(self, url: str, destination: Path) -> None:
        """
        Stream a resource to disk, following at most ``max_redirects`` redirects.

        Args:
            url: Resource URL
            destination: Target file path

        Raises:
            MediaDownloadError: On a non-success status or too many redirects
            requests.exceptions.RequestException: On transport errors
        """
        current_url = url

        for _ in range(self.max_redirects + 1):
            response = self.session.get(current_url, stream=True, allow_redirects=False,
                                        timeout=self.timeout)
            try:
                if response.status_code in REDIRECT_STATUSES:
                    location = response.headers.get('Location')
                    if not location:
                        raise MediaDownloadError(
                            f"Redirect {response.status_code} without Location header"
                        )
                    current_url = urljoin(current_url, location)
                    self.logger.debug(f"  Following redirect to {current_url}")
                    continue

                if response.status_code != 200:
                    raise MediaDownloadError(f"Failed to download image: {response.status_code}")

                self._write_stream(response, destination)
                return
            finally:
                response.close()

        raise MediaDownloadError(f"Too many redirects (more than {self.max_redirects})")

    @staticmethod
    def _write_stream(response: requests.Response, destination: Path) -> None:
        try:
            with open(destination, 'wb') as f:
                for chunk in response.iter_content(chunk_size=65536):
                    if chunk:
                        f.write(chunk)
        except (requests.exceptions.RequestException, OSError):
            destination.unlink(missing_ok=True)
            raise

    @staticmethod
    def _is_network_url(target: str) -> bool:
        return target.startswith('http://') or target.startswith('https://')

    def _is_mirrored_host(self, url: str) -> bool:
        hostname = (urlparse(url).hostname or '').lower()
        return any(hostname == host or hostname.endswith(f".{host}") for host in self.hosts)

    def _extension_for(self, url: str) -> str:
        """
        Take the extension from the URL path, falling back to the default.

        The extension is lower-cased, so a target ending in ``X.PNG`` is saved
        as ``image-<n>.png`` rather than keeping the URL's casing.
        """
        match = re.search(r'\.([A-Za-z0-9]{1,5})$', urlparse(url).path)
        return match.group(1).lower() if match else self.default_extension

    def _local_target(self, reference: MediaReference) -> str:
        if self.media_directory == 'images':
            return reference.local_reference
        return f"./{self.media_directory}/{reference.local_name}"

    def _should_show_progress(self, count: int) -> bool:
        """Check if a progress bar should be displayed."""
        if not self.show_progress or count < 2:
            return False
        return sys.stdout.isatty()


__all__ = ['MediaRehoster', 'MediaDownloadError', 'REDIRECT_STATUSES', 'DEFAULT_MEDIA_HOSTS']
