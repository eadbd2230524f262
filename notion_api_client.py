"""Notion REST API client with retry logic, rate limiting and error handling."""

import json
import logging
import time
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger('notion_markdown_exporter.client')

DEFAULT_BASE_URL = 'https://api.notion.com/v1'
DEFAULT_API_VERSION = '2022-06-28'


class NotionApiClient:
    """Notion REST API client with authentication, retry logic, and error handling."""

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 30,
        max_retries: int = 3,
        retry_backoff_factor: float = 2.0,
        rate_limit: float = 0.0
    ):
        """
        Initialize the client with bearer authentication and retry configuration.

        Args:
            token: Notion integration token
            base_url: API base URL
            api_version: Value sent in the Notion-Version header
            timeout: HTTP request timeout in seconds
            max_retries: Maximum retry attempts for transient errors
            retry_backoff_factor: Exponential backoff factor
            rate_limit: Minimum seconds between requests (0.0 = no rate limiting)
        """
        if not token:
            raise ValueError("Notion client requires an integration token")

        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.rate_limit = rate_limit
        self.last_request_time = 0.0

        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {token}',
            'Notion-Version': api_version,
            'Content-Type': 'application/json',
        })

        # Search is a read-only POST, so it is retried like a GET
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=retry_backoff_factor,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS", "POST"]
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        logger.info(f"Initialized Notion client for {self.base_url} (version {api_version})")
        logger.debug(f"Client configured with timeout={timeout}s, max_retries={max_retries}, "
                     f"backoff_factor={retry_backoff_factor}, rate_limit={rate_limit}s")

    def _enforce_rate_limit(self) -> None:
        """Enforce rate limiting if configured."""
        if self.rate_limit <= 0:
            return

        time_since_last = time.time() - self.last_request_time

        if time_since_last < self.rate_limit:
            sleep_time = self.rate_limit - time_since_last
            logger.debug(f"Rate limiting: sleeping for {sleep_time:.2f}s")
            time.sleep(sleep_time)

    def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Make an API request and return the decoded JSON body.

        Args:
            method: HTTP method (GET, POST)
            endpoint: API endpoint path (e.g., "/pages/<id>")
            **kwargs: Additional arguments for requests

        Returns:
            Decoded JSON response

        Raises:
            requests.exceptions.HTTPError: For HTTP errors
            requests.exceptions.Timeout: For timeout errors
            requests.exceptions.RequestException: For other request errors
        """
        self._enforce_rate_limit()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        start_time = time.time()
        logger.debug(f"API Request: {method} {url}")

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            logger.debug(f"API Response: {response.status_code} {url} ({time.time() - start_time:.3f}s)")

            retry_count = 0
            while response.status_code == 429 and retry_count < self.max_retries:
                retry_after = response.headers.get('Retry-After', '1')
                try:
                    wait_time = float(retry_after)
                except ValueError:
                    wait_time = 1.0

                retry_count += 1
                logger.warning(f"Rate limited (429): attempt {retry_count}/{self.max_retries}, "
                               f"waiting {wait_time}s before retry")

                response.close()
                time.sleep(wait_time)

                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
                logger.debug(f"Retry Response ({retry_count}/{self.max_retries}): {response.status_code} {url}")

            if response.status_code == 429:
                logger.error(f"Rate limit exceeded after {self.max_retries} attempts: {url}")

            response.raise_for_status()
            return response.json()

        except requests.exceptions.Timeout:
            logger.error(f"Request timeout after {self.timeout}s: {method} {url}")
            raise

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else "unknown"
            logger.error(f"HTTP Error {status_code}: {method} {url}")

            if e.response is not None:
                try:
                    error_data = e.response.json()
                    logger.error(f"Error details: {json.dumps(error_data, indent=2)}")
                except ValueError:
                    logger.error(f"Error response: {e.response.text[:500]}")

            raise

        except requests.exceptions.RequestException as e:
            logger.error(f"Request error: {method} {url} - {str(e)}")
            raise

        finally:
            self.last_request_time = time.time()

    def search(
        self,
        query: Optional[str] = None,
        filter: Optional[Dict[str, Any]] = None,
        start_cursor: Optional[str] = None,
        page_size: int = 100
    ) -> Dict[str, Any]:
        """
        Fetch one batch of workspace search results.

        Args:
            query: Optional title query
            filter: Optional object filter, e.g. {"property": "object", "value": "page"}
            start_cursor: Cursor returned by the previous batch
            page_size: Batch size (at most 100)

        Returns:
            Response with ``results``, ``has_more`` and ``next_cursor``
        """
        payload: Dict[str, Any] = {'page_size': page_size}
        if query:
            payload['query'] = query
        if filter:
            payload['filter'] = filter
        if start_cursor:
            payload['start_cursor'] = start_cursor

        return self._make_request('POST', '/search', json=payload)

    def retrieve_page(self, page_id: str) -> Dict[str, Any]:
        """
        Fetch a single page record.

        Args:
            page_id: Notion page ID

        Returns:
            Page record; restricted pages come back without ``properties``

        Raises:
            requests.exceptions.HTTPError: For 404 or other HTTP errors
        """
        return self._make_request('GET', f'/pages/{page_id}')

    def list_block_children(
        self,
        block_id: str,
        start_cursor: Optional[str] = None,
        page_size: int = 100
    ) -> Dict[str, Any]:
        """
        Fetch one batch of child blocks of a block or page.

        Args:
            block_id: Parent block or page ID
            start_cursor: Cursor returned by the previous batch
            page_size: Batch size (at most 100)

        Returns:
            Response with ``results``, ``has_more`` and ``next_cursor``
        """
        params: Dict[str, Any] = {'page_size': page_size}
        if start_cursor:
            params['start_cursor'] = start_cursor

        return self._make_request('GET', f'/blocks/{block_id}/children', params=params)

    def close(self) -> None:
        self.session.close()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'NotionApiClient':
        """
        Initialize client from configuration dictionary.

        Args:
            config: Configuration dictionary with notion and advanced settings

        Returns:
            NotionApiClient instance
        """
        notion_config = config.get('notion', {})
        advanced_config = config.get('advanced', {})

        return cls(
            token=notion_config.get('token'),
            base_url=notion_config.get('base_url', DEFAULT_BASE_URL),
            api_version=notion_config.get('api_version', DEFAULT_API_VERSION),
            timeout=advanced_config.get('request_timeout', 30),
            max_retries=advanced_config.get('max_retries', 3),
            retry_backoff_factor=advanced_config.get('retry_backoff_factor', 2.0),
            rate_limit=advanced_config.get('rate_limit', 0.0)
        )


__all__ = ['NotionApiClient', 'DEFAULT_BASE_URL', 'DEFAULT_API_VERSION']
