"""
GitHub API client infrastructure for gitall.

Provides the remote inventory: the list of repositories the hosting API
reports for one account.
- Follows Link pagination up to a configured page limit
- Retries transient failures with exponential backoff
- Raises FetchFailed instead of returning an empty list on error
"""

import os
import time
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, List, Dict, Any

import requests

from ..domain.repository import RepoDescriptor
from ..exit_codes import FetchFailed

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"


class RemoteInventory:
    """
    Fetches the repositories of a GitHub user or organisation.

    Example:
        inventory = RemoteInventory()
        for repo in inventory.fetch("octocat"):
            print(repo.name)
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        token: Optional[str] = None,
        per_page: int = 100,
        max_pages: int = 10,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        timeout: float = 30.0
    ):
        """
        Initialize RemoteInventory.

        Args:
            api_url: API root (GitHub Enterprise installs differ)
            token: Token sent as Authorization header (defaults to
                GITALL_GITHUB_TOKEN or GITHUB_TOKEN env var)
            per_page: Page size query parameter
            max_pages: Stop following Link headers after this many pages
            max_retries: Attempts per page for transient failures
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay between retries
            timeout: Per-request timeout in seconds
        """
        self.api_url = api_url.rstrip('/')
        self.token = token or os.environ.get('GITALL_GITHUB_TOKEN') or os.environ.get('GITHUB_TOKEN')
        self.per_page = per_page
        self.max_pages = max(1, max_pages)
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'RemoteInventory':
        github = config.get('github', {})
        return cls(
            api_url=github.get('api_url') or DEFAULT_API_URL,
            token=github.get('token') or None,
            per_page=github.get('per_page', 100),
            max_pages=github.get('max_pages', 10),
            max_retries=github.get('max_retries', 3),
            base_delay=float(github.get('base_delay', 1.0)),
            timeout=github.get('timeout_seconds', 30),
        )

    def _headers(self) -> Dict[str, str]:
        headers = {
            'Accept': 'application/json',
            'User-Agent': 'gitall'
        }
        if self.token:
            headers['Authorization'] = f'token {self.token}'
        return headers

    def repos_url(self, user: str) -> str:
        return f"{self.api_url}/users/{user}/repos"

    def fetch(self, user: str) -> List[RepoDescriptor]:
        """
        Get every repository of a user.

        Args:
            user: GitHub user or organisation

        Returns:
            List of RepoDescriptor in API order

        Raises:
            FetchFailed: on network failure, non-2xx status or a malformed body
        """
        url: Optional[str] = self.repos_url(user)
        params: Optional[Dict[str, Any]] = {'per_page': self.per_page}
        repos: List[RepoDescriptor] = []
        pages = 0

        logger.info(f"Fetching repos from [{url}]")
        while url and pages < self.max_pages:
            response = self._get(url, params)
            repos.extend(self._parse(response, url))
            pages += 1

            # The next link already carries the query string
            url = response.links.get('next', {}).get('url')
            params = None

        if url:
            logger.warning(f"Stopped after {pages} pages for {user}; raise github.max_pages to fetch more")

        return repos

    def fetch_async(self, user: str) -> Future:
        """Run fetch on a worker thread; the Future resolves to the list or FetchFailed."""
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="gitall-fetch")
        future = executor.submit(self.fetch, user)
        executor.shutdown(wait=False)
        return future

    def _get(self, url: str, params: Optional[Dict[str, Any]]) -> requests.Response:
        """GET with retry for connection errors, timeouts and 5xx."""
        last_error = "no attempt made"

        for attempt in range(self.max_retries):
            try:
                response = requests.get(url, headers=self._headers(), params=params, timeout=self.timeout)
            except requests.RequestException as e:
                last_error = str(e)
                logger.warning(f"GitHub API request failed: {e}")
            else:
                if 200 <= response.status_code < 300:
                    return response
                if response.status_code < 500:
                    raise self._status_error(response.status_code, url)
                last_error = f"GitHub API returned status {response.status_code}"
                logger.warning(f"{last_error} for {url}")

            if attempt < self.max_retries - 1:
                delay = min(self.base_delay * (2 ** attempt), self.max_delay)
                logger.info(f"Retrying in {delay}s (attempt {attempt + 2}/{self.max_retries})")
                time.sleep(delay)

        raise FetchFailed(f"Fetching {url} failed: {last_error}")

    @staticmethod
    def _status_error(status_code: int, url: str) -> FetchFailed:
        if status_code == 404:
            message = "user or organisation not found"
        elif status_code in (403, 429):
            message = "GitHub API rate limit exceeded, configure a token to increase limits"
        else:
            message = f"GitHub API returned status {status_code}"
        return FetchFailed(f"{message} ({url})", status_code=status_code)

    @staticmethod
    def _parse(response: requests.Response, url: str) -> List[RepoDescriptor]:
        try:
            data = response.json()
        except ValueError as e:
            raise FetchFailed(f"Invalid JSON from {url}: {e}") from e

        if not isinstance(data, list):
            raise FetchFailed(f"Expected a JSON array from {url}, got {type(data).__name__}")

        repos = []
        for item in data:
            if not isinstance(item, dict) or not isinstance(item.get('name'), str):
                raise FetchFailed(f"Repository entry without a name in response from {url}")
            repos.append(RepoDescriptor.from_api_response(item))
        return repos
