"""Shared JSON-over-HTTP plumbing for the REST integrations.

Each REST client owns a lazily created ``requests.Session`` with urllib3
retries for transient statuses, and exposes async wrappers that run the
blocking call in the default executor.
"""

import asyncio
import logging
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_FACTOR = 1.0
RETRY_STATUSES = [429, 500, 502, 503, 504]
USER_AGENT = "Mozilla/5.0 (compatible; LeadDiscoveryBot/1.0)"


def build_session(
    max_retries: int = DEFAULT_MAX_RETRIES,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
) -> requests.Session:
    """Create a requests session with retry configuration.

    Args:
        max_retries: Total retries for connection errors and retryable statuses.
        backoff_factor: Exponential backoff factor between retries.

    Returns:
        Configured requests.Session instance
    """
    session = requests.Session()
    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=["POST", "GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers["User-Agent"] = USER_AGENT
    return session


class JSONHTTPClient:
    """Base class for clients of JSON REST APIs.

    Subclasses set ``error_class`` to their own exception type; every
    transport, status and decoding failure is raised as that type.
    """

    error_class: type[Exception] = RuntimeError

    def __init__(
        self,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self._session = session

    def _get_session(self) -> requests.Session:
        if self._session is None:
            self._session = build_session(self.max_retries, self.backoff_factor)
        return self._session

    def _request_sync(self, method: str, url: str, **kwargs: Any) -> Any:
        """Perform one request and decode the JSON body.

        Raises:
            error_class: On transport errors, non-2xx statuses or invalid JSON.
        """
        try:
            response = self._get_session().request(
                method, url, timeout=self.timeout_seconds, **kwargs
            )
        except requests.RequestException as e:
            # str(e) embeds the full request URL, query-string API keys included,
            # so neither the message nor the traceback chain carries it
            raise self.error_class(
                f"{method} {url} failed: {e.__class__.__name__}"
            ) from None

        if response.status_code >= 400:
            body = (response.text or "")[:200]
            raise self.error_class(
                f"{method} {url} returned {response.status_code}: {body}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise self.error_class(f"{method} {url} returned invalid JSON") from e

    async def _get(self, url: str, **kwargs: Any) -> Any:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None, lambda: self._request_sync("GET", url, **kwargs)
        )

    async def _post(self, url: str, **kwargs: Any) -> Any:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None, lambda: self._request_sync("POST", url, **kwargs)
        )

    def close(self) -> None:
        """Close the underlying session, if one was created."""
        if self._session is not None:
            self._session.close()
            self._session = None
