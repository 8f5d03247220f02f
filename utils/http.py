"""HTTP utilities for fetching the published spreadsheet exports.

Provides:
- ``RetryStrategy``: urllib3 retry policy for idempotent GETs
- ``SessionManager``: pooled ``requests.Session`` with retries mounted
- ``fetch_text``: GET a URL and return its body decoded as UTF-8
"""

import logging
from typing import List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry as URLRetry

logger = logging.getLogger(__name__)


class RetryStrategy:
    """Defines retry behavior for HTTP requests."""

    def __init__(self, max_retries: int = 3, backoff_factor: float = 1.0,
                 status_forcelist: Optional[List[int]] = None):
        """Initialize retry strategy.

        Args:
            max_retries: Maximum number of retry attempts (default: 3)
            backoff_factor: Exponential backoff multiplier (default: 1.0)
                           delays: 1s, 2s, 4s
            status_forcelist: HTTP status codes to retry on
                            (default: [429, 500, 502, 503, 504])
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.status_forcelist = status_forcelist or [429, 500, 502, 503, 504]

    def get_retry_object(self) -> URLRetry:
        """Return the urllib3 ``Retry`` configured with this strategy."""
        return URLRetry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=self.status_forcelist,
            allowed_methods=["GET", "HEAD"]
        )


class SessionManager:
    """Manages an HTTP session with connection pooling and retries.

    Usage::

        with SessionManager() as sm:
            text = fetch_text(url, sm.session, timeout=30)
    """

    def __init__(self, retry_strategy: Optional[RetryStrategy] = None,
                 pool_connections: int = 4, pool_maxsize: int = 11):
        # One pool per host; the published sheets all live on one host so
        # pool_maxsize covers every dataset fetched at once.
        self.retry_strategy = retry_strategy or RetryStrategy()
        self.pool_connections = pool_connections
        self.pool_maxsize = pool_maxsize
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Get or create the HTTP session."""
        if self._session is None:
            self._session = requests.Session()
            adapter = HTTPAdapter(
                max_retries=self.retry_strategy.get_retry_object(),
                pool_connections=self.pool_connections,
                pool_maxsize=self.pool_maxsize
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)
        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def fetch_text(url: str, session: requests.Session, timeout: float = 30.0) -> str:
    """GET *url* and return the body as text.

    Google's CSV export omits a charset, so the body is decoded as UTF-8
    explicitly instead of trusting ``requests``' ISO-8859-1 fallback.  A
    leading BOM is dropped.

    Raises:
        requests.RequestException: on connection failure, timeout, or a
            non-2xx status after retries.
    """
    logger.debug("GET %s", url)
    resp = session.get(url, timeout=timeout)
    resp.raise_for_status()
    resp.encoding = "utf-8"
    return resp.text.lstrip("\ufeff")
