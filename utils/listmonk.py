"""
Listmonk API Client

Authenticated HTTP access to the listmonk REST API plus raw file downloads
for media assets.

Features:
- Basic Authentication and JSON content type on every API call
- URL-encoded query parameters, optional JSON payload for POST/PUT
- Automatic retries with exponential backoff on connection-level failures
- Soft-fail media downloads (None instead of an exception)

Usage:
    from utils.listmonk import ListmonkClient

    client = ListmonkClient.from_settings(settings)
    response = client.call("GET", "lists", {"per_page": "all"})
    if response.ok:
        lists = response.records(ResponseShape.RESULTS)
"""

import logging
from typing import Any
from urllib.parse import quote, unquote, urlsplit, urlunsplit

import orjson
import requests
from requests.adapters import HTTPAdapter
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from utils.config import Settings
from utils.errors import SoftDownloadFailure, TransportError
from utils.schemas import ApiResponse

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; ListmonkBackup/1.0)"
ERROR_BODY_PREVIEW = 200

RETRYABLE_ERRORS = (requests.ConnectionError, requests.Timeout)


def encode_url_path(url: str) -> str:
    """
    Percent-encode every path segment of `url`.

    Segments are decoded first so already-encoded names are not encoded twice.
    Scheme, host, port and query string are preserved.

    Args:
        url: Absolute URL, possibly with spaces or special characters in the path

    Returns:
        URL safe to send on the wire
    """
    parts = urlsplit(url)
    segments = [quote(unquote(segment), safe="") for segment in parts.path.split("/")]
    return urlunsplit((parts.scheme, parts.netloc, "/".join(segments), parts.query, ""))


class ListmonkClient:
    """Client for the listmonk API with injected credentials."""

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        timeout: float = 30,
        download_timeout: float = 60,
        max_retries: int = 3,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: listmonk root URL, without the /api suffix
            username: API user
            password: API password or token
            timeout: Connect/read timeout for API calls in seconds
            download_timeout: Connect/read timeout for media downloads in seconds
            max_retries: Attempts per API call on connection-level failures
            user_agent: User-Agent sent with media downloads
            session: Pre-built HTTP session (a pooled session is created if None)
        """
        self.base_url = base_url.rstrip("/")
        self.auth = (username, password)
        self.timeout = timeout
        self.download_timeout = download_timeout
        self.max_retries = max_retries
        self.user_agent = user_agent

        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=4, pool_maxsize=4, max_retries=0)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

    @classmethod
    def from_settings(cls, settings: Settings, session: requests.Session | None = None) -> "ListmonkClient":
        return cls(
            base_url=settings.LISTMONK_URL,
            username=settings.LISTMONK_USER,
            password=settings.LISTMONK_PASS,
            timeout=settings.API_TIMEOUT,
            download_timeout=settings.DOWNLOAD_TIMEOUT,
            max_retries=settings.API_MAX_RETRIES,
            user_agent=settings.DOWNLOAD_USER_AGENT,
            session=session,
        )

    def api_url(self, endpoint: str) -> str:
        return f"{self.base_url}/api/{endpoint.lstrip('/')}"

    def call(
        self,
        method: str,
        endpoint: str,
        query: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """
        Send a request to the API.

        Non-2xx responses are returned normally; check `ApiResponse.ok`.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: Endpoint relative to /api/
            query: Query parameters, URL-encoded and appended to the URL
            payload: JSON body, sent for POST and PUT only

        Returns:
            ApiResponse with the status code and decoded JSON body (None if
            the body is empty or not JSON)

        Raises:
            TransportError: On connection-level failure after all retries
        """
        method = method.upper()
        url = self.api_url(endpoint)
        data = None
        if payload is not None and method in ("POST", "PUT"):
            data = orjson.dumps(payload)

        retryer = Retrying(
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=5),
            reraise=True,
        )

        try:
            response = retryer(
                self.session.request,
                method,
                url,
                params=query or None,
                data=data,
                auth=self.auth,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("API request failed: %s %s - %s", method, url, e)
            raise TransportError(f"{method} {url} failed: {e}", url=url) from e

        logger.debug("API %s %s -> HTTP %d", method, url, response.status_code)
        return ApiResponse(status=response.status_code, body=self._decode(response.content))

    @staticmethod
    def _decode(content: bytes) -> Any:
        if not content:
            return None
        try:
            return orjson.loads(content)
        except orjson.JSONDecodeError:
            logger.debug("Response body is not JSON (%d bytes)", len(content))
            return None

    def fetch_binary(self, url: str) -> bytes:
        """
        Download a file, following redirects.

        Raises:
            SoftDownloadFailure: On a non-200 status or transport failure
        """
        encoded_url = encode_url_path(url)
        try:
            response = self.session.get(
                encoded_url,
                headers={"User-Agent": self.user_agent},
                allow_redirects=True,
                timeout=self.download_timeout,
            )
        except requests.RequestException as e:
            raise SoftDownloadFailure(url, detail=str(e)) from e

        if response.status_code != 200:
            preview = response.content[:ERROR_BODY_PREVIEW].decode("utf-8", errors="replace")
            raise SoftDownloadFailure(url, status=response.status_code, detail=f"response: {preview}")

        return response.content

    def download_binary(self, url: str) -> bytes | None:
        """
        Download a file, returning None instead of raising on failure.

        One bad asset must not abort a backup run, so failures are logged
        and reported as None.
        """
        try:
            return self.fetch_binary(url)
        except SoftDownloadFailure as e:
            logger.warning("%s", e, extra={"url": url, "status": e.status})
            return None
