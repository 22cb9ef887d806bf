"""
Manifest retrieval.

Performs the single HTTPS GET for ``/apple-app-site-association`` and
classifies the response. The body is kept as raw bytes: a signed manifest is
DER data and any charset decoding would corrupt it.

Classification order:
1. transport failure (DNS, TLS/connection, timeout)
2. HTTP status >= 400
3. HTTP status 3xx (redirects are never followed)
4. content-type not acceptable for the requested mode
"""

import socket
import time
from typing import Optional

import httpx

from .audit_logger import AuditLogger
from .config import HTTPConfig
from .enums import ContentKind, FailureReason
from .exceptions import FetchError
from .models import FetchedManifest


MANIFEST_PATH = "/apple-app-site-association"

ENVELOPE_CONTENT_TYPE = "application/pkcs7-mime"
JSON_CONTENT_TYPES = frozenset({"application/json", "text/json"})

# getaddrinfo messages across platforms, for errors that lost their gaierror cause
DNS_FAILURE_MARKERS = (
    "name or service not known",
    "nodename nor servname provided",
    "temporary failure in name resolution",
    "no address associated with hostname",
    "getaddrinfo failed",
    "name resolution",
)


def manifest_url(domain: str) -> str:
    return f"https://{domain}{MANIFEST_PATH}"


def media_type(content_type: Optional[str]) -> str:
    """Lowercased media type without parameters ('; charset=...')."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def classify_content_type(content_type: Optional[str], allow_unencrypted: bool) -> Optional[ContentKind]:
    """
    Map a content-type header to how the body should be treated.

    Returns None when the content-type is not acceptable; JSON types are only
    acceptable when unencrypted manifests are allowed.
    """
    value = media_type(content_type)
    if value == ENVELOPE_CONTENT_TYPE:
        return ContentKind.ENVELOPE
    if allow_unencrypted and value in JSON_CONTENT_TYPES:
        return ContentKind.JSON
    return None


def is_dns_failure(error: BaseException) -> bool:
    """True if a connection error was caused by name resolution."""
    current: Optional[BaseException] = error
    seen = set()
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return True
        message = str(current).lower()
        if any(marker in message for marker in DNS_FAILURE_MARKERS):
            return True
        current = current.__cause__ or current.__context__
    return False


class ContentFetcher:
    """
    Async manifest fetcher with TLS enforcement and no redirect following.

    Can be used as an async context manager; otherwise the HTTP client is
    created on first use and released with ``close()``.
    """

    COMPONENT = "ContentFetcher"

    def __init__(
        self,
        config: Optional[HTTPConfig] = None,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            config: HTTP settings (timeout, user agent, TLS verification)
            logger: Optional logger
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
        """
        self._config = config or HTTPConfig()
        self._logger = logger
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "ContentFetcher":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=self._config.verify_tls,
                timeout=httpx.Timeout(self._config.timeout),
                follow_redirects=False,
                headers={"User-Agent": self._config.user_agent},
                transport=self._transport,
            )
        return self._client

    async def fetch(self, domain: str, allow_unencrypted: bool = False) -> FetchedManifest:
        """
        Retrieve and classify the manifest of an already normalized domain.

        Raises:
            FetchError: With the FailureReason of the first failed check
        """
        url = manifest_url(domain)
        client = self._ensure_client()
        start_time = time.perf_counter()

        try:
            response = await client.get(url)
        except httpx.TimeoutException as e:
            raise FetchError(
                code="timeout",
                message=f"Request timed out after {self._config.timeout}s",
                details={"url": url},
                reason=FailureReason.TIMEOUT,
            ) from e
        except httpx.ConnectError as e:
            if is_dns_failure(e):
                raise FetchError(
                    code="dns_error",
                    message=f"Could not resolve {domain}: {e}",
                    details={"url": url},
                    reason=FailureReason.BAD_DNS,
                ) from e
            raise FetchError(
                code="connect_error",
                message=f"HTTPS connection failed: {e}",
                details={"url": url},
                reason=FailureReason.HTTPS_FAILURE,
            ) from e
        except httpx.InvalidURL as e:
            raise FetchError(
                code="invalid_host",
                message=f"Not a usable host name: {domain}",
                details={"url": url},
                reason=FailureReason.BAD_DNS,
            ) from e
        except httpx.TransportError as e:
            raise FetchError(
                code="transport_error",
                message=f"HTTPS transport failed: {e}",
                details={"url": url},
                reason=FailureReason.HTTPS_FAILURE,
            ) from e

        status = response.status_code
        content_type = response.headers.get("content-type", "")

        if self._logger:
            self._logger.debug(
                self.COMPONENT,
                f"GET {url} -> {status}",
                {
                    "status": status,
                    "content_type": content_type,
                    "bytes": len(response.content),
                    "duration_ms": (time.perf_counter() - start_time) * 1000,
                },
            )

        if status >= 400:
            raise FetchError(
                code="server_error",
                message=f"Server responded with HTTP {status}",
                details={"url": url, "http_status_code": status},
                reason=FailureReason.SERVER_ERROR,
            )

        if status >= 300:
            raise FetchError(
                code="redirect",
                message=f"Redirects are not allowed (HTTP {status} to {response.headers.get('location', '?')})",
                details={"url": url, "http_status_code": status},
                reason=FailureReason.REDIRECTS,
            )

        kind = classify_content_type(content_type, allow_unencrypted)
        if kind is None:
            raise FetchError(
                code="bad_content_type",
                message=f"Unacceptable content-type {content_type!r}",
                details={
                    "url": url,
                    "http_status_code": status,
                    "content_type": content_type,
                    "allow_unencrypted": allow_unencrypted,
                },
                reason=FailureReason.BAD_CONTENT_TYPE,
            )

        return FetchedManifest(
            domain=domain,
            url=url,
            status_code=status,
            content_type=content_type,
            kind=kind,
            body=response.content,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
