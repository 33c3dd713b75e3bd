"""
HTTP probes used by the automated audit.

Probes never raise for HTTP status codes: redirects, 4xx and 5xx are data.
Transport failures are raised as httpx errors and classified by the caller
with classify_failure().
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
from urllib.parse import urlsplit

import httpx

DEFAULT_SCHEME = "https://"

USER_AGENT = "internship-audit-bot/1.0"

# Bodies past this size are truncated before the stage checks run
MAX_BODY_BYTES = 2 * 1024 * 1024

_DNS_ERROR_HINTS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo",
    "no address associated",
    "temporary failure in name resolution",
    "name resolution",
)


class ProbeFailure(str, Enum):
    """Why a probe produced no response."""
    TIMEOUT = "timeout"
    UNREACHABLE = "unreachable"
    NOT_FOUND = "not_found"


REMEDIATION_MESSAGES = {
    ProbeFailure.TIMEOUT: (
        "Your project took too long to respond. If it's on a free hosting tier it may "
        "be asleep: open it in a browser to wake it up, then resubmit."
    ),
    ProbeFailure.UNREACHABLE: (
        "We couldn't connect to your project. Check that the deployment is live and "
        "publicly accessible, then resubmit."
    ),
    ProbeFailure.NOT_FOUND: (
        "We couldn't find that host. Double-check the URL for typos and make sure the "
        "domain points at your deployment."
    ),
}


@dataclass
class ProbeResponse:
    """Snapshot of one probe's response."""

    url: str
    status_code: int
    headers: httpx.Headers
    text: str
    elapsed_ms: float

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "").lower()

    @property
    def is_json(self) -> bool:
        return "json" in self.content_type


def normalize_url(link: str) -> str:
    """Trim the link and apply the default scheme when none is present."""
    candidate = link.strip()
    if "://" not in candidate:
        candidate = DEFAULT_SCHEME + candidate.lstrip("/")
    return candidate


def origin_of(url: str) -> str:
    """scheme://host[:port] of a URL."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def classify_failure(exc: BaseException) -> ProbeFailure:
    """Map a transport error to the remediation category shown to the participant."""
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return ProbeFailure.TIMEOUT
    if isinstance(exc, httpx.InvalidURL):
        return ProbeFailure.NOT_FOUND
    message = str(exc).lower()
    if isinstance(exc, httpx.ConnectError) and any(h in message for h in _DNS_ERROR_HINTS):
        return ProbeFailure.NOT_FOUND
    return ProbeFailure.UNREACHABLE


async def probe(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    **kwargs: Any,
) -> ProbeResponse:
    """
    Issue one request and capture its response and latency.

    The body is streamed and read up to MAX_BODY_BYTES.
    """
    start = time.perf_counter()
    async with client.stream(method, url, **kwargs) as response:
        body = bytearray()
        async for chunk in response.aiter_bytes():
            body.extend(chunk)
            if len(body) >= MAX_BODY_BYTES:
                del body[MAX_BODY_BYTES:]
                break
        elapsed_ms = (time.perf_counter() - start) * 1000
        try:
            text = bytes(body).decode(response.charset_encoding or "utf-8", errors="replace")
        except LookupError:
            text = bytes(body).decode("utf-8", errors="replace")
        return ProbeResponse(
            url=str(response.url),
            status_code=response.status_code,
            headers=response.headers,
            text=text,
            elapsed_ms=round(elapsed_ms, 1),
        )


def build_client(
    timeout_seconds: float,
    max_redirects: int,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Client for audit probes: bounded timeout, capped redirects."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds),
        follow_redirects=True,
        max_redirects=max_redirects,
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    )
