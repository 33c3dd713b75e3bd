"""
Link Validator - local classification of a submitted project link.

Runs without network access and never touches the database. An invalid
result means no submission is recorded.
"""

import ipaddress
import re
from enum import Enum
from typing import Optional, Tuple
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel

from src.kernel.models.application import Track, TrackFamily, track_family


class LinkStatus(str, Enum):
    """Outcome of link validation."""
    VALID = "valid"
    INVALID = "invalid"
    WARNING = "warning"


class LinkValidationResult(BaseModel):
    """Result of validating one link for one track."""

    status: LinkStatus
    normalized_link: Optional[str] = None
    error: Optional[str] = None
    warning: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.status != LinkStatus.INVALID


DESIGN_DOMAINS: Tuple[str, ...] = (
    "figma.com",
    "framer.com",
    "canva.com",
    "xd.adobe.com",
)

DOCUMENT_DOMAINS: Tuple[str, ...] = (
    "docs.google.com",
    "drive.google.com",
    "notion.so",
    "notion.site",
    "dropbox.com",
    "onedrive.live.com",
    "1drv.ms",
)

LOOPBACK_NAMES = frozenset({"localhost", "0.0.0.0", "ip6-localhost", "ip6-loopback"})

# /view, /edit, /preview (optionally followed by more path or a query)
VIEW_EDIT_SEGMENT = re.compile(r"/(view|edit|preview)(/|$)", re.IGNORECASE)


def _host_matches(host: str, domains: Tuple[str, ...]) -> bool:
    return any(host == d or host.endswith("." + d) for d in domains)


def _is_private_host(host: str) -> bool:
    """True for loopback names and private, link-local or reserved IP literals."""
    if host in LOOPBACK_NAMES or host.endswith(".localhost"):
        return True
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return False
    return (
        ip.is_loopback
        or ip.is_private
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_unspecified
    )


class LinkValidator:
    """
    Track-aware link validation.

    - Every track: absolute http(s) URL with a real hostname
    - Design: design-tool domain
    - Content: document-sharing domain; missing view/edit segment is a warning
    - Engineering: publicly deployed host (no loopback/private networks)
    """

    MAX_LINK_LENGTH = 2048

    @classmethod
    def validate(cls, link: str, track: Track) -> LinkValidationResult:
        """Validate a link for the given track."""
        candidate = (link or "").strip()
        if not candidate:
            return cls._invalid("Please provide a project link.")
        if len(candidate) > cls.MAX_LINK_LENGTH:
            return cls._invalid("That link is too long to be a project URL.")

        try:
            parts = urlsplit(candidate)
            # Accessing .port raises ValueError for malformed ports
            parts.port
        except ValueError:
            return cls._invalid("That doesn't look like a valid URL.")
        try:
            # The audit client must be able to request whatever is accepted here
            httpx.URL(candidate)
        except httpx.InvalidURL:
            return cls._invalid("That doesn't look like a valid URL.")

        if parts.scheme.lower() not in ("http", "https"):
            return cls._invalid(
                "Please provide a full URL starting with http:// or https://"
            )

        host = (parts.hostname or "").lower().rstrip(".")
        if len(host) < 3:
            return cls._invalid("That URL is missing a valid hostname.")

        family = track_family(track)
        if family == TrackFamily.DESIGN:
            return cls._validate_design(candidate, host)
        if family == TrackFamily.CONTENT:
            return cls._validate_document(candidate, host, parts.path)
        if family == TrackFamily.ENGINEERING:
            return cls._validate_deployment(candidate, host)
        return LinkValidationResult(status=LinkStatus.VALID, normalized_link=candidate)

    @classmethod
    def _validate_design(cls, link: str, host: str) -> LinkValidationResult:
        if not _host_matches(host, DESIGN_DOMAINS):
            return cls._invalid(
                "Design submissions must be shared from a design tool "
                f"({', '.join(DESIGN_DOMAINS)})."
            )
        return LinkValidationResult(status=LinkStatus.VALID, normalized_link=link)

    @classmethod
    def _validate_document(cls, link: str, host: str, path: str) -> LinkValidationResult:
        if not _host_matches(host, DOCUMENT_DOMAINS):
            return cls._invalid(
                "Please share your work as a document link "
                f"({', '.join(DOCUMENT_DOMAINS)})."
            )
        if not VIEW_EDIT_SEGMENT.search(path or ""):
            return LinkValidationResult(
                status=LinkStatus.WARNING,
                normalized_link=link,
                warning=(
                    "Your link has no /view or /edit part. Make sure sharing is set "
                    "to 'Anyone with the link' so reviewers can open it."
                ),
            )
        return LinkValidationResult(status=LinkStatus.VALID, normalized_link=link)

    @classmethod
    def _validate_deployment(cls, link: str, host: str) -> LinkValidationResult:
        if _is_private_host(host):
            return cls._invalid(
                "Local or private-network URLs can't be reviewed. "
                "Deploy your project (Vercel, Netlify, Render...) and submit the public URL."
            )
        if "." not in host and ":" not in host:
            return cls._invalid("Please submit the public URL of your deployed project.")
        return LinkValidationResult(status=LinkStatus.VALID, normalized_link=link)

    @staticmethod
    def _invalid(message: str) -> LinkValidationResult:
        return LinkValidationResult(status=LinkStatus.INVALID, error=message)


def validate_link(link: str, track: Track) -> LinkValidationResult:
    """Module-level shortcut for LinkValidator.validate."""
    return LinkValidator.validate(link, track)
