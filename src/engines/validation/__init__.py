"""
Validation Engine - track-aware project link validation.

Rules by track family:
1. Every track - absolute http(s) URL with a real hostname
2. Design - design-tool domains only
3. Content - document-sharing domains; no view/edit segment is a warning
4. Engineering - public deployments only (no loopback or private networks)
"""

from src.engines.validation.link_validator import (
    DESIGN_DOMAINS,
    DOCUMENT_DOMAINS,
    LinkStatus,
    LinkValidationResult,
    LinkValidator,
    validate_link,
)

__all__ = [
    "DESIGN_DOMAINS",
    "DOCUMENT_DOMAINS",
    "LinkStatus",
    "LinkValidationResult",
    "LinkValidator",
    "validate_link",
]
