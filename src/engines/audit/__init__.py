"""
Audit Engine - automated project scoring.
"""

from src.engines.audit.audit_engine import (
    AUTOMATED_TRACKS,
    MANUAL_REVIEW_MESSAGE,
    AuditEngine,
    AuditResult,
)
from src.engines.audit.probes import ProbeFailure, REMEDIATION_MESSAGES, normalize_url
from src.engines.audit.stage_checks import FRONTEND_MARKERS, StageCheck

__all__ = [
    "AUTOMATED_TRACKS",
    "MANUAL_REVIEW_MESSAGE",
    "AuditEngine",
    "AuditResult",
    "ProbeFailure",
    "REMEDIATION_MESSAGES",
    "normalize_url",
    "FRONTEND_MARKERS",
    "StageCheck",
]
