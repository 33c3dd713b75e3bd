"""
Audit Engine - automated scoring of submitted projects.

Manual-review tracks and tiers are queued without any network access.
Automated tracks get one bounded GET against the submitted URL plus, for
some backend stages, one extra probe. Network failures never raise: they
become a zero score with a remediation message.
"""

import asyncio
from typing import Optional

import httpx
from pydantic import BaseModel

from src.config import get_settings
from src.engines.audit.probes import (
    REMEDIATION_MESSAGES,
    ProbeFailure,
    build_client,
    classify_failure,
    normalize_url,
    probe,
)
from src.engines.audit.stage_checks import check_backend_stage, check_frontend_stage
from src.kernel.models.application import (
    MANUAL_REVIEW_PACKAGES,
    TOTAL_STAGES,
    Package,
    Track,
)
from src.kernel.models.submission import SubmissionStatus
from src.logging_config import get_logger

logger = get_logger(__name__)

AUTOMATED_TRACKS = frozenset({Track.FRONTEND, Track.BACKEND})

MANUAL_REVIEW_MESSAGE = (
    "Your submission has been queued for manual review. A mentor will get back to you soon."
)


class AuditResult(BaseModel):
    """Score and feedback for one submission."""

    score: Optional[int] = None
    feedback: str
    manual_review: bool = False
    check: Optional[str] = None
    status_code: Optional[int] = None
    failure: Optional[ProbeFailure] = None

    @classmethod
    def queued_for_review(cls) -> "AuditResult":
        return cls(score=None, feedback=MANUAL_REVIEW_MESSAGE, manual_review=True)

    @classmethod
    def unreachable(cls, failure: ProbeFailure) -> "AuditResult":
        return cls(score=0, feedback=REMEDIATION_MESSAGES[failure], failure=failure)


class AuditEngine:
    """
    Scores submissions for automatable tracks.

    Acceptance threshold: score >= 40 promotes automatically.
    """

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        max_redirects: Optional[int] = None,
        acceptance_threshold: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.timeout_seconds = timeout_seconds or settings.audit_timeout_seconds
        self.max_redirects = max_redirects if max_redirects is not None else settings.audit_max_redirects
        self.acceptance_threshold = (
            acceptance_threshold if acceptance_threshold is not None
            else settings.audit_acceptance_threshold
        )
        self._transport = transport

    @staticmethod
    def requires_manual_review(track: Track, package: Package) -> bool:
        """Manual tracks, and tiers that always get a mentor, skip the automated audit."""
        return Track(track) not in AUTOMATED_TRACKS or Package(package) in MANUAL_REVIEW_PACKAGES

    def is_passing(self, score: Optional[int]) -> bool:
        return score is not None and score >= self.acceptance_threshold

    def verdict_for(self, result: AuditResult) -> SubmissionStatus:
        """Map an audit result to the verdict recorded on the submission."""
        if result.manual_review:
            return SubmissionStatus.PENDING
        if self.is_passing(result.score):
            return SubmissionStatus.ACCEPTED
        return SubmissionStatus.NEEDS_REVISION

    async def audit(
        self,
        link: str,
        track: Track,
        stage: int,
        package: Package,
    ) -> AuditResult:
        """Audit a validated link for the participant's current stage."""
        if self.requires_manual_review(track, package):
            return AuditResult.queued_for_review()
        if not 1 <= stage <= TOTAL_STAGES:
            raise ValueError(f"Stage must be between 1 and {TOTAL_STAGES}, got {stage}")

        url = normalize_url(link)
        # Connect/read timeouts bound each request; the deadline bounds the
        # whole audit including any second probe.
        deadline = self.timeout_seconds * 2 + 1
        try:
            result = await asyncio.wait_for(
                self._run_checks(url, Track(track), stage),
                timeout=deadline,
            )
        except (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError) as e:
            failure = classify_failure(e)
            logger.info(
                "Audit probe failed",
                extra={"url": url, "stage": stage, "failure": failure.value, "error": str(e)},
            )
            return AuditResult.unreachable(failure)

        logger.info(
            "Audit finished",
            extra={"url": url, "stage": stage, "score": result.score, "check": result.check},
        )
        return result

    async def _run_checks(self, url: str, track: Track, stage: int) -> AuditResult:
        async with build_client(self.timeout_seconds, self.max_redirects, self._transport) as client:
            response = await probe(client, "GET", url)
            if track == Track.FRONTEND:
                check = check_frontend_stage(stage, response)
            else:
                check = await check_backend_stage(stage, response, client)
        return AuditResult(
            score=check.score,
            feedback=check.message,
            check=check.name,
            status_code=response.status_code,
        )
