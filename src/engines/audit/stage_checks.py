"""
Per-stage audit checks for automated tracks.

Frontend stages look for one structural marker in the fetched document.
Backend stages mix static response inspection, two derived-path probes and
fixed heuristics that need no extra round trip.
"""

import json
import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import httpx

from src.engines.audit.probes import ProbeResponse, origin_of, probe
from src.logging_config import get_logger

logger = get_logger(__name__)

PASS_SCORE = 100
MARKER_MISSING_SCORE = 20
STRUCTURAL_FAILURE_SCORE = 30
PROBE_ERROR_SCORE = 50
SLOW_RESPONSE_SCORE = 50
HEADER_LEAK_SCORE = 60
FINAL_REVIEW_SCORE = 70

LATENCY_BUDGET_MS = 1500

ADMIN_PROBE_PATH = "/api/admin"
MUTATION_PROBE_PATH = "/api/users"
INVALID_PAYLOAD = {"email": "not-an-email", "password": ""}

ENVELOPE_KEYS = ("data", "status", "success", "message")


@dataclass
class StageCheck:
    """Outcome of one stage's check."""

    name: str
    score: int
    message: str


# stage -> (check name, marker pattern, advisory when missing)
FRONTEND_MARKERS: Dict[int, Tuple[str, "re.Pattern[str]", str]] = {
    1: (
        "viewport_meta",
        re.compile(r"<meta[^>]+name\s*=\s*[\"']?viewport", re.IGNORECASE),
        "Stage 1: your page needs a responsive viewport meta tag "
        "(<meta name=\"viewport\" content=\"width=device-width, initial-scale=1\">).",
    ),
    2: (
        "navigation",
        re.compile(r"<nav\b", re.IGNORECASE),
        "Stage 2: we couldn't find a <nav> element. Wrap your site navigation in semantic <nav> markup.",
    ),
    3: (
        "form",
        re.compile(r"<form\b", re.IGNORECASE),
        "Stage 3: this stage requires a working <form> (contact, signup or search).",
    ),
    4: (
        "image_alt_text",
        re.compile(r"<img\b[^>]*\balt\s*=", re.IGNORECASE),
        "Stage 4: add images with descriptive alt text for accessibility.",
    ),
    5: (
        "script",
        re.compile(r"<script\b", re.IGNORECASE),
        "Stage 5: no JavaScript found. This stage requires interactive behaviour.",
    ),
    6: (
        "stylesheet",
        re.compile(r"@media|<link[^>]+rel\s*=\s*[\"']?stylesheet", re.IGNORECASE),
        "Stage 6: link an external stylesheet or add media queries for responsive styling.",
    ),
    7: (
        "footer",
        re.compile(r"<footer\b", re.IGNORECASE),
        "Stage 7: add a semantic <footer> to your layout.",
    ),
    8: (
        "meta_description",
        re.compile(r"<meta[^>]+name\s*=\s*[\"']?description", re.IGNORECASE),
        "Stage 8: add a <meta name=\"description\"> tag so your project is search-ready.",
    ),
}


def check_frontend_stage(stage: int, document: ProbeResponse) -> StageCheck:
    """Look for the stage's required marker. The HTTP status is not consulted."""
    name, pattern, advisory = FRONTEND_MARKERS[stage]
    if pattern.search(document.text or ""):
        return StageCheck(name=name, score=PASS_SCORE, message=f"Stage {stage} check passed.")
    return StageCheck(name=name, score=MARKER_MISSING_SCORE, message=advisory)


def _json_body(response: ProbeResponse) -> Optional[object]:
    try:
        return json.loads(response.text)
    except ValueError:
        return None


def _check_json_content_type(response: ProbeResponse) -> StageCheck:
    if response.is_json:
        return StageCheck("json_content_type", PASS_SCORE, "Stage 1 check passed: your API speaks JSON.")
    return StageCheck(
        "json_content_type",
        MARKER_MISSING_SCORE,
        "Stage 1: your base URL should respond with Content-Type: application/json.",
    )


def _check_envelope(response: ProbeResponse) -> StageCheck:
    body = _json_body(response)
    if isinstance(body, dict) and any(key in body for key in ENVELOPE_KEYS):
        return StageCheck("json_envelope", PASS_SCORE, "Stage 2 check passed: consistent response envelope.")
    return StageCheck(
        "json_envelope",
        STRUCTURAL_FAILURE_SCORE,
        "Stage 2: wrap responses in a JSON object with a 'data', 'status', 'success' or 'message' field.",
    )


def _check_cors(response: ProbeResponse) -> StageCheck:
    if "access-control-allow-origin" in response.headers:
        return StageCheck("cors_header", PASS_SCORE, "Stage 3 check passed: CORS is configured.")
    return StageCheck(
        "cors_header",
        STRUCTURAL_FAILURE_SCORE,
        "Stage 3: configure CORS so browsers can call your API (Access-Control-Allow-Origin).",
    )


async def _check_protected_route(client: httpx.AsyncClient, base_url: str) -> StageCheck:
    url = origin_of(base_url) + ADMIN_PROBE_PATH
    try:
        response = await probe(client, "GET", url)
    except httpx.HTTPError as e:
        logger.info("Protected-route probe failed", extra={"url": url, "error": str(e)})
        return StageCheck(
            "protected_route",
            STRUCTURAL_FAILURE_SCORE,
            f"Stage 4: we couldn't reach {ADMIN_PROBE_PATH} to verify it is protected.",
        )
    if response.status_code in (401, 403):
        return StageCheck("protected_route", PASS_SCORE, "Stage 4 check passed: admin routes require authorization.")
    return StageCheck(
        "protected_route",
        STRUCTURAL_FAILURE_SCORE,
        f"Stage 4: {ADMIN_PROBE_PATH} answered {response.status_code}. "
        "Unauthenticated requests must get 401 or 403.",
    )


async def _check_input_validation(client: httpx.AsyncClient, base_url: str) -> StageCheck:
    url = origin_of(base_url) + MUTATION_PROBE_PATH
    try:
        response = await probe(client, "POST", url, json=INVALID_PAYLOAD)
    except httpx.HTTPError as e:
        logger.info("Validation probe failed", extra={"url": url, "error": str(e)})
        return StageCheck(
            "input_validation",
            PROBE_ERROR_SCORE,
            f"Stage 5: we couldn't exercise {MUTATION_PROBE_PATH}; input validation was not verified.",
        )
    if 400 <= response.status_code < 500:
        return StageCheck("input_validation", PASS_SCORE, "Stage 5 check passed: invalid input is rejected.")
    return StageCheck(
        "input_validation",
        MARKER_MISSING_SCORE,
        f"Stage 5: {MUTATION_PROBE_PATH} accepted an invalid payload (status {response.status_code}). "
        "Validate request bodies and answer 4xx on bad input.",
    )


def _check_latency(response: ProbeResponse) -> StageCheck:
    if response.elapsed_ms <= LATENCY_BUDGET_MS:
        return StageCheck("latency", PASS_SCORE, "Stage 6 check passed: response time looks healthy.")
    return StageCheck(
        "latency",
        SLOW_RESPONSE_SCORE,
        f"Stage 6: your API took {int(response.elapsed_ms)} ms to respond. Look into caching or query performance.",
    )


def _check_header_hygiene(response: ProbeResponse) -> StageCheck:
    server = response.headers.get("server", "")
    leaks_version = bool(re.search(r"/\d", server))
    if "x-powered-by" not in response.headers and not leaks_version:
        return StageCheck("header_hygiene", PASS_SCORE, "Stage 7 check passed: no framework fingerprints in headers.")
    return StageCheck(
        "header_hygiene",
        HEADER_LEAK_SCORE,
        "Stage 7: remove X-Powered-By and version numbers from the Server header.",
    )


def _final_review() -> StageCheck:
    return StageCheck(
        "final_review",
        FINAL_REVIEW_SCORE,
        "Stage 8: deployment is reachable. Final documentation is reviewed by mentors.",
    )


async def check_backend_stage(
    stage: int,
    response: ProbeResponse,
    client: httpx.AsyncClient,
) -> StageCheck:
    """Run the stage's backend check against the fetched base response."""
    if stage == 1:
        return _check_json_content_type(response)
    if stage == 2:
        return _check_envelope(response)
    if stage == 3:
        return _check_cors(response)
    if stage == 4:
        return await _check_protected_route(client, response.url)
    if stage == 5:
        return await _check_input_validation(client, response.url)
    if stage == 6:
        return _check_latency(response)
    if stage == 7:
        return _check_header_hygiene(response)
    return _final_review()
