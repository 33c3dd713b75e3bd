"""
Capability sets per role.

Roles are resolved once at the API boundary into an Actor carrying the
actions it may perform; services take the Actor instead of re-deriving roles.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet


class ActorRole(str, Enum):
    """Roles asserted by the external auth collaborator."""

    PARTICIPANT = "participant"
    REVIEWER = "reviewer"
    ADMIN = "admin"
    # Chat bridge and payment webhook service accounts
    INTEGRATION = "integration"


class Capability(str, Enum):
    """Actions the core exposes."""

    SUBMIT_PROJECT = "submit_project"
    REVIEW_SUBMISSION = "review_submission"
    VIEW_REVIEW_HISTORY = "view_review_history"
    ENROLL_PARTICIPANT = "enroll_participant"
    OVERRIDE_PROGRESS = "override_progress"
    VIEW_STATS = "view_stats"


ROLE_CAPABILITIES: Dict[ActorRole, FrozenSet[Capability]] = {
    ActorRole.PARTICIPANT: frozenset(),
    ActorRole.REVIEWER: frozenset({
        Capability.REVIEW_SUBMISSION,
        Capability.VIEW_REVIEW_HISTORY,
    }),
    ActorRole.ADMIN: frozenset(Capability),
    ActorRole.INTEGRATION: frozenset({
        Capability.SUBMIT_PROJECT,
        Capability.ENROLL_PARTICIPANT,
    }),
}


@dataclass(frozen=True)
class Actor:
    """Authenticated party with its resolved capabilities."""

    actor_id: str
    display_name: str
    role: ActorRole
    capabilities: FrozenSet[Capability] = field(default_factory=frozenset)

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities


def resolve_actor(actor_id: str, display_name: str, role: str) -> Actor:
    """
    Build an Actor from asserted identity claims.

    Unknown roles resolve to an empty capability set rather than an error,
    so a stale token can still reach public endpoints.
    """
    try:
        actor_role = ActorRole(role)
    except ValueError:
        return Actor(actor_id=actor_id, display_name=display_name, role=ActorRole.PARTICIPANT)
    return Actor(
        actor_id=actor_id,
        display_name=display_name,
        role=actor_role,
        capabilities=ROLE_CAPABILITIES[actor_role],
    )
