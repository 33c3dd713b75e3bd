"""
Capability enforcement - routes declare the capability they need.
"""

from fastapi import Depends, HTTPException, status

from src.api.deps import CurrentActor
from src.kernel.permissions.capabilities import Actor, Capability
from src.logging_config import get_logger

logger = get_logger(__name__)


def require_capability(capability: Capability):
    """
    Dependency that resolves the current actor and requires the given
    capability. Raises 403 if the actor's role does not grant it.

    Usage:
        @router.patch("/{submission_id}")
        async def review(actor: Actor = require_capability(Capability.REVIEW_SUBMISSION)):
            ...
    """

    async def _check(actor: CurrentActor) -> Actor:
        if not actor.can(capability):
            logger.info(
                "Capability denied",
                extra={"actor_id": actor.actor_id, "role": actor.role.value, "capability": capability.value},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Capability '{capability.value}' required",
            )
        return actor

    return Depends(_check)
