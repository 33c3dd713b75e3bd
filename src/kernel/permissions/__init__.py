"""
Permission Core - role to capability resolution.
"""

from src.kernel.permissions.capabilities import (
    Actor,
    ActorRole,
    Capability,
    ROLE_CAPABILITIES,
    resolve_actor,
)

__all__ = [
    "Actor",
    "ActorRole",
    "Capability",
    "ROLE_CAPABILITIES",
    "resolve_actor",
]
