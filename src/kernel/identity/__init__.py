"""
Identity Core - actor tokens and resolved actors.
"""

from src.kernel.identity.jwt import (
    ActorTokenManager,
    ActorTokenPayload,
    create_actor_token,
    verify_actor_token,
)

__all__ = [
    "ActorTokenManager",
    "ActorTokenPayload",
    "create_actor_token",
    "verify_actor_token",
]
