"""
Bearer token handling for actors.

Tokens are issued by the external auth collaborator; this service only
verifies them. Token creation is kept for the chat bridge tooling and tests.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from src.config import get_settings


class ActorTokenPayload(BaseModel):
    """Claims carried by an actor's access token."""

    sub: str  # Actor ID (Slack user ID for participants, staff ID for reviewers)
    name: str
    role: str
    exp: datetime
    iat: datetime
    jti: str


class ActorTokenManager:
    """Signs and verifies actor access tokens."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        expire_minutes: int = 60,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm
        self.expire_minutes = expire_minutes

    def create_token(
        self,
        actor_id: str,
        name: str,
        role: str,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Create a signed access token for an actor."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": actor_id,
            "name": name,
            "role": role,
            "exp": now + (expires_delta or timedelta(minutes=self.expire_minutes)),
            "iat": now,
            "jti": str(uuid.uuid4()),
            "type": "access",
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Optional[ActorTokenPayload]:
        """
        Verify and decode an access token.

        Returns:
            ActorTokenPayload if valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
            )
            if payload.get("type") != "access":
                return None
            return ActorTokenPayload(
                sub=payload["sub"],
                name=payload.get("name") or payload["sub"],
                role=payload["role"],
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                jti=payload["jti"],
            )
        except (JWTError, KeyError):
            return None


def create_actor_token(actor_id: str, name: str, role: str) -> str:
    """Create an actor token with the configured secret."""
    return ActorTokenManager().create_token(actor_id, name, role)


def verify_actor_token(token: str) -> Optional[ActorTokenPayload]:
    """Verify an actor token with the configured secret."""
    return ActorTokenManager().verify_token(token)
