"""
FastAPI dependencies for actor resolution, database sessions and services.

Collaborators (audit engine, notifier, renderer, lock, session factory)
are provided here so tests can swap them with app.dependency_overrides.
"""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.database import async_session_maker, get_db
from src.engines.audit.audit_engine import AuditEngine
from src.engines.certificates.renderer import CertificateRenderer, DocxCertificateRenderer
from src.kernel.identity.jwt import verify_actor_token
from src.kernel.permissions.capabilities import Actor, resolve_actor
from src.logging_config import actor_id_var
from src.notifications.dispatcher import NotificationDispatcher
from src.orchestration.submission_intake import SubmissionIntakeService
from src.orchestration.submission_lock import SubmissionLock


# Security scheme
security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_actor_optional(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Optional[Actor]:
    """Resolve the actor if a valid token is present, None otherwise."""
    if not credentials:
        return None
    payload = verify_actor_token(credentials.credentials)
    if not payload:
        return None
    actor_id_var.set(payload.sub)
    return resolve_actor(payload.sub, payload.name, payload.role)


async def get_current_actor(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Actor:
    """Resolve the authenticated actor or raise 401."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_actor_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    actor_id_var.set(payload.sub)
    return resolve_actor(payload.sub, payload.name, payload.role)


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
OptionalActor = Annotated[Optional[Actor], Depends(get_current_actor_optional)]


def get_request_id(request: Request) -> Optional[str]:
    """Get request correlation ID (set by RequestIdMiddleware)."""
    return getattr(request.state, "request_id", None)


def get_client_ip(request: Request) -> Optional[str]:
    """Extract client IP from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


# -- Collaborators ---------------------------------------------------------


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    return async_session_maker


def get_submission_lock(request: Request) -> SubmissionLock:
    """The process-wide lock held on app state."""
    return request.app.state.submission_lock


def get_audit_engine() -> AuditEngine:
    return AuditEngine()


def get_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher()


def get_renderer() -> CertificateRenderer:
    return DocxCertificateRenderer()


def get_intake_service(
    session_maker: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_maker)],
    lock: Annotated[SubmissionLock, Depends(get_submission_lock)],
    audit_engine: Annotated[AuditEngine, Depends(get_audit_engine)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
    renderer: Annotated[CertificateRenderer, Depends(get_renderer)],
) -> SubmissionIntakeService:
    return SubmissionIntakeService(
        session_maker=session_maker,
        lock=lock,
        audit_engine=audit_engine,
        dispatcher=dispatcher,
        renderer=renderer,
    )


Dispatcher = Annotated[NotificationDispatcher, Depends(get_dispatcher)]
Renderer = Annotated[CertificateRenderer, Depends(get_renderer)]
IntakeService = Annotated[SubmissionIntakeService, Depends(get_intake_service)]
