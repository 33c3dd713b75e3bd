"""
Pytest fixtures for progression service tests.

Uses a temp file SQLite DB so the app, background pipelines and fixtures
all share one database.
"""

import os
import shutil
import tempfile
import uuid
from typing import AsyncGenerator, Callable, List, Optional
from unittest.mock import AsyncMock

_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
TEST_ARTIFACT_DIR = tempfile.mkdtemp(prefix="certificates-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-32chars"
os.environ["CERTIFICATE_ARTIFACT_DIR"] = TEST_ARTIFACT_DIR
os.environ["SLACK_BOT_TOKEN"] = "xoxb-test"
# Force config reload so every module sees the test settings
from src.config import get_settings
get_settings.cache_clear()

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import async_session_maker, engine
from src.engines.certificates.renderer import CertificateData
from src.kernel.identity.jwt import ActorTokenManager
from src.kernel.models import Application, Base, Cohort, Package, Track
from src.kernel.models.application import progress_for
from src.notifications.dispatcher import NotificationDispatcher
from src.notifications.mailer import CertificateMailer
from src.notifications.slack import SlackNotifier


class FakeRenderer:
    """Renderer that records what it was asked to render."""

    file_extension = "txt"

    def __init__(self):
        self.rendered: List[CertificateData] = []

    def render(self, data: CertificateData) -> bytes:
        self.rendered.append(data)
        return f"{data.certificate_id}|{data.recipient_name}".encode()


class FailingRenderer:
    """Renderer whose artwork service is down."""

    file_extension = "pdf"

    def render(self, data: CertificateData) -> bytes:
        raise RuntimeError("renderer unavailable")


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create all tables before a test and drop them after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    shutil.rmtree(TEST_ARTIFACT_DIR, ignore_errors=True)


@pytest.fixture
def session_maker(db_engine):
    return async_session_maker


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and inspecting data."""
    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def cohort(db_session: AsyncSession) -> Cohort:
    cohort = Cohort(id=uuid.uuid4(), name="Cohort 7")
    db_session.add(cohort)
    await db_session.commit()
    return cohort


@pytest.fixture
def make_application(db_session: AsyncSession, cohort: Cohort) -> Callable:
    """Factory for committed applications."""

    async def _make(
        track: Track = Track.FRONTEND,
        package: Package = Package.FREE,
        stage: int = 1,
        slack_user_id: Optional[str] = "U100",
        email: Optional[str] = None,
        completed: bool = False,
    ) -> Application:
        application = Application(
            id=uuid.uuid4(),
            cohort_id=cohort.id,
            first_name="Ada",
            last_name="Lovelace",
            email=email or f"{uuid.uuid4().hex[:8]}@example.com",
            slack_user_id=slack_user_id,
            track=track.value,
            package=package.value,
            current_stage=stage,
            progress=progress_for(stage, completed=completed),
            completed=completed,
        )
        db_session.add(application)
        await db_session.commit()
        return application

    return _make


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def failing_renderer() -> FailingRenderer:
    return FailingRenderer()


@pytest.fixture
def artifact_dir() -> str:
    return TEST_ARTIFACT_DIR


@pytest.fixture
def slack() -> AsyncMock:
    return AsyncMock(spec=SlackNotifier)


@pytest.fixture
def mailer() -> AsyncMock:
    return AsyncMock(spec=CertificateMailer)


@pytest.fixture
def dispatcher(slack: AsyncMock, mailer: AsyncMock) -> NotificationDispatcher:
    """Dispatcher whose channels are mocks."""
    return NotificationDispatcher(slack=slack, mailer=mailer)


@pytest.fixture
def html_transport() -> Callable[..., httpx.MockTransport]:
    """Factory for a transport that answers every request with one HTML page."""

    def _transport(body: str, status_code: int = 200) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, text=body, headers={"content-type": "text/html"})

        return httpx.MockTransport(handler)

    return _transport


@pytest.fixture
def token_manager() -> ActorTokenManager:
    return ActorTokenManager()


@pytest.fixture
def headers_for(token_manager: ActorTokenManager) -> Callable[[str, str], dict]:
    """Bearer headers for an actor with the given role."""

    def _headers(role: str, actor_id: str = "staff-1") -> dict:
        token = token_manager.create_token(actor_id, f"{role.title()} User", role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def audit_transport(html_transport) -> List[httpx.MockTransport]:
    """Mutable holder for the transport the app's audit engine uses."""
    return [html_transport('<html><head><meta name="viewport" content="width=device-width"></head></html>')]


@pytest_asyncio.fixture
async def client(db_engine, audit_transport, dispatcher, fake_renderer) -> AsyncGenerator[httpx.AsyncClient, None]:
    """In-process API client with mocked audit network, notifiers and renderer."""
    from src.api.deps import get_audit_engine, get_dispatcher, get_renderer
    from src.engines.audit.audit_engine import AuditEngine
    from src.main import app
    from src.orchestration.submission_lock import InMemoryKeyedLockStore, SubmissionLock

    app.dependency_overrides[get_audit_engine] = lambda: AuditEngine(
        timeout_seconds=2, transport=audit_transport[0]
    )
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_renderer] = lambda: fake_renderer
    app.state.submission_lock = SubmissionLock(InMemoryKeyedLockStore(), ttl_seconds=60)
    try:
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
