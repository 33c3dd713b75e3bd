"""Unit tests for certificate issuance and rendering."""

import re
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path

import pytest
from docx import Document

from src.engines.certificates.issuer import CertificateIssuer, generate_certificate_id
from src.engines.certificates.renderer import (
    CertificateData,
    CertificateRenderError,
    DocxCertificateRenderer,
)
from src.kernel.models import Package


class TestCertificateId:
    def test_format(self):
        cert_id = generate_certificate_id(prefix="KNOW", now=datetime(2026, 3, 1, tzinfo=timezone.utc))
        assert re.fullmatch(r"KNOW-2026-[0-9A-F]{6}", cert_id)

    def test_ids_vary(self):
        assert len({generate_certificate_id() for _ in range(50)}) > 1


class TestDocxRenderer:
    def test_renders_recipient_and_id(self):
        data = CertificateData(
            certificate_id="KNOW-2026-ABC123",
            recipient_name="Ada Lovelace",
            track="Backend Development",
            level="Premium",
            issued_at=datetime(2026, 10, 18, tzinfo=timezone.utc),
        )
        content = DocxCertificateRenderer().render(data)
        text = "\n".join(p.text for p in Document(BytesIO(content)).paragraphs)
        assert "Ada Lovelace" in text
        assert "KNOW-2026-ABC123" in text
        assert "Backend Development" in text


class TestCertificateIssuer:
    @pytest.mark.asyncio
    async def test_issue_is_idempotent(self, session_maker, make_application, fake_renderer, artifact_dir):
        application = await make_application(stage=8, package=Package.PREMIUM)
        async with session_maker() as session:
            async with session.begin():
                issuer = CertificateIssuer(session, renderer=fake_renderer, artifact_dir=artifact_dir)
                first, created_first = await issuer.issue(application)
                second, created_second = await issuer.issue(application)

        assert created_first and not created_second
        assert first.id == second.id
        assert len(fake_renderer.rendered) == 1
        assert Path(first.artifact_path).read_bytes().startswith(first.certificate_id.encode())
        assert first.recipient_name == "Ada Lovelace"
        assert first.level == "Premium"

    @pytest.mark.asyncio
    async def test_render_failure_raises(self, session_maker, make_application, failing_renderer, artifact_dir):
        application = await make_application(stage=8, package=Package.PREMIUM)
        async with session_maker() as session:
            issuer = CertificateIssuer(session, renderer=failing_renderer, artifact_dir=artifact_dir)
            with pytest.raises(CertificateRenderError):
                await issuer.issue(application)
            await session.rollback()

    @pytest.mark.asyncio
    async def test_verify_lookup(self, session_maker, make_application, fake_renderer, artifact_dir):
        application = await make_application(stage=8, package=Package.PREMIUM_PRO)
        async with session_maker() as session:
            async with session.begin():
                certificate, _ = await CertificateIssuer(
                    session, renderer=fake_renderer, artifact_dir=artifact_dir
                ).issue(application)

        async with session_maker() as session:
            issuer = CertificateIssuer(session)
            found = await issuer.verify(f" {certificate.certificate_id} ")
            missing = await issuer.verify("KNOW-1999-000000")
        assert found.application_id == application.id
        assert missing is None
