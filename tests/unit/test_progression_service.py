"""Unit tests for the transactional progression core (SQLite)."""

import uuid

import pytest
from sqlalchemy import func, select

from src.engines.certificates.renderer import CertificateRenderError
from src.kernel.models import (
    Application,
    AuditLogEntry,
    Certificate,
    Package,
    Submission,
    SubmissionStatus,
    Track,
)
from src.kernel.permissions.capabilities import resolve_actor
from src.notifications.effects import CertificateEmail, DirectMessage
from src.orchestration.errors import (
    CohortNotFound,
    DuplicateEnrollment,
    InvalidVerdict,
    NoActiveApplication,
    SubmissionNotFound,
)
from src.orchestration.progression_service import EnrollmentRequest, ProgressionService

REVIEWER = resolve_actor("rev-1", "Grace Reviewer", "reviewer")


async def record(session_maker, application, verdict, renderer=None, artifact_dir=None, **kwargs):
    async with session_maker() as session:
        async with session.begin():
            service = ProgressionService(session, renderer=renderer, artifact_dir=artifact_dir)
            return await service.record_submission(
                application_id=application.id,
                actor_id=application.slack_user_id,
                actor_display_name="Ada",
                project_link="https://ada.vercel.app",
                verdict=verdict,
                **kwargs,
            )


async def review(session_maker, submission_id, status, feedback=None, renderer=None, artifact_dir=None):
    async with session_maker() as session:
        async with session.begin():
            service = ProgressionService(session, renderer=renderer, artifact_dir=artifact_dir)
            return await service.review_submission(submission_id, status, feedback, REVIEWER)


async def reload(session_maker, model, id_):
    async with session_maker() as session:
        return await session.get(model, id_)


async def count(session_maker, model) -> int:
    async with session_maker() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


class TestRecordSubmission:
    """Audited submissions and their effect on the application."""

    @pytest.mark.asyncio
    async def test_free_stage_three_accepted_advances_without_certificate(
        self, session_maker, make_application, fake_renderer, artifact_dir
    ):
        application = await make_application(stage=3)
        outcome = await record(
            session_maker, application, SubmissionStatus.ACCEPTED,
            fake_renderer, artifact_dir, feedback="Stage 3 check passed.", score=100,
        )

        saved = await reload(session_maker, Application, application.id)
        assert saved.current_stage == 4
        assert saved.progress == 50
        assert not saved.completed
        assert saved.completed_tasks == 1
        assert outcome.submission.stage == 3
        assert outcome.submission.score == 100
        assert outcome.certificate is None
        assert await count(session_maker, Certificate) == 0
        assert [type(e) for e in outcome.effects] == [DirectMessage]
        assert "Stage 4" in outcome.effects[0].text

    @pytest.mark.asyncio
    async def test_paid_final_stage_completes_with_one_certificate(
        self, session_maker, make_application, fake_renderer, artifact_dir
    ):
        application = await make_application(stage=8, package=Package.PREMIUM)
        outcome = await record(session_maker, application, SubmissionStatus.ACCEPTED, fake_renderer, artifact_dir)

        saved = await reload(session_maker, Application, application.id)
        assert saved.completed
        assert saved.progress == 100
        assert saved.current_stage == 8
        assert saved.completed_at is not None
        assert outcome.certificate_created
        assert await count(session_maker, Certificate) == 1
        assert len(fake_renderer.rendered) == 1
        emails = [e for e in outcome.effects if isinstance(e, CertificateEmail)]
        assert len(emails) == 1
        assert emails[0].certificate_id == outcome.certificate.certificate_id
        assert emails[0].to_email == application.email

    @pytest.mark.asyncio
    async def test_free_final_stage_completes_without_certificate(
        self, session_maker, make_application, fake_renderer, artifact_dir
    ):
        application = await make_application(stage=8, package=Package.FREE)
        outcome = await record(session_maker, application, SubmissionStatus.ACCEPTED, fake_renderer, artifact_dir)

        saved = await reload(session_maker, Application, application.id)
        assert saved.completed
        assert saved.progress == 100
        assert await count(session_maker, Certificate) == 0
        assert "Upgrade" in outcome.effects[0].text

    @pytest.mark.asyncio
    async def test_needs_revision_keeps_stage(self, session_maker, make_application):
        application = await make_application(stage=2)
        outcome = await record(
            session_maker, application, SubmissionStatus.NEEDS_REVISION, feedback="Stage 2: add a <nav>.", score=20
        )
        saved = await reload(session_maker, Application, application.id)
        assert saved.current_stage == 2
        assert saved.progress == 25
        assert saved.completed_tasks == 0
        assert "add a <nav>" in outcome.effects[0].text

    @pytest.mark.asyncio
    async def test_audit_for_an_earlier_stage_does_not_move_application(
        self, session_maker, make_application
    ):
        application = await make_application(stage=4)
        outcome = await record(session_maker, application, SubmissionStatus.ACCEPTED, score=100, stage=3)

        saved = await reload(session_maker, Application, application.id)
        assert saved.current_stage == 4
        assert saved.completed_tasks == 0
        assert outcome.stale
        assert not outcome.transition.changed
        assert outcome.submission.stage == 3
        assert outcome.submission.status == "Accepted"
        assert len(outcome.effects) == 1
        assert "now on *Stage 4*" in outcome.effects[0].text

    @pytest.mark.asyncio
    async def test_audit_for_current_stage_advances(self, session_maker, make_application):
        application = await make_application(stage=4)
        outcome = await record(session_maker, application, SubmissionStatus.ACCEPTED, score=100, stage=4)
        assert not outcome.stale
        assert outcome.application.current_stage == 5

    @pytest.mark.asyncio
    async def test_resubmissions_append_new_rows(self, session_maker, make_application):
        application = await make_application(stage=2)
        await record(session_maker, application, SubmissionStatus.NEEDS_REVISION)
        await record(session_maker, application, SubmissionStatus.NEEDS_REVISION)
        await record(session_maker, application, SubmissionStatus.ACCEPTED)
        assert await count(session_maker, Submission) == 3
        saved = await reload(session_maker, Application, application.id)
        assert saved.current_stage == 3

    @pytest.mark.asyncio
    async def test_pending_verdict_queues_for_review(self, session_maker, make_application):
        application = await make_application(track=Track.DESIGN, stage=4)
        outcome = await record(session_maker, application, SubmissionStatus.PENDING)
        saved = await reload(session_maker, Application, application.id)
        assert saved.current_stage == 4
        assert outcome.submission.status == SubmissionStatus.PENDING.value
        assert "manual review" in outcome.effects[0].text

    @pytest.mark.asyncio
    async def test_completed_application_rejects_submission(self, session_maker, make_application):
        application = await make_application(stage=8, completed=True)
        with pytest.raises(NoActiveApplication):
            await record(session_maker, application, SubmissionStatus.ACCEPTED)

    @pytest.mark.asyncio
    async def test_render_failure_rolls_back_everything(
        self, session_maker, make_application, failing_renderer, artifact_dir
    ):
        application = await make_application(stage=8, package=Package.PREMIUM_PRO)
        with pytest.raises(CertificateRenderError):
            await record(session_maker, application, SubmissionStatus.ACCEPTED, failing_renderer, artifact_dir)

        saved = await reload(session_maker, Application, application.id)
        assert not saved.completed
        assert saved.progress == application.progress
        assert saved.completed_tasks == 0
        assert await count(session_maker, Submission) == 0
        assert await count(session_maker, Certificate) == 0

    @pytest.mark.asyncio
    async def test_invalid_verdict(self, session_maker, make_application):
        application = await make_application()
        with pytest.raises(InvalidVerdict):
            await record(session_maker, application, "Approved")


class TestReviewSubmission:
    """Manual verdicts, stale reviews and the review log."""

    @pytest.mark.asyncio
    async def test_manual_accept_advances_and_logs(self, session_maker, make_application):
        application = await make_application(track=Track.CONTENT_WRITING, stage=2)
        queued = await record(session_maker, application, SubmissionStatus.PENDING)

        outcome = await review(session_maker, queued.submission.id, "Accepted", "Lovely copy")

        saved = await reload(session_maker, Application, application.id)
        assert saved.current_stage == 3
        assert saved.completed_tasks == 1
        assert not outcome.stale
        assert outcome.submission.reviewed_by == REVIEWER.actor_id
        assert outcome.submission.feedback == "Lovely copy"

        async with session_maker() as session:
            entries = (await session.execute(select(AuditLogEntry))).scalars().all()
        assert len(entries) == 1
        assert entries[0].old_status == "Pending"
        assert entries[0].new_status == "Accepted"
        assert entries[0].reviewer_id == "rev-1"

    @pytest.mark.asyncio
    async def test_stale_review_only_changes_submission(self, session_maker, make_application):
        application = await make_application(track=Track.DESIGN, stage=2)
        old = await record(session_maker, application, SubmissionStatus.PENDING)
        # Stage moved on since the submission was queued
        async with session_maker() as session:
            async with session.begin():
                await ProgressionService(session).override_stage(application.id, 5)

        outcome = await review(session_maker, old.submission.id, "Accepted")

        saved = await reload(session_maker, Application, application.id)
        assert outcome.stale
        assert saved.current_stage == 5
        assert saved.completed_tasks == 0
        assert outcome.submission.status == "Accepted"

    @pytest.mark.asyncio
    async def test_reaccepting_final_submission_issues_one_certificate(
        self, session_maker, make_application, fake_renderer, artifact_dir
    ):
        application = await make_application(track=Track.DESIGN, stage=8, package=Package.PREMIUM)
        queued = await record(session_maker, application, SubmissionStatus.PENDING)

        first = await review(session_maker, queued.submission.id, "Accepted", None, fake_renderer, artifact_dir)
        second = await review(session_maker, queued.submission.id, "Accepted", None, fake_renderer, artifact_dir)

        assert first.certificate_created
        assert second.stale
        assert not second.certificate_created
        assert not any(isinstance(e, CertificateEmail) for e in second.effects)
        assert await count(session_maker, Certificate) == 1
        assert await count(session_maker, AuditLogEntry) == 2

    @pytest.mark.asyncio
    async def test_review_back_to_pending_sends_nothing(self, session_maker, make_application):
        application = await make_application(track=Track.DESIGN, stage=3)
        queued = await record(session_maker, application, SubmissionStatus.PENDING)
        outcome = await review(session_maker, queued.submission.id, "Pending")
        assert outcome.effects == []

    @pytest.mark.asyncio
    async def test_unknown_submission(self, session_maker, db_engine):
        with pytest.raises(SubmissionNotFound):
            await review(session_maker, uuid.uuid4(), "Accepted")


class TestEnrollmentAndQueries:
    """Enrollment, queues and stats."""

    @pytest.mark.asyncio
    async def test_enroll_starts_at_stage_one(self, session_maker, cohort):
        async with session_maker() as session:
            async with session.begin():
                application = await ProgressionService(session).enroll(
                    EnrollmentRequest(
                        cohort_id=cohort.id,
                        first_name="Alan",
                        last_name="Turing",
                        email="Alan@Example.com",
                        track=Track.BACKEND,
                        package=Package.PREMIUM,
                        slack_user_id="U777",
                    )
                )
        assert application.current_stage == 1
        assert application.progress == 13
        assert application.email == "alan@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_enrollment(self, session_maker, make_application, cohort):
        await make_application(email="dup@example.com")
        async with session_maker() as session:
            with pytest.raises(DuplicateEnrollment):
                await ProgressionService(session).enroll(
                    EnrollmentRequest(
                        cohort_id=cohort.id,
                        first_name="Ada",
                        last_name="Lovelace",
                        email="dup@example.com",
                        track=Track.FRONTEND,
                    )
                )

    @pytest.mark.asyncio
    async def test_enroll_unknown_cohort(self, session_maker, db_engine):
        async with session_maker() as session:
            with pytest.raises(CohortNotFound):
                await ProgressionService(session).enroll(
                    EnrollmentRequest(
                        cohort_id=uuid.uuid4(),
                        first_name="A",
                        last_name="B",
                        email="a@b.io",
                        track=Track.FRONTEND,
                    )
                )

    @pytest.mark.asyncio
    async def test_active_application_excludes_completed(self, session_maker, make_application):
        await make_application(slack_user_id="U9", completed=True, stage=8)
        async with session_maker() as session:
            assert await ProgressionService(session).find_active_application("U9") is None
        active = await make_application(slack_user_id="U9", stage=1)
        async with session_maker() as session:
            found = await ProgressionService(session).find_active_application("U9")
        assert found.id == active.id

    @pytest.mark.asyncio
    async def test_pending_queue_oldest_first(self, session_maker, make_application):
        first = await make_application(track=Track.DESIGN, slack_user_id="U1")
        second = await make_application(track=Track.DESIGN, slack_user_id="U2")
        a = await record(session_maker, first, SubmissionStatus.PENDING)
        b = await record(session_maker, second, SubmissionStatus.PENDING)
        await record(session_maker, second, SubmissionStatus.NEEDS_REVISION)

        async with session_maker() as session:
            queue = await ProgressionService(session).pending_queue()
            by_actor = await ProgressionService(session).submissions_by_actor("U2")
        assert [s.id for s in queue] == [a.submission.id, b.submission.id]
        assert len(by_actor) == 2
        assert by_actor[0].status == "Needs Revision"

    @pytest.mark.asyncio
    async def test_stats(self, session_maker, make_application):
        await make_application(package=Package.FREE)
        await make_application(package=Package.PREMIUM)
        await make_application(package=Package.PREMIUM_PRO)
        await make_application(package=Package.FREE)
        async with session_maker() as session:
            stats = await ProgressionService(session).stats()
        assert stats == {
            "total": 4,
            "paid": 2,
            "free": 2,
            "new_last_7_days": 4,
            "conversion_rate": 50.0,
        }
