"""Integration tests for /api/v1/submissions."""

import asyncio

import httpx
import pytest
from sqlalchemy import select

from src.kernel.models import Application, Package, Submission, Track
from src.notifications.effects import CertificateEmail

SUBMISSIONS = "/api/v1/submissions"


def _payload(link: str = "https://ada.example.com", actor_id: str = "U100") -> dict:
    return {"actorId": actor_id, "actorDisplayName": "Ada", "projectLink": link}


async def _only_submission(session_maker) -> Submission:
    async with session_maker() as session:
        return (await session.execute(select(Submission))).scalar_one()


class TestSubmitProject:
    @pytest.mark.asyncio
    async def test_accepted_and_audited(self, client, headers_for, make_application, session_maker, slack):
        application = await make_application(track=Track.FRONTEND)

        response = await client.post(SUBMISSIONS, json=_payload(), headers=headers_for("integration"))

        assert response.status_code == 202
        assert response.json()["stage"] == 1
        submission = await _only_submission(session_maker)
        assert submission.status == "Accepted"
        async with session_maker() as session:
            assert (await session.get(Application, application.id)).current_stage == 2
        slack.send_direct_message.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_invalid_link(self, client, headers_for, make_application):
        await make_application(track=Track.DESIGN)
        response = await client.post(
            SUBMISSIONS, json=_payload("https://github.com/ada/designs"), headers=headers_for("integration")
        )
        assert response.status_code == 400
        assert "design" in response.json()["detail"].lower()

    @pytest.mark.asyncio
    async def test_no_application(self, client, headers_for):
        response = await client.post(SUBMISSIONS, json=_payload(actor_id="U404"), headers=headers_for("integration"))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_already_processing(self, client, headers_for, make_application):
        from src.main import app

        await make_application(track=Track.FRONTEND)
        app.state.submission_lock.acquire("U100")

        response = await client.post(SUBMISSIONS, json=_payload(), headers=headers_for("integration"))
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_simultaneous_posts_yield_one_submission(
        self, client, headers_for, make_application, session_maker, audit_transport
    ):
        await make_application(track=Track.FRONTEND)
        requests = []

        async def slow_site(request):
            requests.append(request)
            await asyncio.sleep(0.2)
            return httpx.Response(200, text='<meta name="viewport" content="width=device-width">')

        audit_transport[0] = httpx.MockTransport(slow_site)

        responses = await asyncio.gather(
            client.post(SUBMISSIONS, json=_payload(), headers=headers_for("integration")),
            client.post(SUBMISSIONS, json=_payload(), headers=headers_for("integration")),
        )

        assert sorted(r.status_code for r in responses) == [202, 409]
        assert len(requests) == 1
        submission = await _only_submission(session_maker)
        assert submission.status == "Accepted"

    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.post(SUBMISSIONS, json=_payload())
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_requires_capability(self, client, headers_for):
        response = await client.post(SUBMISSIONS, json=_payload(), headers=headers_for("reviewer"))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_link_is_validation_error(self, client, headers_for):
        response = await client.post(SUBMISSIONS, json={"actorId": "U100"}, headers=headers_for("integration"))
        assert response.status_code == 422


class TestReviewSubmission:
    @pytest.mark.asyncio
    async def test_manual_review_advances(
        self, client, headers_for, make_application, session_maker, slack
    ):
        await make_application(track=Track.DESIGN)
        await client.post(
            SUBMISSIONS, json=_payload("https://www.figma.com/file/abc"), headers=headers_for("integration")
        )
        pending = await client.get(f"{SUBMISSIONS}/pending", headers=headers_for("reviewer"))
        assert pending.json()["total"] == 1
        submission_id = pending.json()["items"][0]["id"]
        slack.send_direct_message.reset_mock()

        response = await client.patch(
            f"{SUBMISSIONS}/{submission_id}",
            json={"status": "Accepted", "feedback": "Clean layout"},
            headers=headers_for("reviewer", actor_id="mentor-1"),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["updatedSubmission"]["status"] == "Accepted"
        assert body["updatedSubmission"]["reviewed_by"] == "mentor-1"
        assert body["application_stage"] == 2
        assert body["stale"] is False
        slack.send_direct_message.assert_awaited_once()

        history = await client.get(f"{SUBMISSIONS}/{submission_id}/history", headers=headers_for("reviewer"))
        assert history.status_code == 200
        assert history.json()[0]["reviewer_id"] == "mentor-1"

    @pytest.mark.asyncio
    async def test_final_stage_issues_certificate_once(
        self, client, headers_for, make_application, mailer
    ):
        await make_application(track=Track.DESIGN, package=Package.PREMIUM, stage=8)
        await client.post(
            SUBMISSIONS, json=_payload("https://www.figma.com/file/final"), headers=headers_for("integration")
        )
        pending = await client.get(f"{SUBMISSIONS}/pending", headers=headers_for("reviewer"))
        submission_id = pending.json()["items"][0]["id"]

        first = await client.patch(
            f"{SUBMISSIONS}/{submission_id}", json={"status": "Accepted"}, headers=headers_for("reviewer")
        )
        second = await client.patch(
            f"{SUBMISSIONS}/{submission_id}", json={"status": "Accepted"}, headers=headers_for("reviewer")
        )

        assert first.json()["application_completed"] is True
        certificate_id = first.json()["certificate_id"]
        assert certificate_id
        assert second.json()["stale"] is True
        mailer.send_certificate.assert_awaited_once()
        email = mailer.send_certificate.await_args.args[0]
        assert isinstance(email, CertificateEmail)
        assert email.certificate_id == certificate_id

        verify = await client.get(f"/api/v1/certificates/{certificate_id}/verify")
        assert verify.status_code == 200
        assert verify.json()["valid"] is True
        assert verify.json()["level"] == "Premium"

    @pytest.mark.asyncio
    async def test_unknown_verdict(self, client, headers_for, make_application):
        await make_application(track=Track.DESIGN)
        await client.post(
            SUBMISSIONS, json=_payload("https://www.figma.com/file/abc"), headers=headers_for("integration")
        )
        pending = await client.get(f"{SUBMISSIONS}/pending", headers=headers_for("reviewer"))
        submission_id = pending.json()["items"][0]["id"]

        response = await client.patch(
            f"{SUBMISSIONS}/{submission_id}", json={"status": "Maybe"}, headers=headers_for("reviewer")
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_submission(self, client, headers_for):
        response = await client.patch(
            f"{SUBMISSIONS}/00000000-0000-0000-0000-000000000000",
            json={"status": "Accepted"},
            headers=headers_for("reviewer"),
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_participant_cannot_review(self, client, headers_for):
        response = await client.patch(
            f"{SUBMISSIONS}/00000000-0000-0000-0000-000000000000",
            json={"status": "Accepted"},
            headers=headers_for("participant", actor_id="U100"),
        )
        assert response.status_code == 403


class TestSubmissionsByActor:
    @pytest.mark.asyncio
    async def test_own_history_visible(self, client, headers_for, make_application, audit_transport):
        await make_application(track=Track.FRONTEND)
        audit_transport[0] = httpx.MockTransport(lambda r: httpx.Response(200, text="<html></html>"))
        await client.post(SUBMISSIONS, json=_payload(), headers=headers_for("integration"))

        own = await client.get(f"{SUBMISSIONS}/by-actor/U100", headers=headers_for("participant", actor_id="U100"))
        other = await client.get(f"{SUBMISSIONS}/by-actor/U100", headers=headers_for("participant", actor_id="U200"))

        assert own.status_code == 200
        assert own.json()["items"][0]["status"] == "Needs Revision"
        assert other.status_code == 403
