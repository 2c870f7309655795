##pytest services/feedback/tests/test_feedback_api.py -q

import asyncio
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from libs.db import get_db
from models.feedback import FeedbackSubmission
from models.operator import Operator
from models.pending_entry import PendingEntry
from services.feedback.main import app, get_directory, get_dispatcher

pytestmark = pytest.mark.integration

SUBMISSION = {
    "anonymous": False,
    "reporter_name": "Ada Obi",
    "reporter_email": "ada@example.com",
    "feedback_type": "complaint",
    "facility_name": "Hope Clinic",
    "facility_region": "Lagos",
    "facility_sub_region": "Ikeja",
    "facility_type": "private",
    "description": "Waited six hours without triage.",
}


@pytest.fixture
def api_sessions(api_engine):
    return async_sessionmaker(bind=api_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def operators(api_sessions):
    """Seed one operator per access case and return their ids by label."""
    rows = {
        "moderator": Operator(id=uuid.uuid4(), email="moderator@example.org", role="moderator"),
        "admin": Operator(id=uuid.uuid4(), email="admin@example.org", role="admin"),
        "viewer": Operator(id=uuid.uuid4(), email="viewer@example.org", role="viewer"),
        "inactive": Operator(
            id=uuid.uuid4(), email="former@example.org", role="admin", is_active=False
        ),
    }

    async def _seed():
        async with api_sessions() as session:
            session.add_all(rows.values())
            await session.commit()

    asyncio.run(_seed())
    return {label: str(row.id) for label, row in rows.items()}


@pytest.fixture
def client(api_sessions, fake_directory, dispatcher):
    async def override_get_db():
        async with api_sessions() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_directory] = lambda: fake_directory
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    yield TestClient(app)
    app.dependency_overrides.clear()


def first_pending_entry_id(api_sessions) -> str:
    async def _load():
        async with api_sessions() as session:
            result = await session.execute(select(PendingEntry.id))
            return result.scalars().first()

    return str(asyncio.run(_load()))


def survey_token_for(api_sessions, feedback_id: str) -> str:
    async def _load():
        async with api_sessions() as session:
            submission = await session.get(FeedbackSubmission, uuid.UUID(feedback_id))
            return submission.survey_token

    return asyncio.run(_load())


# ========== Test Cases ==========


def test_health_endpoint(client):
    """Test health endpoint returns service name"""
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "service": "feedback"}


def test_submit_feedback(client):
    """Test submit feedback"""
    r = client.post("/v1/feedback/submit", json=SUBMISSION)
    assert r.status_code == 201
    data = r.json()
    assert data["reference_code"].startswith("FB-")
    assert data["status"] == "new"
    assert data["pending_entries_created"] == 1
    assert data["notifications"]["confirmation_sent"] is True
    assert data["notifications"]["admin_notified"] is True


def test_submit_counts_business_metric(client):
    """Test submit counts business metric"""
    client.post("/v1/feedback/submit", json=SUBMISSION)

    metrics = client.get("/metrics").text
    assert 'feedback_submissions_total{feedback_type="complaint"}' in metrics


@pytest.mark.parametrize(
    "override",
    [
        {"description": "   "},
        {"reporter_email": "not-an-email"},
        {"feedback_type": "praise"},
        {"severity": 9},
        {"reporter_type": "doctor"},
    ],
)
def test_submit_rejects_invalid_payload(client, override):
    """Test submit rejects invalid payload"""
    r = client.post("/v1/feedback/submit", json={**SUBMISSION, **override})
    assert r.status_code == 422
    body = r.json()
    assert body["success"] is False
    assert body["error"]["code"] == "VALIDATION_ERROR"


def test_errors_are_counted_by_code(client):
    """Test errors are counted by code"""
    client.get("/v1/feedback/FB-20240101-XXXXX/status")

    registry = app.state.metrics.registry
    count = registry.get_sample_value("domain_errors_total", {"service": "feedback", "code": "NOT_FOUND"})
    assert count is not None and count >= 1


def test_status_lookup_is_case_insensitive(client):
    """Test status lookup is case insensitive"""
    code = client.post("/v1/feedback/submit", json=SUBMISSION).json()["reference_code"]

    r = client.get(f"/v1/feedback/{code.lower()}/status")
    assert r.status_code == 200
    data = r.json()
    assert data["reference_code"] == code
    assert data["status"] == "new"
    assert data["feedback_type"] == "complaint"


def test_unknown_reference_code_is_structured_404(client):
    """Test unknown reference code is structured 404"""
    r = client.get("/v1/feedback/FB-20240101-XXXXX/status")
    assert r.status_code == 404
    assert r.json() == {
        "success": False,
        "error": {"code": "NOT_FOUND", "message": "Feedback not found"},
    }


@pytest.mark.parametrize("who", [None, "viewer", "inactive", "not-a-uuid"])
def test_operator_routes_require_elevated_operator(client, operators, who):
    """Test operator routes require elevated operator"""
    headers = {}
    if who is not None:
        headers["X-Operator-Id"] = operators.get(who, who)

    r = client.post(
        f"/v1/pending-entries/{uuid.uuid4()}/resolve",
        json={"decision": "approved"},
        headers=headers,
    )
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "FORBIDDEN"


def test_moderator_approves_facility(client, operators, api_sessions, fake_directory):
    """Test moderator approves facility"""
    client.post("/v1/feedback/submit", json=SUBMISSION)
    entry_id = first_pending_entry_id(api_sessions)

    r = client.post(
        f"/v1/pending-entries/{entry_id}/resolve",
        json={"decision": "approved"},
        headers={"X-Operator-Id": operators["moderator"]},
    )
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "approved"
    assert data["approved_by"] == "moderator@example.org"
    assert data["promotion"] == "promoted"
    assert [f.name for f in fake_directory.inserted] == ["Hope Clinic"]

    flip = client.post(
        f"/v1/pending-entries/{entry_id}/resolve",
        json={"decision": "rejected"},
        headers={"X-Operator-Id": operators["admin"]},
    )
    assert flip.status_code == 409
    assert flip.json()["error"]["code"] == "INVALID_TRANSITION"


def test_resolve_unknown_entry(client, operators):
    """Test resolve unknown entry"""
    r = client.post(
        f"/v1/pending-entries/{uuid.uuid4()}/resolve",
        json={"decision": "rejected"},
        headers={"X-Operator-Id": operators["admin"]},
    )
    assert r.status_code == 404


def test_close_feedback_notifies_once(client, operators, notification_factory):
    """Test close feedback notifies once"""
    feedback_id = client.post("/v1/feedback/submit", json=SUBMISSION).json()["feedback_id"]
    notification_factory.email.calls.clear()
    headers = {"X-Operator-Id": operators["admin"]}

    r = client.patch(
        f"/v1/feedback/{feedback_id}/status",
        json={"status": "closed", "admin_notes": "Escalated to facility board"},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json()["previous_status"] == "new"
    assert r.json()["case_closed_sent"] is True

    again = client.patch(f"/v1/feedback/{feedback_id}/status", json={"status": "closed"}, headers=headers)
    assert again.status_code == 200
    assert again.json()["case_closed_sent"] is None
    assert len(notification_factory.email.calls) == 1

    reopen = client.patch(
        f"/v1/feedback/{feedback_id}/status", json={"status": "in_review"}, headers=headers
    )
    assert reopen.status_code == 409


def test_survey_flow(client, api_sessions):
    """Test survey validate and submit flow"""
    feedback_id = client.post("/v1/feedback/submit", json=SUBMISSION).json()["feedback_id"]
    token = survey_token_for(api_sessions, feedback_id)

    r = client.get("/v1/survey/validate", params={"token": token})
    assert r.status_code == 200
    assert r.json() == {"valid": True, "already_submitted": False, "feedback_id": feedback_id}

    r = client.post("/v1/survey/submit", json={"token": token, "overall_satisfaction": 4})
    assert r.status_code == 201
    assert r.json()["feedback_id"] == feedback_id

    again = client.post("/v1/survey/submit", json={"token": token, "overall_satisfaction": 1})
    assert again.status_code == 400
    assert again.json()["error"]["code"] == "ALREADY_SUBMITTED"

    r = client.get("/v1/survey/validate", params={"token": token})
    assert r.json()["already_submitted"] is True


def test_survey_unknown_token(client):
    """Test survey unknown token"""
    r = client.post("/v1/survey/submit", json={"token": "0" * 32})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_TOKEN"

    r = client.get("/v1/survey/validate", params={"token": "0" * 32})
    assert r.json()["valid"] is False
