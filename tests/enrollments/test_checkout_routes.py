"""
E2E tests for checkout and payment webhook endpoints.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import stripe
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from learnhub.enrollments.models import Enrollment, EnrollmentStatus
from learnhub.enrollments.services.stripe_gateway import StripeGateway
from tests.utils.factories import create_enrollment_factory
from tests.utils.stripe_events import checkout_completed_event, signed_delivery


async def post_webhook(client: AsyncClient, event: dict):
    payload, signature = signed_delivery(event)
    return await client.post(
        "/api/v1/webhooks/stripe",
        content=payload,
        headers={"Stripe-Signature": signature, "Content-Type": "application/json"},
    )


@pytest.mark.asyncio
async def test_free_course_checkout_enrolls(
    db_session, test_client: AsyncClient, test_user_token, free_course
):
    with patch.object(stripe.checkout.Session, "create") as create_mock:
        response = await test_client.post(
            "/api/v1/checkout/session",
            json={"course_id": str(free_course.id)},
            cookies={"access_token": test_user_token},
        )

    assert response.status_code == 201
    data = response.json()
    assert data["free"] is True
    assert data["enrollment"]["payment_method"] == "free"
    assert float(data["enrollment"]["price"]) == 0
    create_mock.assert_not_called()


@pytest.mark.asyncio
async def test_paid_course_checkout_returns_session(
    db_session, test_client: AsyncClient, test_user_token, paid_course
):
    fake_session = MagicMock(id="cs_test_paid", url="https://checkout.stripe.com/c/cs_test_paid")

    with patch.object(stripe.checkout.Session, "create", return_value=fake_session):
        response = await test_client.post(
            "/api/v1/checkout/session",
            json={"course_id": str(paid_course.id)},
            cookies={"access_token": test_user_token},
        )

    assert response.status_code == 200
    data = response.json()
    assert data["free"] is False
    assert data["session_id"] == "cs_test_paid"
    assert data["session_url"] == "https://checkout.stripe.com/c/cs_test_paid"
    assert data["enrollment"] is None
    assert db_session.query(Enrollment).count() == 0


@pytest.mark.asyncio
async def test_checkout_with_unconfigured_gateway(
    test_app, test_client: AsyncClient, test_user_token, paid_course
):
    test_app.state.payment_gateway = StripeGateway(secret_key="", webhook_secret="")

    response = await test_client.post(
        "/api/v1/checkout/session",
        json={"course_id": str(paid_course.id)},
        cookies={"access_token": test_user_token},
    )

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "SERVICE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_checkout_when_already_enrolled(
    db_session, test_client: AsyncClient, test_user_token, test_user, paid_course
):
    create_enrollment_factory(db_session, test_user, paid_course)

    response = await test_client.post(
        "/api/v1/checkout/session",
        json={"course_id": str(paid_course.id)},
        cookies={"access_token": test_user_token},
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_checkout_body_is_validated(test_client: AsyncClient, test_user_token):
    response = await test_client.post(
        "/api/v1/checkout/session",
        json={"course_id": "not-a-uuid"},
        cookies={"access_token": test_user_token},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_webhook_creates_enrollment(
    db_session, test_client: AsyncClient, receipt_notifier, test_user, paid_course
):
    event = checkout_completed_event(test_user.id, paid_course.id, session_id="sess_1")

    response = await post_webhook(test_client, event)

    assert response.status_code == 200
    assert response.json() == {"received": True, "outcome": "created"}
    assert db_session.query(Enrollment).count() == 1
    receipt_notifier.send_receipt.assert_awaited_once()


@pytest.mark.asyncio
async def test_webhook_replay(db_session, test_client: AsyncClient, test_user, paid_course):
    event = checkout_completed_event(test_user.id, paid_course.id, session_id="sess_1")

    await post_webhook(test_client, event)
    response = await post_webhook(test_client, event)

    assert response.status_code == 200
    assert response.json()["outcome"] == "already_processed"
    assert db_session.query(Enrollment).count() == 1


@pytest.mark.asyncio
async def test_webhook_after_refund(
    db_session, test_client: AsyncClient, test_admin_token, test_user, paid_course
):
    await post_webhook(
        test_client, checkout_completed_event(test_user.id, paid_course.id, session_id="sess_1")
    )
    enrollment = db_session.query(Enrollment).one()
    refund = await test_client.post(
        f"/api/v1/enrollments/{enrollment.id}/refund",
        cookies={"access_token": test_admin_token},
    )
    assert refund.status_code == 200

    response = await post_webhook(
        test_client,
        checkout_completed_event(
            test_user.id, paid_course.id, session_id="sess_2", payment_intent="pi_2"
        ),
    )

    assert response.json()["outcome"] == "skipped_refunded"
    db_session.refresh(enrollment)
    assert enrollment.status == EnrollmentStatus.REFUNDED


@pytest.mark.asyncio
async def test_webhook_bad_signature_is_acknowledged(
    db_session, test_client: AsyncClient, test_user, paid_course
):
    payload = json.dumps(checkout_completed_event(test_user.id, paid_course.id))

    response = await test_client.post(
        "/api/v1/webhooks/stripe",
        content=payload,
        headers={"Stripe-Signature": "t=1,v1=forged"},
    )

    assert response.status_code == 200
    assert response.json()["outcome"] == "rejected"
    assert db_session.query(Enrollment).count() == 0


@pytest.mark.asyncio
async def test_webhook_store_failure_asks_for_retry(
    db_session, test_client: AsyncClient, test_user, paid_course
):
    error = OperationalError("INSERT", {}, Exception("connection reset"))
    event = checkout_completed_event(test_user.id, paid_course.id)

    with patch.object(db_session, "commit", side_effect=error):
        response = await post_webhook(test_client, event)

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "STORE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_health(test_client: AsyncClient):
    response = await test_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "database": "healthy",
        "payments_configured": True,
    }


@pytest.mark.asyncio
async def test_request_id_is_echoed(test_client: AsyncClient):
    response = await test_client.get("/health", headers={"X-Request-ID": "req-abc"})

    assert response.headers["X-Request-ID"] == "req-abc"


@pytest.mark.asyncio
async def test_request_id_is_generated(test_client: AsyncClient):
    response = await test_client.get("/health")

    request_id = response.headers["X-Request-ID"]
    assert len(request_id) == 32
    int(request_id, 16)
