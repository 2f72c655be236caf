from decimal import Decimal

from fastapi.testclient import TestClient

from bookings_api.domain.entities import Actor
from bookings_api.domain.enums import ActorRole, BookingStatus, PaymentStatus
from bookings_api.domain.ports import PaymentResult
from api_helpers import InMemoryContainer, auth_header, token_for
from fakes import BOOKING_ID, CUSTOMER, OTHER_PRO, PRO, InMemoryBookingStore, make_booking


def _seed(container: InMemoryContainer, status: BookingStatus, **overrides) -> None:
    container.store = InMemoryBookingStore(make_booking(status=status, **overrides))


def test_customer_creates_booking_priced_by_pro(client: TestClient, container: InMemoryContainer) -> None:
    response = client.post(
        "/api/v1/bookings",
        json={"pro_id": PRO.user_id, "service_time": "09:30", "address": "12 Elm St"},
        headers=auth_header(CUSTOMER),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "requested"
    assert Decimal(body["price"]) == Decimal("150.00")
    assert body["payment_status"] == "UNPAID"
    assert [entry["status"] for entry in body["status_history"]] == ["requested"]
    assert container.emitter.events[0][1] == "booking_request"


def test_create_booking_rejects_client_supplied_price(client: TestClient) -> None:
    response = client.post(
        "/api/v1/bookings",
        json={"pro_id": PRO.user_id, "price": "1.00"},
        headers=auth_header(CUSTOMER),
    )

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_missing_token_is_unauthorized(client: TestClient) -> None:
    response = client.post(f"/api/v1/bookings/{BOOKING_ID}/accept")

    assert response.status_code == 401


def test_token_signed_with_other_secret_is_unauthorized(client: TestClient) -> None:
    token = token_for(PRO, secret="someone-else")

    response = client.post(
        f"/api/v1/bookings/{BOOKING_ID}/accept",
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 401


def test_token_with_unknown_role_is_forbidden(client: TestClient) -> None:
    token = token_for(Actor(user_id="admin-1", role=ActorRole.PRO), role="admin")

    response = client.get(
        f"/api/v1/bookings/{BOOKING_ID}",
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 403


def test_invalid_booking_id_is_bad_request(client: TestClient) -> None:
    response = client.post("/api/v1/bookings/not-a-uuid/accept", headers=auth_header(PRO))

    assert response.status_code == 400
    assert response.json()["code"] == "BAD_REQUEST"


def test_pro_accepts_then_duplicate_accept_conflicts(client: TestClient, container: InMemoryContainer) -> None:
    _seed(container, BookingStatus.REQUESTED)

    first = client.post(f"/api/v1/bookings/{BOOKING_ID}/accept", headers=auth_header(PRO))
    second = client.post(f"/api/v1/bookings/{BOOKING_ID}/accept", headers=auth_header(PRO))

    assert first.status_code == 200
    assert first.json()["status"] == "accepted"
    assert first.json()["accepted_at"] is not None
    assert second.status_code == 409
    assert second.json()["code"] == "INVALID_TRANSITION"
    assert second.json()["current_status"] == "accepted"
    assert "X-Request-ID" in second.headers


def test_unassigned_pro_is_forbidden(client: TestClient, container: InMemoryContainer) -> None:
    _seed(container, BookingStatus.REQUESTED)

    response = client.post(f"/api/v1/bookings/{BOOKING_ID}/accept", headers=auth_header(OTHER_PRO))

    assert response.status_code == 403
    assert container.store.row().status == BookingStatus.REQUESTED


def test_unknown_booking_is_not_found(client: TestClient) -> None:
    response = client.get(f"/api/v1/bookings/{BOOKING_ID}", headers=auth_header(CUSTOMER))

    assert response.status_code == 404


def test_legacy_status_is_reported_canonically(client: TestClient, container: InMemoryContainer) -> None:
    _seed(container, BookingStatus.PRO_EN_ROUTE)

    response = client.get(f"/api/v1/bookings/{BOOKING_ID}", headers=auth_header(CUSTOMER))

    assert response.status_code == 200
    assert response.json()["status"] == "on_the_way"


def test_status_patch_completes_with_final_price(client: TestClient, container: InMemoryContainer) -> None:
    _seed(container, BookingStatus.IN_PROGRESS)

    response = client.patch(
        f"/api/v1/bookings/{BOOKING_ID}/status",
        json={"next_status": "COMPLETED", "final_price": "175.00"},
        headers=auth_header(PRO),
    )

    assert response.status_code == 200
    assert response.json()["status"] == "awaiting_payment"
    assert Decimal(response.json()["price"]) == Decimal("175.00")


def test_status_patch_rejects_final_price_outside_completion(
    client: TestClient, container: InMemoryContainer
) -> None:
    _seed(container, BookingStatus.ACCEPTED)

    response = client.patch(
        f"/api/v1/bookings/{BOOKING_ID}/status",
        json={"next_status": "ON_THE_WAY", "final_price": "175.00"},
        headers=auth_header(PRO),
    )

    assert response.status_code == 400
    assert container.store.row().status == BookingStatus.ACCEPTED


def test_customer_cancels_requested_booking(client: TestClient, container: InMemoryContainer) -> None:
    _seed(container, BookingStatus.REQUESTED)

    response = client.post(f"/api/v1/bookings/{BOOKING_ID}/cancel", headers=auth_header(CUSTOMER))

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert container.emitter.events[0][0] == PRO.user_id


def test_authorize_returns_client_secret(client: TestClient, container: InMemoryContainer) -> None:
    _seed(container, BookingStatus.ACCEPTED)

    response = client.post(f"/api/v1/bookings/{BOOKING_ID}/authorize", headers=auth_header(CUSTOMER))

    assert response.status_code == 200
    body = response.json()
    assert body["amount"] == 15000
    assert body["client_secret"] == "pi_1_secret_abc"
    assert body["reused"] is False
    assert container.store.row().payment_intent_id == "pi_1"


def test_authorize_before_acceptance_is_conflict(client: TestClient, container: InMemoryContainer) -> None:
    _seed(container, BookingStatus.REQUESTED)

    response = client.post(f"/api/v1/bookings/{BOOKING_ID}/authorize", headers=auth_header(CUSTOMER))

    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_STATE"
    assert response.json()["current_status"] == "requested"


def test_provider_rejection_is_bad_gateway(client: TestClient, container: InMemoryContainer) -> None:
    _seed(container, BookingStatus.AWAITING_PAYMENT)
    container.gateway.create_result = PaymentResult(
        success=False, status="FAILED", error_message="Your card was declined."
    )

    response = client.post(f"/api/v1/bookings/{BOOKING_ID}/pay", headers=auth_header(CUSTOMER))

    assert response.status_code == 502
    assert response.json()["message"] == "Your card was declined."


def test_payment_endpoints_unavailable_without_provider(api_settings) -> None:
    from bookings_api.api.app import create_app

    container = InMemoryContainer(payments_enabled=False)
    _seed(container, BookingStatus.AWAITING_PAYMENT)

    with TestClient(create_app(api_settings, container=container)) as test_client:
        response = test_client.post(
            f"/api/v1/bookings/{BOOKING_ID}/pay", headers=auth_header(CUSTOMER)
        )

    assert response.status_code == 503
    assert response.json()["code"] == "PAYMENT_UNAVAILABLE"
    assert container.store.row().payment_status == PaymentStatus.UNPAID


def test_authentication_not_configured_is_unavailable(container: InMemoryContainer) -> None:
    from bookings_api.api.app import create_app
    from bookings_api.shared.config.settings import Settings

    unconfigured = Settings(_env_file=None, JWT_SECRET="")
    with TestClient(create_app(unconfigured, container=container)) as test_client:
        response = test_client.get(f"/api/v1/bookings/{BOOKING_ID}", headers=auth_header(CUSTOMER))

    assert response.status_code == 503
