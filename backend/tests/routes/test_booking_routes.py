"""HTTP surface of the booking core: /api/v1/bookings, /availability and /pricing."""

from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict

from fastapi.testclient import TestClient
import pytest

from artspace.core.config import settings
from artspace.models.resource import Resource
from artspace.services.payment_gateway import NullPaymentGateway
from tests._utils.payment_signing import signed_callback
from tests._utils.scheduling import OTHER_ORG_ID, at, auth_headers, booking_day

RESIDENT = auth_headers("artist-1", "resident_artist")
VISITOR = auth_headers("visitor-1", "public")
OTHER_VISITOR = auth_headers("visitor-2", "public")
STAFF = auth_headers("staff-1", "staff")


def _parse(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _create(
    client: TestClient,
    resource: Resource,
    day: date,
    start: str,
    end: str,
    headers: Dict[str, str],
    participant_count: int = 1,
) -> Any:
    return client.post(
        "/api/v1/bookings",
        json={
            "resource_id": resource.id,
            "start_at": at(day, start).isoformat(),
            "end_at": at(day, end).isoformat(),
            "participant_count": participant_count,
        },
        headers=headers,
    )


@pytest.fixture
def studio(make_resource: Callable[..., Resource]) -> Resource:
    return make_resource()


@pytest.fixture
def day() -> date:
    return booking_day()


class TestCreateBookingRoute:
    def test_free_booking_is_confirmed(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        response = _create(client, studio, day, "10:00", "11:00", RESIDENT)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "CONFIRMED"
        assert body["price"] == "0.00"
        assert body["currency"] == "USD"
        assert body["booking_id"]

    def test_priced_booking_is_pending(
        self,
        client: TestClient,
        payment_gateway: NullPaymentGateway,
        studio: Resource,
        day: date,
    ) -> None:
        response = _create(client, studio, day, "10:00", "11:00", VISITOR)

        assert response.status_code == 201
        assert response.json()["status"] == "PENDING"
        assert response.json()["price"] == "50.00"
        assert [intent.booking_id for intent in payment_gateway.intents] == [
            response.json()["booking_id"]
        ]

    def test_conflict_is_a_problem_response(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        first = _create(client, studio, day, "10:00", "11:00", RESIDENT)

        response = _create(client, studio, day, "10:30", "11:30", VISITOR)

        assert response.status_code == 409
        assert response.headers["content-type"].startswith("application/problem+json")
        body = response.json()
        assert body["code"] == "SLOT_UNAVAILABLE"
        assert body["instance"] == "/api/v1/bookings"
        assert body["errors"]["conflicting_booking_ids"] == [first.json()["booking_id"]]

    def test_inverted_range_is_bad_request(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        response = _create(client, studio, day, "11:00", "10:00", RESIDENT)

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_TIME_RANGE"

    def test_zero_participants_is_bad_request(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        response = _create(client, studio, day, "10:00", "11:00", RESIDENT, participant_count=0)

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PARTICIPANT_COUNT"

    def test_unknown_resource(self, client: TestClient, day: date) -> None:
        response = client.post(
            "/api/v1/bookings",
            json={
                "resource_id": "01HNOTAREALRESOURCE0000000",
                "start_at": at(day, "10:00").isoformat(),
                "end_at": at(day, "11:00").isoformat(),
            },
            headers=RESIDENT,
        )

        assert response.status_code == 404
        assert response.json()["code"] == "RESOURCE_NOT_FOUND"

    def test_missing_identity_headers(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        response = _create(client, studio, day, "10:00", "11:00", {})

        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"

    def test_unknown_body_fields_are_rejected(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        response = client.post(
            "/api/v1/bookings",
            json={
                "resource_id": studio.id,
                "start_at": at(day, "10:00").isoformat(),
                "end_at": at(day, "11:00").isoformat(),
                "price": "0.00",
            },
            headers=VISITOR,
        )

        assert response.status_code == 422


class TestBookingLifecycleRoutes:
    def test_payment_confirmation_flow(
        self,
        client: TestClient,
        payment_gateway: NullPaymentGateway,
        studio: Resource,
        day: date,
    ) -> None:
        booking_id = _create(client, studio, day, "10:00", "11:00", VISITOR).json()["booking_id"]
        reference = payment_gateway.intents[-1].reference

        body, headers = signed_callback({"success": True, "payment_reference": reference})
        response = client.post(
            f"/api/v1/bookings/{booking_id}/confirm-payment", content=body, headers=headers
        )

        assert response.status_code == 200
        assert response.json() == {"booking_id": booking_id, "status": "CONFIRMED"}
        detail = client.get(f"/api/v1/bookings/{booking_id}", headers=VISITOR).json()
        assert detail["payment_status"] == "succeeded"
        assert detail["payment_reference"] == reference

    def test_payment_failure_is_402_and_keeps_pending(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        booking_id = _create(client, studio, day, "10:00", "11:00", VISITOR).json()["booking_id"]

        body, headers = signed_callback({"success": False, "failure_reason": "card_declined"})
        response = client.post(
            f"/api/v1/bookings/{booking_id}/confirm-payment", content=body, headers=headers
        )

        assert response.status_code == 402
        assert response.json()["code"] == "PAYMENT_FAILED"
        detail = client.get(f"/api/v1/bookings/{booking_id}", headers=VISITOR).json()
        assert detail["status"] == "PENDING"
        assert detail["payment_status"] == "failed"

    def test_unsigned_confirmation_from_booker_is_rejected(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        booking_id = _create(client, studio, day, "10:00", "11:00", VISITOR).json()["booking_id"]

        response = client.post(
            f"/api/v1/bookings/{booking_id}/confirm-payment",
            json={"success": True, "payment_reference": "i-made-this-up"},
            headers=VISITOR,
        )

        assert response.status_code == 401
        detail = client.get(f"/api/v1/bookings/{booking_id}", headers=VISITOR).json()
        assert detail["status"] == "PENDING"

    def test_confirmation_signed_with_wrong_secret_is_rejected(
        self,
        client: TestClient,
        payment_gateway: NullPaymentGateway,
        studio: Resource,
        day: date,
    ) -> None:
        booking_id = _create(client, studio, day, "10:00", "11:00", VISITOR).json()["booking_id"]
        reference = payment_gateway.intents[-1].reference

        body, headers = signed_callback(
            {"success": True, "payment_reference": reference}, secret="guessed"
        )
        response = client.post(
            f"/api/v1/bookings/{booking_id}/confirm-payment", content=body, headers=headers
        )

        assert response.status_code == 401
        detail = client.get(f"/api/v1/bookings/{booking_id}", headers=VISITOR).json()
        assert detail["status"] == "PENDING"

    def test_signed_confirmation_for_another_charge_is_409(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        booking_id = _create(client, studio, day, "10:00", "11:00", VISITOR).json()["booking_id"]

        body, headers = signed_callback({"success": True, "payment_reference": "i-made-this-up"})
        response = client.post(
            f"/api/v1/bookings/{booking_id}/confirm-payment", content=body, headers=headers
        )

        assert response.status_code == 409
        assert response.json()["code"] == "PAYMENT_REFERENCE_MISMATCH"
        detail = client.get(f"/api/v1/bookings/{booking_id}", headers=VISITOR).json()
        assert detail["status"] == "PENDING"

    def test_callbacks_refused_while_secret_unset(
        self,
        client: TestClient,
        monkeypatch: pytest.MonkeyPatch,
        studio: Resource,
        day: date,
    ) -> None:
        booking_id = _create(client, studio, day, "10:00", "11:00", VISITOR).json()["booking_id"]
        monkeypatch.setattr(settings, "payment_webhook_secret", None)

        body, headers = signed_callback({"success": True})
        response = client.post(
            f"/api/v1/bookings/{booking_id}/confirm-payment", content=body, headers=headers
        )

        assert response.status_code == 500

    def test_cancel_then_cancel_again(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        booking_id = _create(client, studio, day, "10:00", "11:00", VISITOR).json()["booking_id"]

        first = client.post(
            f"/api/v1/bookings/{booking_id}/cancel",
            json={"reason": "schedule clash"},
            headers=VISITOR,
        )
        second = client.post(f"/api/v1/bookings/{booking_id}/cancel", headers=VISITOR)

        assert first.status_code == 200
        assert first.json()["status"] == "CANCELLED"
        assert second.status_code == 422
        assert second.json()["code"] == "INVALID_STATE_TRANSITION"

    def test_cancel_by_someone_else_is_forbidden(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        booking_id = _create(client, studio, day, "10:00", "11:00", VISITOR).json()["booking_id"]

        response = client.post(f"/api/v1/bookings/{booking_id}/cancel", headers=OTHER_VISITOR)

        assert response.status_code == 403
        assert response.json()["code"] == "BOOKING_FORBIDDEN"

    def test_complete_before_end_is_rejected(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        booking_id = _create(client, studio, day, "10:00", "11:00", RESIDENT).json()["booking_id"]

        response = client.post(f"/api/v1/bookings/{booking_id}/complete", headers=STAFF)

        assert response.status_code == 422

    def test_no_show_requires_admin(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        booking_id = _create(client, studio, day, "10:00", "11:00", RESIDENT).json()["booking_id"]

        response = client.post(f"/api/v1/bookings/{booking_id}/no-show", headers=RESIDENT)

        assert response.status_code == 403

    def test_reschedule(self, client: TestClient, studio: Resource, day: date) -> None:
        booking_id = _create(client, studio, day, "10:00", "11:00", RESIDENT).json()["booking_id"]

        response = client.post(
            f"/api/v1/bookings/{booking_id}/reschedule",
            json={
                "start_at": at(day, "14:00").isoformat(),
                "end_at": at(day, "15:00").isoformat(),
            },
            headers=RESIDENT,
        )

        assert response.status_code == 200
        assert _parse(response.json()["start_at"]) == at(day, "14:00")


class TestBookingReadRoutes:
    def test_other_members_booking_looks_missing(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        booking_id = _create(client, studio, day, "10:00", "11:00", VISITOR).json()["booking_id"]

        url = f"/api/v1/bookings/{booking_id}"

        assert client.get(url, headers=OTHER_VISITOR).status_code == 404
        assert client.get(url, headers=STAFF).status_code == 200

    def test_other_organization_cannot_see_booking(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        booking_id = _create(client, studio, day, "10:00", "11:00", VISITOR).json()["booking_id"]
        headers = auth_headers("visitor-1", "public", organization_id=OTHER_ORG_ID)

        assert client.get(f"/api/v1/bookings/{booking_id}", headers=headers).status_code == 404

    def test_listing_is_limited_to_own_bookings_for_members(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        mine = _create(client, studio, day, "10:00", "11:00", VISITOR).json()["booking_id"]
        _create(client, studio, day, "12:00", "13:00", OTHER_VISITOR)

        own = client.get(
            "/api/v1/bookings", params={"requester_id": "visitor-2"}, headers=VISITOR
        ).json()
        everyone = client.get("/api/v1/bookings", headers=STAFF).json()

        assert [booking["id"] for booking in own["bookings"]] == [mine]
        assert len(everyone["bookings"]) == 2

    def test_listing_filters_by_status_and_date(
        self, client: TestClient, studio: Resource, day: date
    ) -> None:
        _create(client, studio, day, "10:00", "11:00", VISITOR)
        _create(client, studio, day, "12:00", "13:00", RESIDENT)

        response = client.get(
            "/api/v1/bookings",
            params={
                "status": ["CONFIRMED"],
                "start_date": day.isoformat(),
                "end_date": day.isoformat(),
            },
            headers=STAFF,
        )

        assert response.status_code == 200
        assert [booking["requester_id"] for booking in response.json()["bookings"]] == [
            "artist-1"
        ]


class TestAvailabilityRoute:
    def test_lists_open_slots(self, client: TestClient, studio: Resource, day: date) -> None:
        _create(client, studio, day, "10:00", "11:00", RESIDENT)

        response = client.get(
            "/api/v1/availability",
            params={
                "resource_id": studio.id,
                "start_date": day.isoformat(),
                "end_date": day.isoformat(),
            },
            headers=VISITOR,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["timezone"] == "UTC"
        starts = [_parse(slot["start"]) for slot in body["slots"]]
        assert at(day, "10:00") not in starts
        assert at(day, "09:00") in starts
        assert at(day, "11:00") in starts

    def test_inverted_range(self, client: TestClient, studio: Resource, day: date) -> None:
        response = client.get(
            "/api/v1/availability",
            params={
                "resource_id": studio.id,
                "start_date": day.isoformat(),
                "end_date": (day - timedelta(days=1)).isoformat(),
            },
            headers=VISITOR,
        )

        assert response.status_code == 400


class TestPricingRoute:
    @pytest.mark.parametrize(
        "headers, amount, free_access",
        [
            (auth_headers("m-1", "member"), "40.00", False),
            (auth_headers("v-1", "public"), "100.00", False),
            (auth_headers("a-1", "resident_artist"), "0.00", True),
        ],
    )
    def test_quote_by_role(
        self,
        client: TestClient,
        make_resource: Callable[..., Resource],
        headers: Dict[str, str],
        amount: str,
        free_access: bool,
    ) -> None:
        resource = make_resource(capacity=4)

        response = client.get(
            "/api/v1/pricing/quote",
            params={"resource_id": resource.id, "participant_count": 2},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["amount"] == amount
        assert response.json()["free_access"] is free_access

    def test_quote_rejects_zero_participants(self, client: TestClient, studio: Resource) -> None:
        response = client.get(
            "/api/v1/pricing/quote",
            params={"resource_id": studio.id, "participant_count": 0},
            headers=VISITOR,
        )

        assert response.status_code == 400

    def test_quote_rejects_more_participants_than_capacity(
        self, client: TestClient, make_resource: Callable[..., Resource]
    ) -> None:
        resource = make_resource(capacity=4)

        response = client.get(
            "/api/v1/pricing/quote",
            params={"resource_id": resource.id, "participant_count": 5},
            headers=VISITOR,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PARTICIPANT_COUNT"
