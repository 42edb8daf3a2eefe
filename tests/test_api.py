"""API endpoints through the FastAPI test client"""
import pytest
from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4


def _create_property(client, headers, property_id=None):
    """Room type rt-<pid> with rooms 101 and 102; returns (property_id, room ids by number)"""
    property_id = property_id or f"prop-{uuid4().hex[:8]}"
    response = client.post(
        f"/api/properties/{property_id}/room-types",
        json={"room_type_id": f"rt-{property_id}", "name": "Standard", "max_occupancy": 2, "base_rate": "100.00"},
        headers=headers
    )
    assert response.status_code == 201
    room_ids = {}
    for number in ("101", "102"):
        response = client.post(
            f"/api/properties/{property_id}/rooms",
            json={"room_number": number, "room_type_id": f"rt-{property_id}", "floor": 1},
            headers=headers
        )
        assert response.status_code == 201
        room_ids[number] = response.json()["room_id"]
    return property_id, room_ids


def _create_reservation(client, headers, property_id, room_id=None, total_amount=None, arrival=None, nights=2):
    arrival = arrival or date.today()
    payload = {
        "guest_id": str(uuid4()),
        "property_id": property_id,
        "room_type_id": f"rt-{property_id}",
        "arrival_date": arrival.isoformat(),
        "departure_date": (arrival + timedelta(days=nights)).isoformat(),
        "adults": 1,
        "room_id": room_id,
    }
    if total_amount is not None:
        payload["total_amount"] = total_amount
    response = client.post("/api/reservations", json=payload, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()


# ============================================================================
# HEALTH & AUTH
# ============================================================================

class TestHealthAndAuth:
    """Health check and login"""

    @pytest.mark.api
    @pytest.mark.integration
    def test_health_check(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.api
    @pytest.mark.integration
    def test_login_success(self, client):
        response = client.post("/token", data={"username": "admin", "password": "admin123"})
        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"

    @pytest.mark.api
    @pytest.mark.integration
    def test_login_wrong_password(self, client):
        response = client.post("/token", data={"username": "admin", "password": "nope"})
        assert response.status_code == 401

    @pytest.mark.api
    @pytest.mark.integration
    def test_users_me(self, client, frontdesk_headers):
        response = client.get("/users/me", headers=frontdesk_headers)
        assert response.status_code == 200
        assert response.json()["role"] == "front_desk_staff"
        assert response.json()["property_id"] == "prop-demo"

    @pytest.mark.api
    @pytest.mark.integration
    def test_requires_token(self, client):
        response = client.get(f"/api/reservations/{uuid4()}")
        assert response.status_code == 401

    @pytest.mark.api
    @pytest.mark.integration
    def test_invalid_token(self, client):
        response = client.get("/users/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


# ============================================================================
# ROOMS & RESERVATIONS
# ============================================================================

class TestRoomAndReservationEndpoints:
    """Reference data, intake and lookups"""

    @pytest.mark.api
    @pytest.mark.integration
    def test_rooms_listed_by_number(self, client, auth_headers):
        property_id, _ = _create_property(client, auth_headers)
        response = client.get(f"/api/properties/{property_id}/rooms", headers=auth_headers)
        assert [r["room_number"] for r in response.json()] == ["101", "102"]

        response = client.get(f"/api/properties/{property_id}/room-types", headers=auth_headers)
        assert [t["name"] for t in response.json()] == ["Standard"]

    @pytest.mark.api
    @pytest.mark.integration
    def test_create_and_fetch_reservation(self, client, auth_headers):
        property_id, room_ids = _create_property(client, auth_headers)
        created = _create_reservation(client, auth_headers, property_id, room_id=room_ids["101"])

        assert created["status"] == "confirmed"
        assert created["nights"] == 2
        assert Decimal(str(created["total_amount"])) == Decimal("200.00")

        response = client.get(f"/api/reservations/{created['reservation_id']}", headers=auth_headers)
        assert response.status_code == 200
        response = client.get(
            f"/api/reservations/confirmation/{created['confirmation_number']}", headers=auth_headers
        )
        assert response.json()["reservation_id"] == created["reservation_id"]

        arrivals = client.get(f"/api/properties/{property_id}/arrivals/today", headers=auth_headers).json()
        assert [r["reservation_id"] for r in arrivals] == [created["reservation_id"]]

    @pytest.mark.api
    @pytest.mark.integration
    def test_rooms_show_current_occupant(self, client, auth_headers):
        property_id, room_ids = _create_property(client, auth_headers)
        reservation = _create_reservation(client, auth_headers, property_id, room_id=room_ids["101"])

        rooms = client.get(f"/api/properties/{property_id}/rooms", headers=auth_headers).json()
        occupants = {r["room_number"]: r["occupied_by"] for r in rooms}
        assert occupants == {"101": reservation["reservation_id"], "102": None}

    @pytest.mark.api
    @pytest.mark.integration
    def test_availability_check(self, client, auth_headers):
        property_id, room_ids = _create_property(client, auth_headers)
        _create_reservation(client, auth_headers, property_id, room_id=room_ids["101"])

        today = date.today()
        response = client.post(
            f"/api/properties/{property_id}/availability/check",
            json={
                "room_type_id": f"rt-{property_id}",
                "arrival_date": today.isoformat(),
                "departure_date": (today + timedelta(days=1)).isoformat(),
            },
            headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["available_count"] == 1
        assert response.json()["rooms"][0]["room_number"] == "102"

    @pytest.mark.api
    @pytest.mark.integration
    def test_room_status_change(self, client, auth_headers):
        property_id, room_ids = _create_property(client, auth_headers)
        response = client.patch(
            f"/api/rooms/{room_ids['102']}/status",
            json={"status": "out_of_service", "notes": "Carpet cleaning"},
            headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "out_of_service"

    @pytest.mark.api
    @pytest.mark.integration
    @pytest.mark.edge_case
    def test_departure_before_arrival(self, client, auth_headers):
        property_id, _ = _create_property(client, auth_headers)
        today = date.today()
        response = client.post("/api/reservations", json={
            "guest_id": str(uuid4()),
            "property_id": property_id,
            "room_type_id": f"rt-{property_id}",
            "arrival_date": today.isoformat(),
            "departure_date": (today - timedelta(days=1)).isoformat(),
        }, headers=auth_headers)

        assert response.status_code == 422
        assert response.json() == {
            "error": "ValidationError",
            "message": "Departure date must be after arrival date",
        }

    @pytest.mark.api
    @pytest.mark.integration
    @pytest.mark.edge_case
    def test_malformed_request_body(self, client, auth_headers):
        response = client.post("/api/reservations", json={"property_id": "x"}, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"
        assert "guest_id" in response.json()["message"]

    @pytest.mark.api
    @pytest.mark.integration
    def test_unknown_reservation(self, client, auth_headers):
        response = client.get(f"/api/reservations/{uuid4()}", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"


# ============================================================================
# FRONT DESK OPERATIONS
# ============================================================================

class TestFrontDeskEndpoints:
    """Check-in, checkout, transfer and adjustments"""

    @pytest.mark.api
    @pytest.mark.integration
    def test_express_checkout_flow(self, client, auth_headers):
        property_id, room_ids = _create_property(client, auth_headers)
        reservation = _create_reservation(
            client, auth_headers, property_id, room_id=room_ids["101"], total_amount="42.50"
        )
        reservation_id = reservation["reservation_id"]

        response = client.post(f"/api/reservations/{reservation_id}/check-in", json={}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["reservation"]["status"] == "checked_in"

        response = client.post(f"/api/reservations/{reservation_id}/express-checkout", headers=auth_headers)
        assert response.status_code == 409
        assert response.json()["error"] == "BalanceNotZero"
        assert "42.50" in response.json()["message"]

        response = client.post(
            f"/api/reservations/{reservation_id}/ledger",
            json={"kind": "payment", "amount": "-42.50", "note": "Card"},
            headers=auth_headers
        )
        assert response.status_code == 201
        assert Decimal(str(response.json()["balance"])) == Decimal("0")
        assert len(response.json()["entries"]) == 2

        response = client.post(f"/api/reservations/{reservation_id}/express-checkout", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["reservation"]["status"] == "checked_out"

    @pytest.mark.api
    @pytest.mark.integration
    def test_transfer_flow(self, client, auth_headers):
        property_id, room_ids = _create_property(client, auth_headers)
        reservation = _create_reservation(client, auth_headers, property_id, room_id=room_ids["101"])
        reservation_id = reservation["reservation_id"]
        client.post(f"/api/reservations/{reservation_id}/check-in", json={}, headers=auth_headers)

        response = client.post(
            f"/api/front-desk/reservations/{reservation_id}/transfer",
            json={"target_room_id": room_ids["102"], "reason": "upgrade"},
            headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["reservation"]["room_id"] == room_ids["102"]

        ledger = client.get(f"/api/reservations/{reservation_id}/ledger", headers=auth_headers).json()
        assert ledger["currency"] == "USD"
        assert ledger["entries"][-1]["note"] == "Room transfer 101 -> 102: upgrade"
        assert Decimal(str(ledger["entries"][-1]["amount"])) == Decimal("0")

    @pytest.mark.api
    @pytest.mark.integration
    def test_transfer_into_occupied_room(self, client, auth_headers):
        property_id, room_ids = _create_property(client, auth_headers)
        first = _create_reservation(client, auth_headers, property_id, room_id=room_ids["101"])
        _create_reservation(client, auth_headers, property_id, room_id=room_ids["102"])
        client.post(f"/api/reservations/{first['reservation_id']}/check-in", json={}, headers=auth_headers)

        response = client.post(
            f"/api/front-desk/reservations/{first['reservation_id']}/transfer",
            json={"target_room_id": room_ids["102"]},
            headers=auth_headers
        )
        assert response.status_code == 409
        assert response.json()["error"] == "RoomUnavailable"

        stored = client.get(f"/api/reservations/{first['reservation_id']}", headers=auth_headers).json()
        assert stored["room_id"] == room_ids["101"]

    @pytest.mark.api
    @pytest.mark.integration
    def test_check_in_before_arrival_date(self, client, auth_headers):
        property_id, room_ids = _create_property(client, auth_headers)
        reservation = _create_reservation(
            client, auth_headers, property_id, room_id=room_ids["101"],
            arrival=date.today() + timedelta(days=3)
        )
        response = client.post(
            f"/api/reservations/{reservation['reservation_id']}/check-in", json={}, headers=auth_headers
        )
        assert response.status_code == 409
        assert response.json()["error"] == "InvalidTransition"

    @pytest.mark.api
    @pytest.mark.integration
    def test_stay_adjustment_and_invalid_type(self, client, auth_headers):
        property_id, room_ids = _create_property(client, auth_headers)
        reservation = _create_reservation(client, auth_headers, property_id, room_id=room_ids["101"])
        reservation_id = reservation["reservation_id"]

        response = client.post(
            f"/api/reservations/{reservation_id}/stay-adjustment",
            json={"adjustment_type": "early_checkin", "additional_charge": "30.00", "notes": "9am"},
            headers=auth_headers
        )
        assert response.status_code == 200
        assert Decimal(str(response.json()["reservation"]["total_amount"])) == Decimal("230.00")

        response = client.post(
            f"/api/reservations/{reservation_id}/stay-adjustment",
            json={"adjustment_type": "late_checkout"},
            headers=auth_headers
        )
        assert response.status_code == 409
        assert response.json()["error"] == "InvalidTransition"

        response = client.post(
            f"/api/reservations/{reservation_id}/stay-adjustment",
            json={"adjustment_type": "extended_stay"},
            headers=auth_headers
        )
        assert response.status_code == 422

    @pytest.mark.api
    @pytest.mark.integration
    def test_cancel_and_no_show(self, client, auth_headers):
        property_id, room_ids = _create_property(client, auth_headers)
        cancelled = _create_reservation(client, auth_headers, property_id, room_id=room_ids["101"])
        missing = _create_reservation(client, auth_headers, property_id, room_id=room_ids["102"])

        response = client.post(
            f"/api/reservations/{cancelled['reservation_id']}/cancel",
            json={"reason": "Flight cancelled"},
            headers=auth_headers
        )
        assert response.json()["reservation"]["status"] == "cancelled"

        response = client.post(
            f"/api/reservations/{missing['reservation_id']}/no-show",
            json={"charge_no_show_fee": False},
            headers=auth_headers
        )
        assert response.json()["reservation"]["status"] == "no_show"

        response = client.post(
            f"/api/reservations/{cancelled['reservation_id']}/check-in", json={}, headers=auth_headers
        )
        assert response.status_code == 409

    @pytest.mark.api
    @pytest.mark.integration
    def test_confirm_and_assign_room(self, client, auth_headers):
        property_id, room_ids = _create_property(client, auth_headers)
        response = client.post("/api/reservations", json={
            "guest_id": str(uuid4()),
            "property_id": property_id,
            "room_type_id": f"rt-{property_id}",
            "arrival_date": date.today().isoformat(),
            "departure_date": (date.today() + timedelta(days=1)).isoformat(),
            "confirmed": False,
        }, headers=auth_headers)
        reservation_id = response.json()["reservation_id"]
        assert response.json()["status"] == "pending"

        response = client.post(
            f"/api/reservations/{reservation_id}/assign-room",
            json={"room_id": room_ids["102"]},
            headers=auth_headers
        )
        assert response.json()["reservation"]["room_id"] == room_ids["102"]

        response = client.post(f"/api/reservations/{reservation_id}/confirm", headers=auth_headers)
        assert response.json()["reservation"]["status"] == "confirmed"

    @pytest.mark.api
    @pytest.mark.integration
    def test_walk_in_flow(self, client, auth_headers):
        property_id, room_ids = _create_property(client, auth_headers)
        _create_reservation(client, auth_headers, property_id, room_id=room_ids["101"])
        payload = {
            "guest_id": str(uuid4()),
            "property_id": property_id,
            "room_type_id": f"rt-{property_id}",
            "nights": 2,
            "deposit_amount": "50.00",
        }

        response = client.post("/api/front-desk/walk-in", json=payload, headers=auth_headers)
        assert response.status_code == 201
        walk_in = response.json()["reservation"]
        assert walk_in["status"] == "checked_in"
        assert walk_in["room_id"] == room_ids["102"]
        assert Decimal(str(walk_in["total_amount"])) == Decimal("200.00")
        ledger = client.get(f"/api/reservations/{walk_in['reservation_id']}/ledger", headers=auth_headers).json()
        assert Decimal(str(ledger["balance"])) == Decimal("150.00")

        response = client.post(
            "/api/front-desk/walk-in", json={**payload, "room_id": room_ids["101"]}, headers=auth_headers
        )
        assert response.status_code == 409
        assert response.json()["error"] == "RoomUnavailable"
        reservations = client.get(f"/api/properties/{property_id}/reservations", headers=auth_headers).json()
        assert len(reservations) == 2

    @pytest.mark.api
    @pytest.mark.integration
    def test_void_charge_flow(self, client, auth_headers):
        property_id, room_ids = _create_property(client, auth_headers)
        reservation = _create_reservation(client, auth_headers, property_id, room_id=room_ids["101"])
        reservation_id = reservation["reservation_id"]

        response = client.post(
            f"/api/reservations/{reservation_id}/ledger/1/void", json={"reason": "Rate error"}, headers=auth_headers
        )
        assert response.status_code == 200
        assert Decimal(str(response.json()["balance"])) == Decimal("0")
        assert response.json()["entries"][-1]["voids_sequence"] == 1
        stored = client.get(f"/api/reservations/{reservation_id}", headers=auth_headers).json()
        assert Decimal(str(stored["total_amount"])) == Decimal("0")

        response = client.post(
            f"/api/reservations/{reservation_id}/ledger/1/void", json={"reason": "Again"}, headers=auth_headers
        )
        assert response.status_code == 422
        assert response.json() == {"error": "ValidationError", "message": "Charge #1 is already voided"}

        response = client.post(
            f"/api/reservations/{reservation_id}/ledger/1/void", json={"reason": ""}, headers=auth_headers
        )
        assert response.status_code == 422

    @pytest.mark.api
    @pytest.mark.integration
    def test_operation_errors_are_documented(self, client):
        paths = client.get("/openapi.json").json()["paths"]
        responses = paths["/api/front-desk/walk-in"]["post"]["responses"]
        assert responses["409"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")

    @pytest.mark.api
    @pytest.mark.integration
    @pytest.mark.edge_case
    def test_payment_with_positive_amount(self, client, auth_headers):
        property_id, _ = _create_property(client, auth_headers)
        reservation = _create_reservation(client, auth_headers, property_id)
        response = client.post(
            f"/api/reservations/{reservation['reservation_id']}/ledger",
            json={"kind": "payment", "amount": "10.00"},
            headers=auth_headers
        )
        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"


# ============================================================================
# ACCESS CONTROL & SETTINGS
# ============================================================================

class TestAccessControl:
    """Property scoping and admin-only settings"""

    @pytest.mark.api
    @pytest.mark.integration
    def test_front_desk_limited_to_own_property(self, client, auth_headers, frontdesk_headers):
        property_id, _ = _create_property(client, auth_headers)
        reservation = _create_reservation(client, auth_headers, property_id)

        response = client.get(f"/api/reservations/{reservation['reservation_id']}", headers=frontdesk_headers)
        assert response.status_code == 403
        response = client.get(f"/api/properties/{property_id}/rooms", headers=frontdesk_headers)
        assert response.status_code == 403

    @pytest.mark.api
    @pytest.mark.integration
    def test_front_desk_works_own_property(self, client, auth_headers, frontdesk_headers):
        response = client.get("/api/properties/prop-demo/reservations", headers=frontdesk_headers)
        assert response.status_code == 200

    @pytest.mark.api
    @pytest.mark.integration
    def test_inventory_rebuild_admin_only(self, client, auth_headers, frontdesk_headers):
        property_id, room_ids = _create_property(client, auth_headers)
        _create_reservation(client, auth_headers, property_id, room_id=room_ids["101"])

        response = client.post(f"/api/properties/{property_id}/inventory/rebuild", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"property_id": property_id, "claims": 1}

        response = client.post("/api/properties/prop-demo/inventory/rebuild", headers=frontdesk_headers)
        assert response.status_code == 403

    @pytest.mark.api
    @pytest.mark.integration
    def test_settings_admin_only(self, client, auth_headers, frontdesk_headers):
        response = client.put(
            "/api/properties/prop-demo/settings",
            json={"key": "offline_mode_enabled", "value": "true"},
            headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["updated_by"] == "admin"

        response = client.put(
            "/api/properties/prop-demo/settings",
            json={"key": "offline_mode_enabled", "value": "false"},
            headers=frontdesk_headers
        )
        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden"

        settings = client.get("/api/properties/prop-demo/settings", headers=frontdesk_headers).json()
        assert {s["key"]: s["value"] for s in settings}["offline_mode_enabled"] == "true"
