"""Shared fixtures"""
import asyncio
import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from fastapi.testclient import TestClient

from main import app
from application.billing import BillingLedger
from application.front_desk import FrontDeskOperationsService
from application.services import ReservationIntakeService, RoomService, ConfigurationService
from domain.inventory import InventoryRegistry
from infrastructure.repositories.in_memory_repositories import (
    InMemoryReservationRepository, InMemoryRoomRepository,
    InMemoryLedgerRepository, InMemorySettingsRepository
)

PROPERTY_ID = "prop-test"
ARRIVAL = date(2024, 12, 20)
DEPARTURE = date(2024, 12, 22)


# ============================================================================
# API FIXTURES
# ============================================================================

@pytest.fixture
def client():
    """FastAPI test client"""
    return TestClient(app)


def _login(client, username, password):
    response = client.post("/token", data={"username": username, "password": password})
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(client):
    """Admin token; admins may act on every property"""
    return _login(client, "admin", "admin123")


@pytest.fixture
def frontdesk_headers(client):
    """Front desk clerk bound to prop-demo"""
    return _login(client, "frontdesk", "frontdesk123")


# ============================================================================
# SERVICE FIXTURES
# ============================================================================

@pytest.fixture
def reservation_repository():
    return InMemoryReservationRepository()


@pytest.fixture
def room_repository():
    return InMemoryRoomRepository()


@pytest.fixture
def ledger_repository():
    return InMemoryLedgerRepository()


@pytest.fixture
def settings_repository():
    return InMemorySettingsRepository()


@pytest.fixture
def inventories():
    return InventoryRegistry()


@pytest.fixture
def index(inventories):
    return inventories.for_property(PROPERTY_ID)


@pytest.fixture
def billing_ledger(ledger_repository, reservation_repository):
    return BillingLedger(ledger_repository, reservation_repository)


@pytest.fixture
def intake_service(reservation_repository, room_repository, inventories, billing_ledger):
    return ReservationIntakeService(reservation_repository, room_repository, inventories, billing_ledger)


@pytest.fixture
def front_desk(reservation_repository, inventories, billing_ledger, intake_service):
    return FrontDeskOperationsService(
        reservation_repository, inventories, billing_ledger, intake_service, no_show_fee=Decimal("50.00")
    )


@pytest.fixture
def room_service(room_repository, inventories):
    return RoomService(room_repository, inventories)


@pytest.fixture
def configuration_service(settings_repository):
    return ConfigurationService(settings_repository)


@pytest.fixture
async def rooms(room_service):
    """Standard rooms 101-103 and a single suite 201, keyed by room number"""
    await room_service.create_room_type(
        PROPERTY_ID, "Standard", base_rate=Decimal("100.00"), max_occupancy=2, room_type_id="rt-std"
    )
    await room_service.create_room_type(
        PROPERTY_ID, "Suite", base_rate=Decimal("250.00"), max_occupancy=4, room_type_id="rt-suite"
    )
    created = {}
    for number in ("101", "102", "103"):
        created[number] = await room_service.create_room(
            PROPERTY_ID, number, "rt-std", floor=1, room_id=f"room-{number}"
        )
    created["201"] = await room_service.create_room(PROPERTY_ID, "201", "rt-suite", floor=2, room_id="room-201")
    return created


@pytest.fixture
def make_reservation(intake_service, rooms):
    """Factory for reservations of prop-test, 2024-12-20 to 2024-12-22 by default"""
    async def _make(
        room_id=None,
        confirmed=True,
        room_type_id="rt-std",
        arrival=ARRIVAL,
        departure=DEPARTURE,
        total_amount=None,
        adults=1
    ):
        return await intake_service.create_reservation(
            guest_id=uuid4(),
            property_id=PROPERTY_ID,
            room_type_id=room_type_id,
            arrival_date=arrival,
            departure_date=departure,
            adults=adults,
            confirmed=confirmed,
            room_id=room_id,
            total_amount=total_amount
        )
    return _make


@pytest.fixture
def checked_in(make_reservation, front_desk):
    """Factory for an in-house reservation in the given room"""
    async def _checked_in(room_id, total_amount=Decimal("0"), **kwargs):
        reservation = await make_reservation(room_id=room_id, total_amount=total_amount, **kwargs)
        return await front_desk.check_in(reservation.reservation_id)
    return _checked_in


@pytest.fixture
def yielding_repositories(monkeypatch, reservation_repository, ledger_repository):
    """Repository calls hand control back to the event loop before running.

    The in-memory repositories never await anything, so without this the
    coroutines in an ``asyncio.gather`` run one after another and never race.
    """
    def yielding(method):
        async def wrapper(*args, **kwargs):
            await asyncio.sleep(0)
            return await method(*args, **kwargs)
        return wrapper

    for repository, name in (
        (reservation_repository, "find_by_id"),
        (reservation_repository, "update"),
        (ledger_repository, "find_by_reservation"),
        (ledger_repository, "append"),
    ):
        monkeypatch.setattr(repository, name, yielding(getattr(repository, name)))
