# tests/conftest.py
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from agendrj import create_app
from agendrj.mirror import LocalMirror
from agendrj.services import Services
from agendrj.services.analytics_service import AnalyticsService
from agendrj.services.appointment_service import AppointmentService
from agendrj.services.location_service import LocationService
from agendrj.services.settings_service import SettingsService
from agendrj.services.user_service import UserService, hash_password

from .fakes import (
    FakeAnalyticsRepository, FakeAppointmentRepository, FakeLocationRepository,
    FakeSettingsRepository, FakeUserRepository,
)

VALID_CPF = "52998224725"
OTHER_CPF = "11144477735"
GUARDIAN_CPF = "39053344705"
TODAY = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def repos():
    appointments = FakeAppointmentRepository()
    locations = FakeLocationRepository()
    users = FakeUserRepository()
    return SimpleNamespace(
        appointments=appointments,
        locations=locations,
        users=users,
        settings=FakeSettingsRepository(),
        analytics=FakeAnalyticsRepository(appointments, locations, users),
    )


@pytest.fixture()
def svc(repos) -> Services:
    users = UserService(repo=repos.users, mirror=LocalMirror("users"))
    locations = LocationService(repo=repos.locations, mirror=LocalMirror("service_locations"))
    appointments = AppointmentService(
        repo=repos.appointments,
        locations=locations,
        users=users,
        mirror=LocalMirror("appointments"),
        clock=lambda: TODAY,
    )
    return Services(
        users=users,
        locations=locations,
        appointments=appointments,
        analytics=AnalyticsService(repo=repos.analytics),
        settings=SettingsService(repo=repos.settings),
    )


@pytest.fixture()
def location(repos):
    row = {
        "id": "loc-centro",
        "name": "Centro de Atendimento Rio Centro",
        "zip_code": "20021-130",
        "street": "Av. Rio Branco",
        "number": "156",
        "neighborhood": "Centro",
        "complement": None,
        "city": "Rio de Janeiro",
        "state": "RJ",
    }
    repos.locations.rows[row["id"]] = row
    return row


def _add_user(repos, uid, role, name=None, active=True, password="segredo123"):
    repos.users.rows[uid] = {
        "id": uid,
        "name": name or uid.title(),
        "email": f"{uid}@agendrj.com",
        "password_hash": hash_password(password),
        "role": role,
        "is_active": active,
        "cpf": None,
        "whatsapp": None,
        "birth_date": None,
        "created_at": None,
    }
    return repos.users.rows[uid]


@pytest.fixture()
def add_user(repos):
    def _factory(uid, role="user", **kw):
        return _add_user(repos, uid, role, **kw)
    return _factory


@pytest.fixture()
def operators(add_user):
    return add_user("op1", "operator", name="Operador Um"), add_user("op2", "operator", name="Operador Dois")


@pytest.fixture()
def citizen_payload(location):
    return {
        "name": "João Silva",
        "cpf": "529.982.247-25",
        "whatsapp": "(21) 9 9999-9999",
        "birth_date": "1990-05-15",
        "location_id": location["id"],
    }


@pytest.fixture()
def app(svc):
    app = create_app(
        {"TESTING": True, "DB_INIT": False, "SECRET_KEY": "test", "LOG_LEVEL": "WARNING"},
        services=svc,
    )
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def login_as(client, add_user):
    def _login(uid, role):
        add_user(uid, role)
        with client.session_transaction() as sess:
            sess["user_id"] = uid
            sess["role"] = role
        return client
    return _login
