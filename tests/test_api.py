# tests/test_api.py
import pytest


def test_register_login_me_logout(client):
    resp = client.post("/register", json={
        "name": "Ana Paula", "email": "ana@example.com", "password": "segredo123",
        "cpf": "390.533.447-05", "whatsapp": "21977777777",
    })
    assert resp.status_code == 201
    assert resp.get_json()["user"]["role"] == "user"

    assert client.get("/me").get_json()["user"]["email"] == "ana@example.com"
    client.post("/logout")
    assert client.get("/me").status_code == 401

    resp = client.post("/login", json={"email": "ana@example.com", "password": "x"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "authentication_failed"
    resp = client.post("/login", json={"email": "ana@example.com", "password": "segredo123"})
    assert resp.status_code == 200


def test_anonymous_cannot_create(client, citizen_payload):
    assert client.post("/appointments", json=citizen_payload).status_code == 401


def test_citizen_flow(login_as, citizen_payload):
    client = login_as("maria", "user")
    resp = client.post("/appointments", json=citizen_payload)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["degraded"] is False
    appt = body["appointment"]
    assert appt["status"] == "pending"
    assert appt["status_label"] == "Em atribuição"

    listed = client.get("/appointments?cpf=529.982.247-25").get_json()["appointments"]
    assert [a["id"] for a in listed] == [appt["id"]]

    resp = client.post(f"/appointments/{appt['id']}/cancel")
    assert resp.get_json()["appointment"]["status"] == "cancelled"


def test_validation_errors_are_json(login_as, citizen_payload):
    client = login_as("maria", "user")
    resp = client.post("/appointments", json={**citizen_payload, "birth_date": "2012-01-01"})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "missing_required_field"
    assert body["field"] == "guardian_cpf"

    resp = client.post("/appointments", json={**citizen_payload, "location_id": "nowhere"})
    assert resp.status_code == 422


def test_master_distributes_and_operator_serves(client, svc, citizen_payload, operators, add_user):
    appt = svc.appointments.create(citizen_payload).data
    add_user("boss", "master")

    with client.session_transaction() as sess:
        sess["user_id"], sess["role"] = "boss", "master"
    pending = client.get("/admin/appointments/pending").get_json()["appointments"]
    assert [a["id"] for a in pending] == [appt.id]
    resp = client.post(f"/admin/appointments/{appt.id}/assign", json={"operator_id": "op1"})
    assert resp.get_json()["appointment"]["queue_position"] == 1

    with client.session_transaction() as sess:
        sess["user_id"], sess["role"] = "op1", "operator"
    queue = client.get("/operator/queue").get_json()["appointments"]
    assert [a["id"] for a in queue] == [appt.id]

    client.post(f"/operator/appointments/{appt.id}/start")
    resp = client.post(f"/operator/appointments/{appt.id}/complete", json={})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "missing_protocol"

    resp = client.post(f"/operator/appointments/{appt.id}/complete",
                       json={"protocol": "data:image/png;base64,AAAA"})
    body = resp.get_json()
    assert body["appointment"]["status"] == "completed"
    assert body["notification_link"].startswith("https://wa.me/5521999999999")

    resp = client.post(f"/operator/appointments/{appt.id}/complete", json={"protocol": "again"})
    assert resp.status_code == 409


def test_role_guards(login_as):
    client = login_as("maria", "user")
    assert client.get("/operator/queue").status_code == 403
    assert client.get("/admin/appointments").status_code == 403
    assert client.get("/admin/users").status_code == 403


def test_master_cannot_demote_or_delete_self(login_as):
    client = login_as("boss", "master")
    resp = client.post("/admin/users/boss/role", json={"role": "user"})
    assert resp.status_code == 409
    assert client.post("/admin/users/boss/active", json={"is_active": False}).status_code == 409
    assert client.delete("/admin/users/boss").status_code == 409


def test_master_manages_users_and_locations(login_as, add_user, location):
    client = login_as("boss", "master")
    add_user("u1", "user")
    resp = client.post("/admin/users/u1/role", json={"role": "operator"})
    assert resp.get_json()["user"]["role"] == "operator"
    resp = client.post("/admin/users/u1/active", json={"is_active": "false"})
    assert resp.get_json()["user"]["is_active"] is False

    resp = client.post("/admin/locations", json={
        "name": "Posto Barra da Tijuca", "zip_code": "22640-100", "street": "Av. das Américas",
        "number": "4200", "neighborhood": "Barra da Tijuca", "complement": "Bloco 2",
        "city": "Rio de Janeiro", "state": "RJ",
    })
    assert resp.status_code == 201
    new_id = resp.get_json()["location"]["id"]
    assert len(client.get("/admin/locations").get_json()["locations"]) == 2
    assert client.delete(f"/admin/locations/{new_id}").status_code == 200
    assert client.get(f"/admin/locations/{new_id}").status_code == 404


def test_reactivate_endpoint(login_as, svc, citizen_payload):
    appt = svc.appointments.create(citizen_payload).data
    client = login_as("boss", "master")
    assert client.post(f"/admin/appointments/{appt.id}/reactivate").status_code == 409
    svc.appointments.cancel(appt.id)
    resp = client.post(f"/admin/appointments/{appt.id}/reactivate")
    assert resp.get_json()["appointment"]["status"] == "pending"


def test_degraded_flag_is_exposed(login_as, svc, citizen_payload, repos):
    appt = svc.appointments.create(citizen_payload).data
    client = login_as("maria", "user")
    repos.appointments.down = True
    body = client.get("/appointments?cpf=52998224725").get_json()
    assert body["degraded"] is True
    assert [a["id"] for a in body["appointments"]] == [appt.id]


@pytest.mark.parametrize("path", ["/admin/stats", "/admin/settings"])
def test_master_dashboard_endpoints(login_as, path):
    client = login_as("boss", "master")
    resp = client.get(path)
    assert resp.status_code == 200
    assert resp.get_json()["ok"] is True


def test_completion_while_store_down_answers_degraded(client, svc, citizen_payload, operators, repos):
    appt = svc.appointments.create(citizen_payload).data
    svc.appointments.assign_operator(appt.id, "op1")
    with client.session_transaction() as sess:
        sess["user_id"], sess["role"] = "op1", "operator"

    repos.appointments.down = True
    repos.settings.down = True
    resp = client.post(f"/operator/appointments/{appt.id}/complete",
                       json={"protocol": "data:image/png;base64,AAAA"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["degraded"] is True
    assert body["appointment"]["status"] == "completed"
    assert body["notification_link"].startswith("https://wa.me/5521999999999?text=")
    assert svc.appointments.mirror.is_pending(appt.id)


def test_guards_follow_account_changes(login_as, repos):
    client = login_as("op9", "operator")
    assert client.get("/operator/queue").status_code == 200

    repos.users.rows["op9"]["role"] = "user"
    assert client.get("/operator/queue").status_code == 403

    repos.users.rows["op9"]["is_active"] = False
    assert client.get("/appointments?cpf=52998224725").status_code == 401


def test_guards_keep_session_role_while_users_store_down(login_as, repos):
    client = login_as("op9", "operator")
    repos.users.down = True
    assert client.get("/operator/queue").status_code == 200


def test_toggle_active_requires_the_flag(login_as, add_user, repos):
    client = login_as("boss", "master")
    add_user("u1", "user")
    resp = client.post("/admin/users/u1/active", json={})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "missing_required_field"
    assert repos.users.rows["u1"]["is_active"] is True
