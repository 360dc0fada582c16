import logging
import uuid

from provider_platform.provider_platform.provider_service.db import SessionLocal
from provider_platform.provider_platform.provider_service.models import Provider

from .conftest import auth_header_for, ensure_user


def create_provider(client, headers, name="Acme Supplies", document="12345678000190"):
    resp = client.post("/provider", headers=headers, json={"name": name, "document": document})
    assert resp.status_code == 201
    return resp


def test_list_providers_is_anonymous_and_empty(client):
    resp = client.get("/provider")
    assert resp.status_code == 200
    assert resp.json() == []


def test_create_provider_returns_location_of_retrievable_record(client, auth_headers):
    resp = create_provider(client, auth_headers)
    body = resp.json()
    assert body["name"] == "Acme Supplies"
    assert body["document"] == "12345678000190"
    uuid.UUID(body["id"])
    assert resp.headers["location"] == f"/provider/{body['id']}"

    fetched = client.get(resp.headers["location"])
    assert fetched.status_code == 200
    assert fetched.json() == body

    listed = client.get("/provider")
    assert listed.json() == [body]


def test_create_provider_uses_supplied_id(client, auth_headers):
    provider_id = str(uuid.uuid4())
    resp = client.post("/provider", headers=auth_headers, json={"id": provider_id, "name": "A", "document": "123"})
    assert resp.status_code == 201
    assert resp.json()["id"] == provider_id


def test_create_provider_with_duplicate_id_is_a_save_error(client, auth_headers):
    provider_id = str(uuid.uuid4())
    payload = {"id": provider_id, "name": "A", "document": "123"}
    assert client.post("/provider", headers=auth_headers, json=payload).status_code == 201

    again = client.post("/provider", headers=auth_headers, json=payload)
    assert again.status_code == 400
    assert again.json() == "There was a problem saving information"


def test_create_provider_requires_auth(client):
    resp = client.post("/provider", json={"name": "Acme", "document": "123"})
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


def test_create_provider_rejects_invalid_token(client):
    resp = client.post("/provider", headers={"Authorization": "Bearer not-a-jwt"}, json={"name": "Acme", "document": "123"})
    assert resp.status_code == 401


def test_create_provider_missing_fields_returns_field_errors(client, auth_headers):
    resp = client.post("/provider", headers=auth_headers, json={"name": "Acme"})
    assert resp.status_code == 400
    assert resp.headers["content-type"].startswith("application/problem+json")
    problem = resp.json()
    assert problem["status"] == 400
    assert set(problem["errors"]) == {"document"}

    resp = client.post("/provider", headers=auth_headers, json={})
    assert set(resp.json()["errors"]) == {"name", "document"}

    # Nothing was persisted
    assert client.get("/provider").json() == []


def test_create_provider_enforces_length_bounds(client, auth_headers):
    resp = client.post("/provider", headers=auth_headers, json={"name": "x" * 201, "document": "1" * 15})
    assert resp.status_code == 400
    assert set(resp.json()["errors"]) == {"name", "document"}

    resp = client.post("/provider", headers=auth_headers, json={"name": "   ", "document": "123"})
    assert resp.status_code == 400
    assert "name" in resp.json()["errors"]


def test_create_provider_without_body(client, auth_headers):
    resp = client.post("/provider", headers=auth_headers)
    assert resp.status_code == 400
    assert "errors" in resp.json()


def test_create_provider_malformed_json(client, auth_headers):
    headers = dict(auth_headers, **{"Content-Type": "application/json"})
    resp = client.post("/provider", headers=headers, content=b"{not json")
    assert resp.status_code == 400
    assert resp.json()["title"] == "One or more validation errors occurred."
    assert list(resp.json()["errors"]) == ["$"]


def test_malformed_json_without_token_is_unauthorized(client):
    headers = {"Content-Type": "application/json"}
    resp = client.post("/provider", headers=headers, content=b"{not json")
    assert resp.status_code == 401

    resp = client.put(f"/provider/{uuid.uuid4()}", headers=headers, content=b"{not json")
    assert resp.status_code == 401


def test_get_unknown_provider_returns_404(client):
    assert client.get(f"/provider/{uuid.uuid4()}").status_code == 404
    assert client.get("/provider/not-a-uuid").status_code == 404


def test_replace_provider(client, auth_headers):
    created = create_provider(client, auth_headers).json()

    resp = client.put(
        f"/provider/{created['id']}",
        headers=auth_headers,
        # An id in the body does not redirect the write
        json={"id": str(uuid.uuid4()), "name": "Renamed", "document": "98765432100"},
    )
    assert resp.status_code == 204
    assert resp.content == b""

    fetched = client.get(f"/provider/{created['id']}").json()
    assert fetched == {"id": created["id"], "name": "Renamed", "document": "98765432100"}
    assert len(client.get("/provider").json()) == 1


def test_replace_unknown_provider_returns_404_without_mutation(client, auth_headers):
    created = create_provider(client, auth_headers).json()

    resp = client.put(f"/provider/{uuid.uuid4()}", headers=auth_headers, json={"name": "Other", "document": "1"})
    assert resp.status_code == 404

    # Unknown id wins over an invalid payload
    resp = client.put(f"/provider/{uuid.uuid4()}", headers=auth_headers, json={})
    assert resp.status_code == 404

    headers = dict(auth_headers, **{"Content-Type": "application/json"})
    resp = client.put(f"/provider/{uuid.uuid4()}", headers=headers, content=b"{not json")
    assert resp.status_code == 404

    assert client.get("/provider").json() == [created]


def test_replace_provider_with_missing_fields_returns_400(client, auth_headers):
    created = create_provider(client, auth_headers).json()

    resp = client.put(f"/provider/{created['id']}", headers=auth_headers, json={"document": "1"})
    assert resp.status_code == 400
    assert set(resp.json()["errors"]) == {"name"}
    assert client.get(f"/provider/{created['id']}").json() == created


def test_replace_provider_requires_auth(client, auth_headers):
    created = create_provider(client, auth_headers).json()
    resp = client.put(f"/provider/{created['id']}", json={"name": "x", "document": "1"})
    assert resp.status_code == 401


def test_delete_provider_with_claim(client, auth_headers, admin_headers, caplog):
    created = create_provider(client, auth_headers).json()

    with caplog.at_level(logging.INFO):
        resp = client.delete(f"/provider/{created['id']}", headers=admin_headers)
    assert resp.status_code == 204
    assert resp.content == b""
    assert f"PROVIDER deleted id={created['id']}" in caplog.text
    assert client.get(f"/provider/{created['id']}").status_code == 404

    db = SessionLocal()
    try:
        assert db.query(Provider).count() == 0
    finally:
        db.close()


def test_delete_provider_without_claim_is_forbidden(client, auth_headers):
    created = create_provider(client, auth_headers).json()

    resp = client.delete(f"/provider/{created['id']}", headers=auth_headers)
    assert resp.status_code == 403
    assert client.get(f"/provider/{created['id']}").status_code == 200


def test_delete_provider_without_token_is_unauthorized(client, auth_headers):
    created = create_provider(client, auth_headers).json()
    assert client.delete(f"/provider/{created['id']}").status_code == 401


def test_delete_unknown_provider_returns_404(client, admin_headers):
    assert client.delete(f"/provider/{uuid.uuid4()}", headers=admin_headers).status_code == 404


def test_claim_granted_after_login_requires_new_token(client):
    user = ensure_user("late@example.com")
    stale = auth_header_for(user["email"])
    created = create_provider(client, stale).json()

    ensure_user("late@example.com", claims=("DeleteProvider",))
    assert client.delete(f"/provider/{created['id']}", headers=stale).status_code == 403

    login = client.post("/login", json={"email": user["email"], "password": user["password"]})
    assert login.status_code == 200
    fresh = {"Authorization": f"Bearer {login.json()['access_token']}"}
    assert client.delete(f"/provider/{created['id']}", headers=fresh).status_code == 204
