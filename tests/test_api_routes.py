"""
tests/test_api_routes.py -- Integration tests for the account and login endpoints.

These tests exercise the full stack: FastAPI routing -> request models ->
AccountManager / login orchestration -> AccountStore -> response models and
the error envelope. Status codes are the contract existing clients rely on.

Coverage:
  - End-to-end: create account (201, generated id) then log in with it (200, token)
  - Login: Spanish and English field names, name-pair login, legacy plaintext,
    generic 401 for unknown id vs wrong password, 400 for missing fields,
    no-store caching header
  - Create: 400 for missing field, unknown role, duplicate id, overlong secret;
    a secret with surrounding spaces logs in unchanged
  - Update: 404, 400, password kept when secret omitted
  - Delete: 200 {message, id}, 404 after, 400 with hive count
  - Listing endpoints and hive creation owner check

Fixtures used (from conftest.py):
  - api_client: (client, account_store) -- module-scoped TestClient
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from auth.store import AccountStore
from auth.tokens import TOKEN_PATTERN

ANA = {
    "given_name": "Ana",
    "family_name": "Soto",
    "locality": "Chillán",
    "secret": "s3cret",
    "role": "ADM",
}


def _create(client: TestClient, **overrides) -> dict:
    body = {**ANA, **overrides}
    resp = client.post("/api/usuarios", json=body)
    assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
    return resp.json()


class TestEndToEnd:
    def test_create_then_login(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        resp = client.post("/api/usuarios", json=ANA)
        assert resp.status_code == 201, resp.text
        summary = resp.json()
        assert summary["id"].startswith("USR_")
        assert summary["nombre"] == "Ana"
        assert summary["apellido"] == "Soto"
        assert summary["comuna"] == "Chillán"
        assert summary["rol"] == "ADM"
        assert summary["activo"] == 1
        assert "clave" not in summary and "secret" not in summary

        login = client.post("/api/auth/login", json={"identifier": summary["id"], "secret": "s3cret"})
        assert login.status_code == 200, login.text
        data = login.json()
        match = TOKEN_PATTERN.match(data["token"])
        assert match is not None
        assert match["account_id"] == summary["id"]
        assert data["usuario"]["id"] == summary["id"]
        assert "clave" not in data["usuario"]


class TestLogin:
    def test_spanish_field_names(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        created = _create(client, id="USR_ES")
        resp = client.post("/api/auth/login", json={"id": created["id"], "clave": "s3cret"})
        assert resp.status_code == 200, resp.text

    def test_name_pair_login(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        _create(client, id="USR_PAIR", given_name="Pedro", family_name="Lagos")
        resp = client.post(
            "/api/auth/login",
            json={"given_name": " pedro ", "family_name": "LAGOS", "secret": "s3cret"},
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["usuario"]["id"] == "USR_PAIR"

    def test_legacy_plaintext_account(self, api_client: tuple[TestClient, AccountStore], make_account) -> None:
        client, store = api_client
        make_account(store, account_id="USR_LEGACY", given_name="Luis", family_name="Vera", secret="abc123", hashed=False)
        ok = client.post("/api/auth/login", json={"identifier": "USR_LEGACY", "secret": "abc123"})
        assert ok.status_code == 200
        bad = client.post("/api/auth/login", json={"identifier": "USR_LEGACY", "secret": "ABC123"})
        assert bad.status_code == 401

    def test_failures_share_one_message(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        _create(client, id="USR_GENERIC")
        unknown = client.post("/api/auth/login", json={"identifier": "USR_NOBODY", "secret": "s3cret"})
        wrong = client.post("/api/auth/login", json={"identifier": "USR_GENERIC", "secret": "nope"})
        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json()
        assert unknown.headers["cache-control"] == "no-store"

    def test_identifier_short_circuits_name_pair(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        _create(client, id="USR_SC", given_name="Marta", family_name="Pinto")
        resp = client.post(
            "/api/auth/login",
            json={"identifier": "USR_1", "given_name": "Marta", "family_name": "Pinto", "secret": "s3cret"},
        )
        assert resp.status_code == 401

    def test_missing_secret_400(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        resp = client.post("/api/auth/login", json={"identifier": "USR_ES"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_missing_identity_400(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        resp = client.post("/api/auth/login", json={"given_name": "Ana", "secret": "s3cret"})
        assert resp.status_code == 400

    def test_success_not_cached(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        _create(client, id="USR_CACHE")
        resp = client.post("/api/auth/login", json={"identifier": "USR_CACHE", "secret": "s3cret"})
        assert resp.headers["cache-control"] == "no-store"


class TestCreateAccount:
    def test_missing_field_names_it(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        body = {**ANA, "locality": "  "}
        resp = client.post("/api/usuarios", json=body)
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert "locality" in error["message"]
        assert error["detail"] == "locality"

    def test_unknown_role_400(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        resp = client.post("/api/usuarios", json={**ANA, "role": "XYZ"})
        assert resp.status_code == 400
        assert "XYZ" in resp.json()["error"]["message"]

    def test_duplicate_id_400(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        _create(client, id="USR_DUP")
        resp = client.post("/api/usuarios", json={**ANA, "id": "USR_DUP"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "duplicate_id"

    def test_spanish_body_accepted(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        body = {
            "id": "USR_SPANISH",
            "nombre": "Rosa",
            "apellido": "Muñoz",
            "comuna": "Ñuble",
            "clave": "s3cret",
            "rol": "API",
            "activo": 1,
        }
        resp = client.post("/api/usuarios", json=body)
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["rol"] == "API"
        assert data["rol_nombre"] == "Apicultor"

    def test_malformed_body_400(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        resp = client.post("/api/usuarios", json={**ANA, "active": "not-a-bool"})
        assert resp.status_code == 400

    def test_overlong_secret_400(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        resp = client.post("/api/usuarios", json={**ANA, "id": "USR_LONG", "secret": "a" * 73})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "secret_too_long"

    def test_secret_with_spaces_round_trips(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        _create(client, id="USR_SPACES", secret=" s3cret ")
        ok = client.post("/api/auth/login", json={"identifier": "USR_SPACES", "secret": " s3cret "})
        assert ok.status_code == 200


class TestUpdateAccount:
    def test_update_keeps_password_when_secret_omitted(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, store = api_client
        _create(client, id="USR_UPD")
        before = store.find_account_by_id("USR_UPD").password_material

        body = {k: v for k, v in ANA.items() if k != "secret"}
        resp = client.put("/api/usuarios/USR_UPD", json={**body, "locality": "Concepción"})
        assert resp.status_code == 200, resp.text
        assert resp.json()["comuna"] == "Concepción"

        assert store.find_account_by_id("USR_UPD").password_material == before
        login = client.post("/api/auth/login", json={"identifier": "USR_UPD", "secret": "s3cret"})
        assert login.status_code == 200

    def test_update_rotates_password(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        _create(client, id="USR_ROT")
        resp = client.put("/api/usuarios/USR_ROT", json={**ANA, "secret": "other"})
        assert resp.status_code == 200
        old = client.post("/api/auth/login", json={"identifier": "USR_ROT", "secret": "s3cret"})
        new = client.post("/api/auth/login", json={"identifier": "USR_ROT", "secret": "other"})
        assert old.status_code == 401
        assert new.status_code == 200

    def test_update_unknown_404(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        resp = client.put("/api/usuarios/USR_NOPE", json=ANA)
        assert resp.status_code == 404

    def test_update_unknown_role_400(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        _create(client, id="USR_ROLE")
        resp = client.put("/api/usuarios/USR_ROLE", json={**ANA, "role": "BOSS"})
        assert resp.status_code == 400
        assert "BOSS" in resp.json()["error"]["message"]

    def test_update_missing_field_400(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        _create(client, id="USR_MISS")
        resp = client.put("/api/usuarios/USR_MISS", json={"given_name": "Ana"})
        assert resp.status_code == 400


class TestDeleteAccount:
    def test_delete_then_gone(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        _create(client, id="USR_DEL")
        resp = client.delete("/api/usuarios/USR_DEL")
        assert resp.status_code == 200
        assert resp.json() == {"message": 'Account "Ana Soto" deleted.', "id": "USR_DEL"}

        assert client.delete("/api/usuarios/USR_DEL").status_code == 404
        login = client.post("/api/auth/login", json={"identifier": "USR_DEL", "secret": "s3cret"})
        assert login.status_code == 401
        assert "USR_DEL" not in [a["id"] for a in client.get("/api/usuarios").json()]

    def test_delete_blocked_by_hives(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        _create(client, id="USR_OWNER")
        for _ in range(2):
            assert client.post("/api/colmenas", json={"dueno": "USR_OWNER"}).status_code == 201

        resp = client.delete("/api/usuarios/USR_OWNER")
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "has_dependents"
        assert "2 hive(s)" in error["message"]
        assert error["detail"] == "2"

    def test_delete_unknown_404(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        assert client.delete("/api/usuarios/USR_NOPE").status_code == 404


class TestListings:
    def test_roles(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        resp = client.get("/api/roles")
        assert resp.status_code == 200
        assert {"rol": "ADM", "descripcion": "Administrador"} in resp.json()

    def test_accounts_list_has_no_password_material(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        _create(client, id="USR_LIST")
        rows = client.get("/api/usuarios").json()
        assert any(r["id"] == "USR_LIST" for r in rows)
        assert all("clave" not in r for r in rows)

    def test_select_list(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        _create(client, id="USR_SEL")
        rows = client.get("/api/select/usuarios").json()
        assert {"id": "USR_SEL", "nombre": "Ana", "apellido": "Soto"} in rows

    def test_hive_requires_active_owner(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        assert client.post("/api/colmenas", json={"dueno": "USR_GHOST"}).status_code == 400
        assert client.post("/api/colmenas", json={"descripcion": "x"}).status_code == 400

    def test_hive_listing_by_owner(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _store = api_client
        _create(client, id="USR_HIVES")
        created = client.post(
            "/api/colmenas", json={"dueno": "USR_HIVES", "descripcion": "Sur", "latitud": -36.6, "longitud": -72.1}
        )
        assert created.status_code == 201
        rows = client.get("/api/colmenas", params={"dueno": "USR_HIVES"}).json()
        assert [r["descripcion"] for r in rows] == ["Sur"]
