"""Unit tests for auth/store.py and apiary/store.py.

Covers:
- default roles seeded once, init_schema idempotent
- list/find queries skip soft-deleted accounts; account_id_exists does not
- set_account_inactive() refuses while a hive references the account
- count_owned_resources_for() counts only the owner's hives
- not-found is an empty result, never an exception
- driver failures surface as StorageError with the failing operation as origin
"""

import pytest
from sqlalchemy import text

from apiary.models import Hive
from auth.models import Role
from core.database import check_connection, init_schema
from core.errors import StorageError


def test_default_roles_seeded(account_store, engine):
    init_schema(engine)  # second run must not duplicate or fail
    roles = account_store.list_roles()
    assert [(r.code, r.description) for r in roles] == [("ADM", "Administrador"), ("API", "Apicultor")]
    assert account_store.role_exists("ADM")
    assert not account_store.role_exists("adm")


def test_create_role(account_store):
    account_store.create_role(Role(code="TEC", description="Técnico"))
    assert account_store.role_exists("TEC")


def test_list_accounts_active_only_ordered(account_store, make_account):
    make_account(account_store, account_id="USR_B", hashed=False)
    make_account(account_store, account_id="USR_A", hashed=False)
    make_account(account_store, account_id="USR_C", hashed=False, active=False)
    assert [a.id for a in account_store.list_accounts()] == ["USR_A", "USR_B"]
    assert account_store.account_id_exists("USR_C")
    assert account_store.find_account_by_id("USR_C") is None


def test_not_found_is_empty(account_store):
    assert account_store.find_account_by_id("nope") is None
    assert account_store.find_account_by_name("No", "Body") is None
    assert account_store.account_id_exists("nope") is False
    assert account_store.count_owned_resources_for("nope") == 0
    assert account_store.set_account_inactive("nope") is False
    assert (
        account_store.update_account(
            "nope", given_name="a", family_name="b", locality="c", role="ADM", active=True
        )
        is False
    )


def test_unknown_role_description_is_none(account_store, make_account, engine):
    """Legacy rows can reference a role that no longer exists; the outer join tolerates it."""
    make_account(account_store, account_id="USR_X", hashed=False, role="ADM")
    with engine.begin() as conn:
        conn.execute(text("UPDATE usuario SET rol = 'GONE' WHERE id = 'USR_X'"))
    account = account_store.find_account_by_id("USR_X")
    assert account.role == "GONE"
    assert account.role_name is None


class TestOwnership:
    def test_count_owned_resources(self, account_store, hive_store, make_account):
        make_account(account_store, account_id="USR_A", hashed=False)
        make_account(account_store, account_id="USR_B", hashed=False)
        hive_store.create_hive(Hive(owner="USR_A"))
        hive_store.create_hive(Hive(owner="USR_A"))
        hive_store.create_hive(Hive(owner="USR_B"))
        assert account_store.count_owned_resources_for("USR_A") == 2
        assert account_store.count_owned_resources_for("USR_B") == 1

    def test_set_inactive_guarded_by_hives(self, account_store, hive_store, make_account):
        make_account(account_store, account_id="USR_A", hashed=False)
        hive_store.create_hive(Hive(owner="USR_A"))
        assert account_store.set_account_inactive("USR_A") is False
        assert account_store.find_account_by_id("USR_A") is not None

    def test_set_inactive_once(self, account_store, make_account):
        make_account(account_store, account_id="USR_A", hashed=False)
        assert account_store.set_account_inactive("USR_A") is True
        assert account_store.set_account_inactive("USR_A") is False

    def test_deactivating_update_guarded_by_hives(self, account_store, hive_store, make_account):
        make_account(account_store, account_id="USR_A", hashed=False)
        hive_store.create_hive(Hive(owner="USR_A"))
        fields = dict(given_name="Ana", family_name="Soto", locality="Temuco", role="ADM")
        assert account_store.update_account("USR_A", active=False, **fields) is False
        assert account_store.find_account_by_id("USR_A") is not None
        assert account_store.update_account("USR_A", active=True, **fields) is True


class TestHiveStore:
    def test_create_and_get(self, hive_store, account_store, make_account):
        make_account(account_store, account_id="USR_A", hashed=False)
        hive_id = hive_store.create_hive(Hive(owner="USR_A", description="Norte", latitude=-36.6, longitude=-72.1))
        hive = hive_store.get_hive(hive_id)
        assert hive.owner == "USR_A"
        assert hive.description == "Norte"
        assert hive.latitude == pytest.approx(-36.6)

    def test_list_filter_by_owner(self, hive_store):
        hive_store.create_hive(Hive(owner="USR_A"))
        hive_store.create_hive(Hive(owner="USR_B"))
        assert len(hive_store.list_hives()) == 2
        assert [h.owner for h in hive_store.list_hives(owner="USR_B")] == ["USR_B"]

    def test_get_missing(self, hive_store):
        assert hive_store.get_hive(999) is None


class TestStorageErrors:
    def test_query_failure_becomes_storage_error(self, account_store, engine):
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE colmena"))
        with pytest.raises(StorageError) as exc_info:
            account_store.count_owned_resources_for("USR_A")
        assert exc_info.value.origin == "accounts.count_owned"
        assert exc_info.value.status_code == 500

    def test_check_connection(self, engine):
        result = check_connection(engine)
        assert result["test"] == "1"
        assert result["time"]
