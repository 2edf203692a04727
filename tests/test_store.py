"""
Tests for the entity store: persistence, rollback, seeding, migration and
deletion cascades.
"""
import json

import pytest

from uam.core.database import engine
from uam.core.database.engine import Store
from uam.core.database.seed import seed_defaults
from uam.core.errors import NotFound, StoreError, StoreLoadError, StoreWriteError
from uam.features.access_requests.crud import create_access_request
from uam.features.groups.crud import delete_group
from uam.features.policies.crud import delete_policy
from uam.features.users.auth import verify_password
from uam.features.users.crud import delete_user, get_user_by_username

from conftest import group_named, make_group, make_policy, make_user


# ============================================================================
# Load / flush
# ============================================================================

def test_missing_file_starts_empty_and_seeds(store_path):
    store = Store.open(store_path)

    assert store_path.exists()
    document = json.loads(store_path.read_text())
    assert set(document) == {"users", "groups", "policies", "accessRequests"}
    assert len(document["users"]) == 1
    assert {p["name"] for p in document["policies"]} == {"Admin Policy", "User Policy"}
    assert document["accessRequests"] == []


def test_snapshot_uses_camel_case_keys(file_store, store_path):
    make_user(file_store, "alice")

    document = json.loads(store_path.read_text())
    alice = next(u for u in document["users"] if u["username"] == "alice")
    assert {"firstName", "lastName", "passwordHash", "createdAt", "updatedAt"} <= set(alice)
    assert "first_name" not in alice


def test_round_trip_reproduces_records(file_store, store_path):
    policy = make_policy(file_store, "Reports", [("reports", "read"), ("reports", "read")])
    group = make_group(file_store, "Analysts", [policy.id])
    user = make_user(file_store, "alice", groups=[group.id])
    create_access_request(file_store, user.id, group_named(file_store, "Users").id, "need it")

    reloaded = Store.open(store_path)

    assert reloaded.users == file_store.users
    assert reloaded.groups == file_store.groups
    assert reloaded.policies == file_store.policies
    assert reloaded.access_requests == file_store.access_requests
    # duplicate permissions survive
    assert len(reloaded.policies[policy.id].permissions) == 2


def test_corrupt_file_raises_and_is_not_overwritten(store_path):
    store_path.parent.mkdir(parents=True)
    store_path.write_text("{not json")

    with pytest.raises(StoreLoadError):
        Store.open(store_path)

    assert store_path.read_text() == "{not json"


def test_non_object_document_raises(store_path):
    store_path.parent.mkdir(parents=True)
    store_path.write_text("[]")

    with pytest.raises(StoreLoadError):
        Store.open(store_path)


def test_invalid_record_raises(store_path):
    store_path.parent.mkdir(parents=True)
    store_path.write_text(json.dumps({"groups": [{"id": "g1"}]}))

    with pytest.raises(StoreLoadError):
        Store.open(store_path)


def test_failed_write_leaves_memory_and_disk_unchanged(file_store, store_path, monkeypatch):
    before = store_path.read_text()
    users_before = dict(file_store.users)

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(engine.os, "replace", broken_replace)

    with pytest.raises(StoreWriteError):
        make_user(file_store, "alice")

    assert file_store.users == users_before
    assert store_path.read_text() == before
    # no stray temp files next to the snapshot
    assert [p.name for p in store_path.parent.iterdir()] == [store_path.name]


def test_flush_syncs_parent_directory(file_store, store_path, monkeypatch):
    synced = []
    monkeypatch.setattr(engine, "_fsync_directory", synced.append)

    make_user(file_store, "alice")

    assert synced == [store_path.parent]


def test_directory_sync_failure_keeps_committed_write(file_store, store_path, monkeypatch):
    def broken_sync(path):
        raise OSError("not supported")

    monkeypatch.setattr(engine, "_fsync_directory", broken_sync)

    alice = make_user(file_store, "alice")

    assert alice.id in file_store.users
    document = json.loads(store_path.read_text())
    assert alice.id in {u["id"] for u in document["users"]}


def test_exception_inside_transaction_restores_tables(store):
    groups_before = dict(store.groups)

    with pytest.raises(RuntimeError):
        with store.transaction():
            store.groups.clear()
            raise RuntimeError("boom")

    assert store.groups == groups_before


def test_nested_transaction_joins_outer(store):
    users_before = dict(store.users)

    with pytest.raises(RuntimeError):
        with store.transaction():
            make_user(store, "alice")
            assert get_user_by_username(store, "alice") is not None
            raise RuntimeError("abort outer")

    assert store.users == users_before


def test_closed_store_rejects_access(store):
    store.close()

    assert store.closed
    with pytest.raises(StoreError):
        with store.read():
            pass


# ============================================================================
# Seeding
# ============================================================================

def test_seed_contents(store):
    admin = get_user_by_username(store, "admin")
    administrators = group_named(store, "Administrators")
    users_group = group_named(store, "Users")
    policies = {p.name: p for p in store.policies.values()}

    assert admin.role.value == "admin"
    assert admin.groups == [administrators.id]
    assert verify_password("pa$$w0rd", admin.password_hash)
    assert administrators.policies == [policies["Admin Policy"].id]
    assert users_group.policies == [policies["User Policy"].id]
    assert len(policies["Admin Policy"].permissions) == 16
    assert {str(p) for p in policies["User Policy"].permissions} == {
        "users:read", "groups:read", "access-requests:create", "access-requests:read",
    }


def test_seed_runs_once(file_store, store_path):
    reopened = Store.open(store_path)

    assert len(reopened.users) == 1
    assert len(reopened.groups) == 2
    assert len(reopened.policies) == 2
    assert seed_defaults(reopened) is False


def test_seed_skipped_when_users_exist_even_without_groups(store):
    for group_id in list(store.groups):
        delete_group(store, group_id)

    assert seed_defaults(store) is False
    assert store.groups == {}


def test_open_without_seed():
    store = Store.open(seed=False)

    assert store.users == {}
    assert store.policies == {}


# ============================================================================
# Legacy migration
# ============================================================================

def test_legacy_users_are_migrated_on_load(store_path):
    store_path.parent.mkdir(parents=True)
    store_path.write_text(json.dumps({
        "users": [
            {"id": "u1", "username": "admin", "password": "hash-1", "role": "admin", "groups": []},
            {"id": "u2", "username": "bob@corp.io", "passwordHash": "hash-2", "groups": []},
        ],
        "groups": [],
        "policies": [],
        "accessRequests": [],
    }))

    store = Store.open(store_path)

    admin, bob = store.users["u1"], store.users["u2"]
    assert admin.email == "admin@example.com"
    assert (admin.first_name, admin.last_name) == ("System", "Administrator")
    assert admin.password_hash == "hash-1"
    assert bob.email == "bob@corp.io"
    assert (bob.first_name, bob.last_name) == ("First", "Last")

    document = json.loads(store_path.read_text())
    raw_admin = next(u for u in document["users"] if u["id"] == "u1")
    assert raw_admin["passwordHash"] == "hash-1"
    assert "password" not in raw_admin


# ============================================================================
# Deletion cascades
# ============================================================================

def test_delete_group_prunes_membership_only(store):
    policy = make_policy(store, "Reports", [("reports", "read")])
    group = make_group(store, "Analysts", [policy.id])
    other = make_group(store, "Auditors")
    alice = make_user(store, "alice", groups=[group.id, other.id])
    request = create_access_request(store, alice.id, group_named(store, "Users").id)

    delete_group(store, group.id)

    assert store.users[alice.id].groups == [other.id]
    assert store.users[alice.id].updated_at >= alice.updated_at
    assert policy.id in store.policies
    assert request.id in store.access_requests


def test_delete_policy_prunes_groups(store):
    policy = make_policy(store, "Reports", [("reports", "read")])
    keep = make_policy(store, "Exports", [("reports", "export")])
    group = make_group(store, "Analysts", [policy.id, keep.id])

    delete_policy(store, policy.id)

    assert store.groups[group.id].policies == [keep.id]


def test_delete_user_has_no_cascade(store):
    alice = make_user(store, "alice")
    request = create_access_request(store, alice.id, group_named(store, "Users").id)

    delete_user(store, alice.id)

    assert alice.id not in store.users
    assert store.access_requests[request.id].user_id == alice.id


def test_delete_unknown_ids_raise_not_found(store):
    with pytest.raises(NotFound):
        delete_group(store, "missing")
    with pytest.raises(NotFound):
        delete_policy(store, "missing")
    with pytest.raises(NotFound):
        delete_user(store, "missing")
