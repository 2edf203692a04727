import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from uam.core.database import index
from uam.core.errors import Conflict, ValidationError
from uam.features.groups.crud import update_group
from uam.features.groups.schemas import GroupUpdate
from uam.features.users.crud import add_user_to_group, update_user
from uam.features.users.schemas import UserUpdate

from conftest import group_named, make_group, make_policy, make_user


def test_username_uniqueness_is_case_sensitive(store):
    alice = make_user(store, "alice")

    assert not index.is_username_unique(store, "alice")
    assert index.is_username_unique(store, "Alice")
    assert index.is_username_unique(store, "alice", exclude_id=alice.id)


def test_email_uniqueness_ignores_case(store):
    alice = make_user(store, "alice", email="alice@example.com")

    assert not index.is_email_unique(store, "ALICE@Example.com")
    assert index.is_email_unique(store, "alice@example.com", exclude_id=alice.id)


def test_group_and_policy_names_ignore_case(store):
    assert not index.is_group_name_unique(store, "administrators")
    assert not index.is_policy_name_unique(store, "ADMIN POLICY")
    assert index.is_group_name_unique(store, "Auditors")


def test_validate_ids_returns_only_unknown_ids(store):
    users_group = group_named(store, "Users")
    policy = next(iter(store.policies.values()))

    assert index.validate_group_ids(store, [users_group.id, "nope", "gone"]) == ["nope", "gone"]
    assert index.validate_policy_ids(store, [policy.id]) == []


def test_duplicate_group_name_conflicts_without_mutation(store):
    make_group(store, "Admins")
    groups_before = dict(store.groups)

    with pytest.raises(Conflict) as exc_info:
        make_group(store, "admins")

    assert exc_info.value.field == "name"
    assert store.groups == groups_before


def test_duplicate_policy_name_conflicts(store):
    make_policy(store, "Reports")

    with pytest.raises(Conflict):
        make_policy(store, "REPORTS")


def test_duplicate_username_and_email_conflict(store):
    make_user(store, "alice", email="alice@example.com")
    users_before = dict(store.users)

    with pytest.raises(Conflict) as exc_info:
        make_user(store, "alice", email="other@example.com")
    assert exc_info.value.field == "username"

    with pytest.raises(Conflict) as exc_info:
        make_user(store, "alice2", email="Alice@Example.com")
    assert exc_info.value.field == "email"

    assert store.users == users_before


def test_invalid_group_reference_rejects_whole_write(store):
    users_group = group_named(store, "Users")

    with pytest.raises(ValidationError) as exc_info:
        make_user(store, "alice", groups=[users_group.id, "missing-1", "missing-2"])

    assert exc_info.value.kind == ValidationError.REFERENCE
    assert exc_info.value.invalid_ids == ["missing-1", "missing-2"]
    assert all(u.username != "alice" for u in store.users.values())


def test_invalid_policy_reference_on_group_update(store):
    group = make_group(store, "Analysts")

    with pytest.raises(ValidationError) as exc_info:
        update_group(store, group.id, GroupUpdate(policies=["missing"]))

    assert exc_info.value.invalid_ids == ["missing"]
    assert store.groups[group.id].policies == []


def test_rename_to_own_name_is_allowed(store):
    alice = make_user(store, "alice", email="alice@example.com")
    group = make_group(store, "Analysts")

    updated = update_user(store, alice.id, UserUpdate(username="alice", email="ALICE@example.com"))
    renamed = update_group(store, group.id, GroupUpdate(name="analysts"))

    assert updated.email == "ALICE@example.com"
    assert renamed.name == "analysts"


# ============================================================================
# Concurrent writers
# ============================================================================

THREADS = 8


def run_together(fn, args):
    """Run ``fn`` once per item in ``args``, releasing all threads at once."""
    barrier = threading.Barrier(len(args))

    def worker(arg):
        barrier.wait()
        return fn(arg)

    with ThreadPoolExecutor(max_workers=len(args)) as pool:
        futures = [pool.submit(worker, arg) for arg in args]
    return [f.exception() for f in futures]


def test_concurrent_creates_with_same_name_admit_one(store):
    names = ["Racers" if i % 2 else "racers" for i in range(THREADS)]

    errors = run_together(lambda name: make_group(store, name), names)

    assert errors.count(None) == 1
    assert all(isinstance(e, Conflict) for e in errors if e is not None)
    assert len([g for g in store.groups.values() if g.name.lower() == "racers"]) == 1


def test_concurrent_membership_grants_lose_no_update(store):
    alice = make_user(store, "alice")
    groups = [make_group(store, f"Team{chr(ord('A') + i)}") for i in range(THREADS)]

    errors = run_together(lambda group: add_user_to_group(store, alice.id, group.id), groups)

    assert errors == [None] * THREADS
    assert sorted(store.users[alice.id].groups) == sorted(g.id for g in groups)
