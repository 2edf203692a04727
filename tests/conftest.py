import os

# Cheap hashing for tests; must be set before uam.core.config is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret-key-with-enough-length-for-hs256")

import pytest
from fastapi.testclient import TestClient

from uam.core.database.engine import Store
from uam.features.groups.crud import create_group
from uam.features.groups.schemas import GroupCreate
from uam.features.policies.crud import create_policy
from uam.features.policies.models import Permission
from uam.features.policies.schemas import PolicyCreate
from uam.features.users.auth import create_access_token
from uam.features.users.crud import create_user, get_user_by_username
from uam.features.users.schemas import UserCreate
from uam.main import create_app


PASSWORD = "Passw0rd!"


def make_user(store, username, groups=(), role="user", email=None):
    return create_user(
        store,
        UserCreate(
            username=username,
            email=email or f"{username}@example.com",
            first_name="Test",
            last_name="User",
            password=PASSWORD,
            role=role,
            groups=list(groups),
        ),
    )


def make_group(store, name, policies=()):
    return create_group(store, GroupCreate(name=name, policies=list(policies)))


def make_policy(store, name, pairs=()):
    return create_policy(
        store,
        PolicyCreate(name=name, permissions=[Permission(resource=r, action=a) for r, a in pairs]),
    )


def group_named(store, name):
    return next(g for g in store.groups.values() if g.name == name)


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def store():
    """Seeded in-memory store."""
    store = Store.open()
    yield store
    store.close()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "data" / "db.json"


@pytest.fixture
def file_store(store_path):
    """Seeded store backed by a temp file."""
    store = Store.open(store_path)
    yield store
    store.close()


@pytest.fixture
def admin(store):
    return get_user_by_username(store, "admin")


@pytest.fixture
def member(store):
    """Non-admin user in the seeded "Users" group."""
    return make_user(store, "member", groups=[group_named(store, "Users").id])


@pytest.fixture
def client(store):
    app = create_app(store=store)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def member_headers(member):
    return auth_headers(member)
