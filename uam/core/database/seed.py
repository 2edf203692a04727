"""
Default data written into an empty store on first startup.

Creates:
- "Admin Policy" with full CRUD on every managed resource
- "User Policy" with read access and access-request creation
- "Administrators" and "Users" groups bound to those policies
- The bootstrap admin account, placed in "Administrators"
"""
from uam.core import config
from uam.core.database.engine import Store
from uam.features.groups.models import Group
from uam.features.policies.models import Permission, Policy
from uam.features.users.auth import hash_password
from uam.features.users.models import Role, User
from uam.utils import get_logger


log = get_logger(__name__)


RESOURCES = ["users", "groups", "policies", "access-requests"]
ACTIONS = ["create", "read", "update", "delete"]


DEFAULT_POLICIES = {
    "Admin Policy": [(resource, action) for resource in RESOURCES for action in ACTIONS],
    "User Policy": [
        ("users", "read"),
        ("groups", "read"),
        ("access-requests", "create"),
        ("access-requests", "read"),
    ],
}


DEFAULT_GROUPS = {
    "Administrators": ["Admin Policy"],
    "Users": ["User Policy"],
}


ADMIN_GROUP = "Administrators"


def _find_by_name(table: dict, name: str):
    lowered = name.lower()
    for record in table.values():
        if record.name.lower() == lowered:
            return record
    return None


def seed_defaults(store: Store) -> bool:
    """
    Seed the default policies, groups and admin user into an empty store.

    Seeding is keyed on the Users table: it runs only while no user exists,
    so it happens at most once per backing file. Policies or groups that
    already exist under a default name are reused instead of duplicated.

    Returns:
        True if anything was written
    """
    with store.read():
        if store.users:
            return False

    # hashed outside the store lock
    password_hash = hash_password(config.DEFAULT_ADMIN_PASSWORD)

    with store.transaction():
        if store.users:
            return False

        policy_ids: dict[str, str] = {}
        for name, pairs in DEFAULT_POLICIES.items():
            policy = _find_by_name(store.policies, name)
            if policy is None:
                policy = Policy(
                    name=name,
                    permissions=[Permission(resource=r, action=a) for r, a in pairs],
                )
                store.policies[policy.id] = policy
                log.info(f"Seeded policy: {name}")
            policy_ids[name] = policy.id

        group_ids: dict[str, str] = {}
        for name, policy_names in DEFAULT_GROUPS.items():
            group = _find_by_name(store.groups, name)
            if group is None:
                group = Group(name=name, policies=[policy_ids[p] for p in policy_names])
                store.groups[group.id] = group
                log.info(f"Seeded group: {name}")
            group_ids[name] = group.id

        admin = User(
            username=config.DEFAULT_ADMIN_USERNAME,
            email=config.DEFAULT_ADMIN_EMAIL,
            first_name="System",
            last_name="Administrator",
            password_hash=password_hash,
            role=Role.ADMIN,
            groups=[group_ids[ADMIN_GROUP]],
        )
        store.users[admin.id] = admin
        log.info(f"Seeded admin user: {admin.username}")

    return True
