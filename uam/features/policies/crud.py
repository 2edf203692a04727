"""
Policy operations over the entity store.
"""
from uam.core.database import index
from uam.core.database.base import apply_patch
from uam.core.database.engine import Store
from uam.core.errors import NotFound
from uam.features.groups.models import GroupPatch
from uam.features.policies.models import Policy, PolicyPatch
from uam.features.policies.schemas import PolicyCreate, PolicyUpdate
from uam.utils import get_logger


log = get_logger(__name__)


def list_policies(store: Store) -> list[Policy]:
    with store.read():
        return list(store.policies.values())


def get_policy(store: Store, policy_id: str) -> Policy:
    with store.read():
        policy = store.policies.get(policy_id)
    if policy is None:
        raise NotFound("Policy", policy_id)
    return policy


def create_policy(store: Store, data: PolicyCreate) -> Policy:
    """Permissions are stored as given; duplicates are kept."""
    with store.transaction():
        index.ensure_policy_name_unique(store, data.name)

        policy = Policy(name=data.name, permissions=list(data.permissions))
        store.policies[policy.id] = policy

    log.info(f"Created policy {policy.id} ({policy.name})")
    return policy


def update_policy(store: Store, policy_id: str, data: PolicyUpdate) -> Policy:
    changes = {
        name: getattr(data, name)
        for name in data.model_fields_set
        if getattr(data, name) is not None
    }

    with store.transaction():
        policy = store.policies.get(policy_id)
        if policy is None:
            raise NotFound("Policy", policy_id)

        if "name" in changes:
            index.ensure_policy_name_unique(store, changes["name"], exclude_id=policy_id)

        policy = apply_patch(policy, PolicyPatch(**changes))
        store.policies[policy_id] = policy

    log.info(f"Updated policy {policy_id}: {sorted(changes)}")
    return policy


def delete_policy(store: Store, policy_id: str) -> None:
    """Delete a policy and remove it from every group's policies."""
    with store.transaction():
        if store.policies.pop(policy_id, None) is None:
            raise NotFound("Policy", policy_id)

        pruned = 0
        for group in list(store.groups.values()):
            if policy_id in group.policies:
                remaining = [p for p in group.policies if p != policy_id]
                store.groups[group.id] = apply_patch(group, GroupPatch(policies=remaining))
                pruned += 1

    log.info(f"Deleted policy {policy_id}, removed from {pruned} groups")
