"""
Group operations over the entity store.
"""
from uam.core.database import index
from uam.core.database.base import apply_patch
from uam.core.database.engine import Store
from uam.core.errors import NotFound
from uam.features.groups.models import Group, GroupPatch
from uam.features.groups.schemas import GroupCreate, GroupUpdate
from uam.features.users.models import UserPatch
from uam.utils import get_logger


log = get_logger(__name__)


def list_groups(store: Store) -> list[Group]:
    with store.read():
        return list(store.groups.values())


def get_group(store: Store, group_id: str) -> Group:
    with store.read():
        group = store.groups.get(group_id)
    if group is None:
        raise NotFound("Group", group_id)
    return group


def create_group(store: Store, data: GroupCreate) -> Group:
    policies = list(dict.fromkeys(data.policies))

    with store.transaction():
        index.ensure_group_name_unique(store, data.name)
        index.ensure_policy_ids(store, policies)

        group = Group(name=data.name, policies=policies)
        store.groups[group.id] = group

    log.info(f"Created group {group.id} ({group.name})")
    return group


def update_group(store: Store, group_id: str, data: GroupUpdate) -> Group:
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    if "policies" in changes:
        changes["policies"] = list(dict.fromkeys(changes["policies"]))

    with store.transaction():
        group = store.groups.get(group_id)
        if group is None:
            raise NotFound("Group", group_id)

        if "name" in changes:
            index.ensure_group_name_unique(store, changes["name"], exclude_id=group_id)
        if "policies" in changes:
            index.ensure_policy_ids(store, changes["policies"])

        group = apply_patch(group, GroupPatch(**changes))
        store.groups[group_id] = group

    log.info(f"Updated group {group_id}: {sorted(changes)}")
    return group


def delete_group(store: Store, group_id: str) -> None:
    """
    Delete a group and remove it from every user's groups.

    Access requests that reference the group are kept as history.
    """
    with store.transaction():
        if store.groups.pop(group_id, None) is None:
            raise NotFound("Group", group_id)

        pruned = 0
        for user in list(store.users.values()):
            if group_id in user.groups:
                remaining = [g for g in user.groups if g != group_id]
                store.users[user.id] = apply_patch(user, UserPatch(groups=remaining))
                pruned += 1

    log.info(f"Deleted group {group_id}, removed from {pruned} users")
