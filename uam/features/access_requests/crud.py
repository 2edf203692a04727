"""
Access request workflow.

State machine:
    pending --approve--> approved
    pending --deny-----> denied

Approved and denied are terminal. Approval adds the request's group to the
requester's groups in the same transaction as the status change, so either
both are persisted or neither is.
"""
from typing import Optional

from uam.core.database import index
from uam.core.database.base import utcnow
from uam.core.database.engine import Store
from uam.core.errors import Forbidden, NotFound, StateError, ValidationError
from uam.features.access_requests.models import AccessRequest, AccessRequestStatus
from uam.features.permissions.dependencies import is_admin
from uam.features.users.crud import add_user_to_group
from uam.features.users.models import User
from uam.utils import get_logger


log = get_logger(__name__)


TERMINAL_STATUSES = (AccessRequestStatus.APPROVED, AccessRequestStatus.DENIED)


def _parse_status(status) -> AccessRequestStatus:
    try:
        parsed = AccessRequestStatus(status)
    except ValueError:
        parsed = None
    if parsed not in TERMINAL_STATUSES:
        raise ValidationError(
            'Status must be either "approved" or "denied"',
            field="status",
        )
    return parsed


def create_access_request(
    store: Store,
    user_id: str,
    group_id: str,
    reason: Optional[str] = None,
) -> AccessRequest:
    """
    Open a pending request for ``user_id`` to join ``group_id``.

    Raises:
        NotFound: the group or the user does not exist
        StateError: the user is already a member, or already has a pending
            request for this group
    """
    with store.transaction():
        if group_id not in store.groups:
            raise NotFound("Group", group_id)
        user = store.users.get(user_id)
        if user is None:
            raise NotFound("User", user_id)
        if group_id in user.groups:
            raise StateError("You are already a member of this group")

        duplicate = any(
            r.user_id == user_id and r.group_id == group_id and r.is_pending
            for r in store.access_requests.values()
        )
        if duplicate:
            raise StateError("You already have a pending request for this group")

        request = AccessRequest(user_id=user_id, group_id=group_id, reason=reason)
        store.access_requests[request.id] = request

    log.info(f"Access request {request.id}: user {user_id} -> group {group_id}")
    return request


def process_access_request(
    store: Store,
    request_id: str,
    status,
    processor_id: str,
    reason: Optional[str] = None,
) -> AccessRequest:
    """
    Approve or deny a pending request.

    Args:
        status: "approved" or "denied"
        processor_id: id of the user processing the request
        reason: replaces the stored reason when given

    Raises:
        ValidationError: ``status`` is not approved/denied, or the target
            group was deleted after the request was opened
        NotFound: unknown request id
        StateError: the request was already processed
    """
    new_status = _parse_status(status)

    with store.transaction():
        request = store.access_requests.get(request_id)
        if request is None:
            raise NotFound("Access request", request_id)
        if not request.is_pending:
            raise StateError(f"Access request has already been {request.status.value}")

        if new_status == AccessRequestStatus.APPROVED:
            index.ensure_group_ids(store, [request.group_id])

        changes = {
            "status": new_status,
            "processed_at": utcnow(),
            "processed_by": processor_id,
        }
        if reason is not None:
            changes["reason"] = reason
        request = request.model_copy(update=changes)
        store.access_requests[request_id] = request

        if new_status == AccessRequestStatus.APPROVED:
            _grant_membership(store, request)

    log.info(f"Access request {request_id} {new_status.value} by {processor_id}")
    return request


def _grant_membership(store: Store, request: AccessRequest) -> None:
    if request.user_id not in store.users:
        log.warning(
            f"Access request {request.id} approved but user {request.user_id} no longer exists"
        )
        return
    add_user_to_group(store, request.user_id, request.group_id)


def list_access_requests(store: Store, caller: User) -> list[AccessRequest]:
    """Admins see every request; everyone else sees only their own."""
    with store.read():
        requests = list(store.access_requests.values())
    if is_admin(caller):
        return requests
    return [r for r in requests if r.user_id == caller.id]


def get_access_request(store: Store, request_id: str, caller: User) -> AccessRequest:
    with store.read():
        request = store.access_requests.get(request_id)
    if request is None:
        raise NotFound("Access request", request_id)
    if not is_admin(caller) and request.user_id != caller.id:
        raise Forbidden("You can only view your own access requests")
    return request


def delete_access_request(store: Store, request_id: str, caller: User) -> None:
    with store.transaction():
        request = store.access_requests.get(request_id)
        if request is None:
            raise NotFound("Access request", request_id)
        if not is_admin(caller) and request.user_id != caller.id:
            raise Forbidden("You can only delete your own access requests")
        del store.access_requests[request_id]

    log.info(f"Deleted access request {request_id}")
