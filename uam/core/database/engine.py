"""
Entity store: in-memory tables with a durable JSON snapshot.

The store owns four tables (users, groups, policies, accessRequests). Every
mutation runs inside ``Store.transaction()``, which holds the store lock,
lets the caller mutate the tables, then writes the whole snapshot to disk
before returning. If anything raises inside the transaction, including the
write itself, the tables are restored to their state before the transaction.

Usage:
    store = Store.open("./data/db.json")
    with store.transaction():
        store.users[user.id] = user
    store.close()

In FastAPI routes:
    @router.get("/items")
    def get_items(store: Store = Depends(get_store)):
        ...
"""
import contextlib
import json
import os
import tempfile
import threading
from collections.abc import Iterator
from pathlib import Path

from fastapi import Request
from pydantic import ValidationError as PydanticValidationError

from uam.core.errors import StoreError, StoreLoadError, StoreWriteError
from uam.features.access_requests.models import AccessRequest
from uam.features.groups.models import Group
from uam.features.policies.models import Policy
from uam.features.users.models import User
from uam.utils import get_logger


log = get_logger(__name__)


class Store:
    """
    Process-wide entity store.

    Pass ``path=None`` for an in-memory store that never touches disk.
    """

    def __init__(self, path: str | os.PathLike | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self.users: dict[str, User] = {}
        self.groups: dict[str, Group] = {}
        self.policies: dict[str, Policy] = {}
        self.access_requests: dict[str, AccessRequest] = {}
        self._lock = threading.RLock()
        self._depth = 0
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def open(cls, path: str | os.PathLike | None = None, *, seed: bool = True) -> "Store":
        """
        Load the store from ``path`` and seed defaults on first startup.

        A missing file means an empty store. A file that cannot be read or
        parsed raises StoreLoadError; nothing is seeded over it.
        """
        from uam.core.database.seed import seed_defaults

        store = cls(path)
        store.load()
        if seed:
            seed_defaults(store)
        log.info(
            f"Store opened ({store.path or 'in-memory'}): {len(store.users)} users, "
            f"{len(store.groups)} groups, {len(store.policies)} policies, "
            f"{len(store.access_requests)} access requests"
        )
        return store

    def close(self) -> None:
        with self._lock:
            self._closed = True
        log.info(f"Store closed ({self.path or 'in-memory'})")

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise StoreError("Store is closed")

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def read(self) -> Iterator["Store"]:
        """Hold the store lock for a consistent read."""
        with self._lock:
            self._check_open()
            yield self

    @contextlib.contextmanager
    def transaction(self) -> Iterator["Store"]:
        """
        Mutate the tables and persist them as one unit.

        Nested transactions join the outermost one; only the outermost
        flushes or restores.
        """
        with self._lock:
            self._check_open()
            if self._depth:
                yield self
                return

            backup = self._copy_tables()
            self._depth = 1
            try:
                yield self
                self.flush()
            except BaseException:
                self._restore_tables(backup)
                raise
            finally:
                self._depth = 0

    def _tables(self) -> dict[str, dict]:
        return {
            "users": self.users,
            "groups": self.groups,
            "policies": self.policies,
            "accessRequests": self.access_requests,
        }

    def _copy_tables(self) -> dict[str, dict]:
        # Records are replaced, never mutated, so a shallow copy is a snapshot.
        return {name: dict(table) for name, table in self._tables().items()}

    def _restore_tables(self, backup: dict[str, dict]) -> None:
        for name, table in self._tables().items():
            table.clear()
            table.update(backup[name])

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_document(self) -> dict[str, list[dict]]:
        """Serialize all four tables into one snapshot document."""
        return {
            name: [record.to_document() for record in table.values()]
            for name, table in self._tables().items()
        }

    def flush(self) -> None:
        """
        Write the snapshot to disk atomically.

        The document goes to a temp file in the target directory, is fsynced,
        then renamed over the target, so readers see either the old or the
        new snapshot and never a partial one. The directory is fsynced after
        the rename so the rename itself survives a crash.
        """
        if self.path is None:
            return

        payload = json.dumps(self.to_document(), indent=2, ensure_ascii=False)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            log.error(f"Failed to persist store to {self.path}: {e}")
            raise StoreWriteError(f"Failed to persist store: {e}") from e

        # The new snapshot is in place; a failure here cannot be rolled back.
        try:
            _fsync_directory(self.path.parent)
        except OSError as e:
            log.warning(f"Could not fsync directory {self.path.parent}: {e}")

    def load(self) -> None:
        """Replace the in-memory tables with the contents of the backing file."""
        if self.path is None:
            return
        if not self.path.exists():
            log.info(f"No store file at {self.path}, starting empty")
            return

        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                document = json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreLoadError(f"Could not read store file {self.path}: {e}") from e

        if not isinstance(document, dict):
            raise StoreLoadError(f"Store file {self.path} does not contain a JSON object")

        migrated = migrate_document(document)

        try:
            users = _load_table(document, "users", User)
            groups = _load_table(document, "groups", Group)
            policies = _load_table(document, "policies", Policy)
            access_requests = _load_table(document, "accessRequests", AccessRequest)
        except PydanticValidationError as e:
            raise StoreLoadError(f"Store file {self.path} contains invalid records: {e}") from e

        with self._lock:
            self.users, self.groups = users, groups
            self.policies, self.access_requests = policies, access_requests
            if migrated:
                log.info(f"Migrated {migrated} legacy user records")
                self.flush()


def _fsync_directory(path: Path) -> None:
    """Make a rename inside ``path`` durable. Directories cannot be opened this way on Windows."""
    if os.name != "posix":
        return
    fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _load_table(document: dict, name: str, model: type) -> dict:
    rows = document.get(name) or []
    if not isinstance(rows, list):
        raise StoreLoadError(f"Table {name!r} is not a list")
    table = {}
    for raw in rows:
        record = model.model_validate(raw)
        table[record.id] = record
    return table


def migrate_document(document: dict) -> int:
    """
    Fill fields that older snapshots did not record.

    Returns the number of user records changed.
    """
    migrated = 0
    for raw in document.get("users") or []:
        if not isinstance(raw, dict):
            continue
        changed = False
        username = str(raw.get("username", ""))
        if "passwordHash" not in raw and "password" in raw:
            raw["passwordHash"] = raw.pop("password")
            changed = True
        if not raw.get("email"):
            raw["email"] = username if "@" in username else f"{username}@example.com"
            changed = True
        if not raw.get("firstName"):
            raw["firstName"] = "System" if username == "admin" else "First"
            changed = True
        if not raw.get("lastName"):
            raw["lastName"] = "Administrator" if username == "admin" else "Last"
            changed = True
        migrated += changed
    return migrated


def get_store(request: Request) -> Store:
    """
    Dependency for getting the application's store.

    Usage in FastAPI routes:
        @router.get("/items")
        def get_items(store: Annotated[Store, Depends(get_store)]):
            ...
    """
    return request.app.state.store
