"""
Seed script to populate the default policies, groups and admin user.

The server seeds an empty store on startup by itself; run this to prepare a
store file ahead of time or to check what an existing file holds.

Usage:
    python -m scripts.seed_store
"""
from uam.core import config
from uam.core.database.engine import Store
from uam.core.database.seed import DEFAULT_GROUPS, seed_defaults
from uam.utils import get_logger


log = get_logger(__name__)


def main():
    """Open the configured store and seed it if it has no users."""
    log.info(f"Starting store seeding at {config.STORE_PATH}...")

    store = Store.open(config.STORE_PATH, seed=False)
    try:
        if seed_defaults(store):
            log.info("Store seeding completed successfully!")
            log.info("")
            log.info("Default groups created:")
            for group_name, policy_names in DEFAULT_GROUPS.items():
                log.info(f"  - {group_name}: {', '.join(policy_names)}")
            log.info(f"Admin user: {config.DEFAULT_ADMIN_USERNAME}")
        else:
            log.info(f"Store already has {len(store.users)} users, skipping")
    except Exception as e:
        log.error(f"Error seeding store: {e}", exc_info=True)
        raise
    finally:
        store.close()


if __name__ == "__main__":
    main()
