"""
Seed the permission catalog and the bootstrap admin. Safe to re-run. From project root:

  python -m app.scripts.seed
"""

import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.catalog import seed_admin, seed_catalog

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    db = SessionLocal()
    try:
        perms, roles, edges = seed_catalog(db)
        admin = seed_admin(db, settings)
        logger.info(
            "Seed completed: permissions_added=%s roles_added=%s role_permissions_added=%s admin_id=%s",
            perms,
            roles,
            edges,
            admin.id,
        )
        return 0
    except Exception as e:
        logger.exception("Seed failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
