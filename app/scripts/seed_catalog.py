"""
Insert the default roles, permissions, role bundles and email templates if missing.
Safe to re-run. Run from project root:
  python -m app.scripts.seed_catalog
"""
import logging
import sys

from app.core.database import SessionLocal
from app.core.errors import AppError
from app.core.logging import configure_logging
from app.services.seed import seed_catalog

logger = logging.getLogger(__name__)


def main() -> int:
    configure_logging()
    db = SessionLocal()
    try:
        result = seed_catalog(db)
    except AppError as e:
        logger.error("Seeding failed: %s", e.message)
        return 1
    finally:
        db.close()
    print(
        f"Seeded: roles={result.roles_created} permissions={result.permissions_created} "
        f"links={result.links_created} templates={result.templates_created}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
