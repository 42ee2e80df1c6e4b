"""
Grant the admin role to an existing user. Run from project root:
  python -m app.scripts.promote_user EMAIL
"""
import argparse
import logging
import sys

from app.core.database import SessionLocal
from app.core.errors import AppError
from app.core.logging import configure_logging
from app.services.guards import ADMIN_ROLE
from app.services.resolver import assign_role, get_roles_for_user
from app.services.users import get_user_by_email

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Promote a user to the admin role.")
    parser.add_argument("email", help="Email of the user to promote")
    args = parser.parse_args()
    configure_logging()

    db = SessionLocal()
    try:
        user = get_user_by_email(db, args.email)
        if user is None:
            print(f"User with email '{args.email}' not found.", file=sys.stderr)
            return 1
        if ADMIN_ROLE in get_roles_for_user(db, user.id):
            logger.info("User %s (%s) already has admin role", user.name, user.email)
            return 0
        assign_role(db, user.id, ADMIN_ROLE)
        logger.info("Promoted user %s (%s) to admin role", user.name, user.email)
        return 0
    except AppError as e:
        print(f"Failed to promote user: {e.message}", file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
