"""
Create a user (e.g. first admin) without going through registration. Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD NAME [--role ROLE ...]
Example:
  python -m app.scripts.create_user admin@example.com your-secure-password "Site Admin" --role admin
"""
import argparse
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.errors import AppError
from app.core.logging import configure_logging
from app.core.validation import CredentialRules
from app.schemas.users import AdminUserCreate
from app.services.users import create_user


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a Gatehouse user.")
    parser.add_argument("email", help="Email address (login name)")
    parser.add_argument("password", help="Password")
    parser.add_argument("name", help="Display name")
    parser.add_argument(
        "--role",
        dest="roles",
        action="append",
        help="Role to grant; repeatable (default: user)",
    )
    args = parser.parse_args()
    configure_logging()

    rules = CredentialRules.from_settings(get_settings())
    db = SessionLocal()
    try:
        body = AdminUserCreate(
            email=args.email, password=args.password, name=args.name, roles=args.roles
        )
        profile = create_user(db, body, rules)
    except AppError as e:
        print(e.message, file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{profile.email}' with roles {', '.join(profile.roles)}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
