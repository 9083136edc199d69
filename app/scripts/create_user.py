"""
Create a user from the command line (no registration UI). Run from project root:
  python -m app.scripts.create_user EMAIL NAME PASSWORD [--role ROLE]
Example:
  python -m app.scripts.create_user ana@example.com "Ana Lima" your-secure-password --role manager
"""
import argparse
import sys

from pydantic import ValidationError

from app.core.database import SessionLocal
from app.core.exceptions import WardenError
from app.schemas.users import UserCreate
from app.services import rbac, users
from app.services.catalog import DEFAULT_ROLE, RoleCode


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Warden user.")
    parser.add_argument("email", help="Account email")
    parser.add_argument("name", help="Display name (2-100 chars)")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument(
        "--role",
        default=DEFAULT_ROLE.value,
        choices=[r.value for r in RoleCode],
        help="Role to assign in addition to the default role",
    )
    args = parser.parse_args(argv)

    try:
        data = UserCreate(
            email=args.email.strip(),
            name=args.name.strip(),
            password=args.password,
            account_type=args.role,
        )
    except ValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        user = users.create_user(db, data)
        if args.role != DEFAULT_ROLE.value:
            rbac.assign_role(db, user.id, args.role)
        print(f"Created user '{user.email}' (id={user.id}) with role '{args.role}'.")
        return 0
    except WardenError as e:
        print(f"Could not create user: {e.message}", file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
