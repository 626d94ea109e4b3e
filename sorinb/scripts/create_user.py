"""
Create a user (e.g. an extra admin). Run from project root:
  python -m sorinb.scripts.create_user EMAIL PASSWORD [role]
Example:
  python -m sorinb.scripts.create_user admin@example.com your-secure-password admin
"""
import argparse
import logging
import sys

from sorinb.core.config import get_settings
from sorinb.core.database import Database
from sorinb.core.security import is_valid_email, is_valid_password, normalize_email
from sorinb.services.users import EmailTakenError, create_user

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)


def main(argv: list[str] | None = None, database: Database | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a SorinB user.")
    parser.add_argument("email", help="Email address (stored lower-cased)")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument("role", nargs="?", default="user", choices=["user", "admin"])
    args = parser.parse_args(argv)

    email = normalize_email(args.email)
    if not is_valid_email(email):
        print("Invalid email address.", file=sys.stderr)
        return 1
    if not is_valid_password(args.password):
        print("Password must be 8-128 characters.", file=sys.stderr)
        return 1

    owned = database is None
    db_handle = Database.from_settings(get_settings()) if owned else database
    db = db_handle.session()
    try:
        create_user(db, email, args.password, role=args.role)
    except EmailTakenError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
        if owned:
            db_handle.dispose()
    print(f"Created user '{email}' with role '{args.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
