"""Create an admin account, or promote an existing user to admin.

Usage:
    python create_admin.py admin@example.com --first-name Shop --last-name Admin
"""
import argparse
import getpass
import logging
from typing import Optional

from sqlalchemy.orm import Session

from core.access import Role
from core.db import Base, engine, db_session
from core.log import setup_logging
from models.user import User
from security.password import hash_password

logger = logging.getLogger(__name__)


def create_admin_user(
    db: Session,
    email: str,
    password: Optional[str] = None,
    first_name: str = "Admin",
    last_name: str = "",
) -> User:
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).one_or_none()
    if user:
        user.role = Role.ADMIN.value
        if password:
            user.password_hash = hash_password(password)
        logger.info("Promoted user %s to admin", user.id)
    else:
        if not password:
            raise ValueError("A password is required to create a new admin")
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=hash_password(password),
            role=Role.ADMIN.value,
        )
        db.add(user)
        logger.info("Created admin %s", email)
    db.flush()
    return user


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("email")
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="")
    parser.add_argument("--password", help="prompted for when omitted")
    args = parser.parse_args(argv)

    setup_logging()
    Base.metadata.create_all(bind=engine)
    password = args.password or getpass.getpass("Password (blank to keep existing): ") or None
    with db_session() as db:
        create_admin_user(db, args.email, password, args.first_name, args.last_name)


if __name__ == "__main__":
    main()
