#!/usr/bin/env python3
"""
Create an admin account for the placement portal.

Usage: python scripts/create_admin.py <username> <password> [name]
"""
import sys
sys.path.insert(0, '.')

import logging

from app.database import Base, engine, session_scope
from app.services import auth_service

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def main(argv: list[str]) -> int:
    if len(argv) < 2:
        print(__doc__)
        return 1

    username, password = argv[0], argv[1]
    name = argv[2] if len(argv) > 2 else None

    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        if auth_service.get_user_by_username(db, username):
            logger.error(f"User '{username}' already exists")
            return 1
        user = auth_service.create_user(db, username, password, name)
        logger.info(f"Admin created: {user.username} (id={user.id})")
        return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
