#!/usr/bin/env python3

"""
Create an admin account that can log in to the post management panel.
Usage: python scripts/create_admin.py <username> [--full-name NAME] [--email EMAIL]
The password is prompted for unless --password is given.
"""

import argparse
import getpass
import logging
import os
import sys

# Add parent directory to path to import postdesk modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from postdesk.db.session import SessionLocal
from postdesk.db.init_db import create_all_tables
from postdesk.modules.admin_users.schemas.admin_user import AdminUserCreate
from postdesk.modules.admin_users.services.admin_user import (
    create_admin_user, get_admin_user_by_username
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("create-admin")

def main():
    parser = argparse.ArgumentParser(description="Create a Postdesk admin user")
    parser.add_argument("username", help="Login name for the new admin")
    parser.add_argument("--full-name", default=None, help="Display name shown as post author")
    parser.add_argument("--email", default=None, help="Contact email")
    parser.add_argument("--password", default=None, help="Password (prompted when omitted)")
    args = parser.parse_args()

    password = args.password or getpass.getpass("Password: ")
    if not password:
        logger.error("A password is required")
        sys.exit(1)

    create_all_tables()

    db = SessionLocal()
    try:
        if get_admin_user_by_username(db, args.username):
            logger.error(f"Admin user '{args.username}' already exists")
            sys.exit(1)

        user = create_admin_user(db, AdminUserCreate(
            username=args.username,
            full_name=args.full_name,
            email=args.email,
            password=password,
        ))
        logger.info(f"Created admin user '{user.username}' with ID {user.id}")
    finally:
        db.close()

if __name__ == "__main__":
    main()
