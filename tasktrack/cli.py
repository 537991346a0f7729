"""
TaskTrack CLI — database bootstrap and server management.

Commands:
- tasktrack init-db       — Create the database tables
- tasktrack create-admin  — Create an admin account (or reset its password)
- tasktrack serve         — Start the API server under uvicorn
"""

from __future__ import annotations

import argparse
import getpass
import logging
import os
from typing import Optional

logger = logging.getLogger("tasktrack.cli")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="tasktrack",
        description="TaskTrack — multi-user task manager",
    )
    parser.add_argument(
        "--config", default=None, help="Path to tasktrack.yaml (default: auto-discover)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # tasktrack init-db
    subparsers.add_parser("init-db", help="Create database tables")

    # tasktrack create-admin
    admin_parser = subparsers.add_parser("create-admin", help="Create an admin account")
    admin_parser.add_argument("--email", required=True, help="Admin email address")
    admin_parser.add_argument("--name", default="Administrator", help="Display name")
    admin_parser.add_argument("--password", help="Admin password (prompted if not provided)")

    # tasktrack serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", help="Host to bind (default: server.host)")
    serve_parser.add_argument("--port", type=int, help="Port to bind (default: server.port)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    args = parser.parse_args(argv)

    if args.command == "init-db":
        return cmd_init_db(args)
    elif args.command == "create-admin":
        return cmd_create_admin(args)
    elif args.command == "serve":
        return cmd_serve(args)
    else:
        parser.print_help()
        return 0


def _load(args: argparse.Namespace):
    from tasktrack.engine.config import load_config
    from tasktrack.engine.errors import TaskTrackConfigError

    try:
        return load_config(args.config)
    except TaskTrackConfigError as e:
        print(f"[ERROR] {e.message}")
        return None


def cmd_init_db(args: argparse.Namespace) -> int:
    """Create every table on the configured database."""
    config = _load(args)
    if config is None:
        return 1

    from sqlalchemy.exc import SQLAlchemyError

    from tasktrack.db.session import health_check, init_db

    try:
        factory = init_db(config.database.url, create_tables=True)
    except SQLAlchemyError as e:
        print(f"[ERROR] Failed to create tables: {e}")
        return 1
    if not health_check(factory):
        print(f"[ERROR] Database not reachable: {config.database.url}")
        return 1
    print(f"[OK] Database tables created ({config.database.url})")
    return 0


def cmd_create_admin(args: argparse.Namespace) -> int:
    """
    Create an admin user. Admins cannot sign up through the API unless
    security.allow_admin_signup is set, so this is the bootstrap path.
    """
    config = _load(args)
    if config is None:
        return 1

    from tasktrack.db.session import init_db, session_scope
    from tasktrack.engine.context import ROLE_ADMIN
    from tasktrack.engine.security import hash_password
    from tasktrack.users.schemas import EMAIL_RE, PASSWORD_RE
    from tasktrack.users.store import UserStore

    email = args.email.strip().lower()
    if not EMAIL_RE.match(email):
        print(f"[ERROR] Invalid email address: {args.email}")
        return 1

    password = args.password
    if not password:
        while True:
            password = getpass.getpass("  Enter admin password: ")
            confirm = getpass.getpass("  Confirm password: ")
            if password == confirm:
                break
            print("  Passwords do not match. Try again.")

    if not (6 <= len(password) <= 100) or not PASSWORD_RE.match(password):
        print("[ERROR] Password must be 6-100 characters with upper-case, "
              "lower-case and a digit")
        return 1

    factory = init_db(config.database.url, create_tables=True)
    password_hash = hash_password(password, rounds=config.security.bcrypt_rounds)
    with session_scope(factory) as session:
        users = UserStore(session)
        existing = users.get_by_email(email)
        if existing is not None:
            if existing.role != ROLE_ADMIN:
                print(f"[ERROR] {email} already exists as a regular user")
                return 1
            existing.password_hash = password_hash
            print(f"[OK] Admin password updated for {email}")
            return 0
        user = users.add(args.name, email, password_hash, role=ROLE_ADMIN)
        print(f"[OK] Created admin user {user.email} (id={user.id})")
    logger.info("Admin account %s created from CLI", email)
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API under uvicorn."""
    config = _load(args)
    if config is None:
        return 1

    import uvicorn

    from tasktrack.api.app import create_app
    from tasktrack.engine.config import CONFIG_PATH_ENV

    host = args.host or config.server.host
    port = args.port or config.server.port
    print(f"Starting {config.name} API on http://{host}:{port}")
    try:
        if args.reload:
            # The reloader imports the factory in a fresh process
            if args.config:
                os.environ[CONFIG_PATH_ENV] = os.path.abspath(args.config)
            uvicorn.run("tasktrack.api.app:create_app", factory=True,
                        host=host, port=port, reload=True)
        else:
            uvicorn.run(create_app(config), host=host, port=port)
        return 0
    except KeyboardInterrupt:
        print("\nServer stopped.")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
