"""
Database maintenance commands.

Usage Examples:
    Create missing tables:
        python -m yelp_camp.manage init-db

    Replace all campgrounds with 50 generated ones:
        python -m yelp_camp.manage seed --count 50

    Delete expired sessions from the store:
        python -m yelp_camp.manage purge-sessions

Functions can also be used programmatically with an existing app:
    from yelp_camp.manage import seed_database
    success, message = seed_database(app, count=10)
"""

import argparse
import random
import sys
from typing import Optional, Tuple

from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from yelp_camp.app import create_app
from yelp_camp.context import get_runtime
from yelp_camp.logging_config import get_logger
from yelp_camp.seeds import ensure_seed_user, seed_campgrounds
from yelp_camp.sessions import purge_expired_sessions

logger = get_logger(__name__)

DEFAULT_SEED_USERNAME = "camper"
DEFAULT_SEED_EMAIL = "camper@example.com"


def init_database(app: Flask) -> Tuple[bool, str]:
    """Create any missing tables."""
    try:
        get_runtime(app).init_db()
    except SQLAlchemyError as e:
        return False, f"Failed to create tables: {e}"
    return True, "Tables are up to date"


def seed_database(
    app: Flask,
    count: int = 50,
    password: str = "camper",
    random_seed: Optional[int] = None,
) -> Tuple[bool, str]:
    """Replace all campgrounds with generated ones owned by the seed account.

    Args:
        app: Application whose database is seeded.
        count: Number of campgrounds to create.
        password: Password for a newly created seed account.
        random_seed: Seed for reproducible output.

    Returns:
        Tuple[bool, str]: (success, message)
    """
    if count < 0:
        return False, "Count must not be negative"

    with app.app_context():
        try:
            author = ensure_seed_user(DEFAULT_SEED_USERNAME, DEFAULT_SEED_EMAIL, password)
            campgrounds = seed_campgrounds(author, count, random.Random(random_seed))
        except SQLAlchemyError as e:
            get_runtime(app).db.session.rollback()
            logger.error("Seeding failed: %s", e)
            return False, f"Seeding failed: {e}"

    return True, f"Seeded {len(campgrounds)} campgrounds for '{DEFAULT_SEED_USERNAME}'"


def purge_sessions(app: Flask) -> Tuple[bool, str]:
    """Remove expired session records."""
    with app.app_context():
        try:
            removed = purge_expired_sessions()
        except SQLAlchemyError as e:
            get_runtime(app).db.session.rollback()
            return False, f"Purge failed: {e}"
    return True, f"Removed {removed} expired session(s)"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Maintain the Yelp Camp database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")
    subparsers.required = True

    subparsers.add_parser("init-db", help="Create missing tables")

    seed_parser = subparsers.add_parser("seed", help="Load demo campgrounds")
    seed_parser.add_argument(
        "--count", type=int, default=50, help="Number of campgrounds (default: 50)"
    )
    seed_parser.add_argument(
        "--password",
        type=str,
        default="camper",
        help="Password for the seed account if it has to be created",
    )
    seed_parser.add_argument(
        "--random-seed", type=int, default=None, help="Seed for reproducible data"
    )

    subparsers.add_parser("purge-sessions", help="Delete expired sessions")
    return parser


def main(argv: Optional[list[str]] = None, app: Optional[Flask] = None) -> int:
    args = build_parser().parse_args(argv)
    app = app or create_app()

    if args.command == "init-db":
        success, message = init_database(app)
    elif args.command == "seed":
        success, message = seed_database(
            app, count=args.count, password=args.password, random_seed=args.random_seed
        )
    else:
        success, message = purge_sessions(app)

    print(message)
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
