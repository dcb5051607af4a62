import argparse
import asyncio
import logging
from pathlib import Path

from ebookeria.core.config import config
from ebookeria.core.logging import setup_logging
from ebookeria.db.session import create_schema, create_session_factory, get_db_session
from ebookeria.models.catalog_model import AuthorCreate, CategoryCreate, UserCreate
from ebookeria.services.author_service import create_author
from ebookeria.services.category_service import create_category
from ebookeria.services.user_service import create_user, get_user_by_email


LOG_FILE = Path("logs/ebookeria.log")
logger = logging.getLogger("ebookeria")

SAMPLE_CATEGORIES = ["Fiction", "Science", "History", "Programming"]
SAMPLE_AUTHORS = ["Ursula K. Le Guin", "Carl Sagan", "Mary Beard", "Brian W. Kernighan"]
SAMPLE_USER_EMAIL = "admin@ebookeria.local"


async def init_db(db_url: str) -> None:
    db_factory = create_session_factory(db_url)
    engine = db_factory.kw["bind"]
    await create_schema(engine)
    logger.info("Database schema created.")
    await engine.dispose()


async def seed(db_url: str) -> None:
    db_factory = create_session_factory(db_url)

    async with get_db_session(db_factory) as db:
        if await get_user_by_email(db, SAMPLE_USER_EMAIL) is not None:
            logger.info("Sample data already present, nothing to do.")
        else:
            for name in SAMPLE_CATEGORIES:
                await create_category(db, CategoryCreate(name=name))
            for full_name in SAMPLE_AUTHORS:
                await create_author(db, AuthorCreate(full_name=full_name))
            await create_user(db, UserCreate(email=SAMPLE_USER_EMAIL, full_name="Administrator"))
            logger.info(
                f"Seeded {len(SAMPLE_CATEGORIES)} categories, {len(SAMPLE_AUTHORS)} authors and 1 user."
            )

    engine = db_factory.kw["bind"]
    await engine.dispose()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="ebookeria catalog maintenance")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("init-db", help="create all tables")
    subparsers.add_parser("seed", help="insert sample categories, authors and a user")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    setup_logging(log_level=config.log_level, log_file=LOG_FILE, echo_sql=config.debug)

    if args.command == "init-db":
        asyncio.run(init_db(config.db_url))
    elif args.command == "seed":
        asyncio.run(seed(config.db_url))


if __name__ == "__main__":
    main()
