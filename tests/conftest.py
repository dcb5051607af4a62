import os

# Config is instantiated at import time, give it a complete environment.
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_PORT", "5432")
os.environ.setdefault("POSTGRES_USER", "ebookeria")
os.environ.setdefault("POSTGRES_PASSWORD", "ebookeria")
os.environ.setdefault("POSTGRES_DB", "ebookeria")

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from ebookeria.core.context import acting_user
from ebookeria.db.schema import Author, Category, User
from ebookeria.db.session import create_schema
from ebookeria.models.ebook_model import EbookCreate
from ebookeria.services.ebook_service import create_ebook


@dataclass
class Catalog:
    fiction_id: int
    science_id: int
    author_ids: list[int]
    author_names: list[str]
    reader_id: int
    reader_email: str
    other_email: str


@pytest_asyncio.fixture
async def engine(tmp_path: Path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ebookeria.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def catalog(session_factory) -> Catalog:
    names = ["Ursula K. Le Guin", "Iain M. Banks", "Octavia E. Butler"]
    async with session_factory() as session:
        fiction = Category(name="Fiction")
        science = Category(name="Science")
        authors = [Author(full_name=name) for name in names]
        reader = User(email="reader@example.com", full_name="Reader")
        other = User(email="other@example.com", full_name="Other Reader")
        session.add_all([fiction, science, *authors, reader, other])
        await session.commit()

        return Catalog(
            fiction_id=fiction.id,
            science_id=science.id,
            author_ids=[author.id for author in authors],
            author_names=names,
            reader_id=reader.id,
            reader_email=reader.email,
            other_email=other.email,
        )


@pytest.fixture
def make_ebook(session, catalog):
    """Create an ebook as the reader; keyword arguments override the defaults."""

    async def _make(**overrides):
        data = {
            "title": "The Dispossessed",
            "description": "An ambiguous utopia.",
            "published_year": date(1974, 5, 1),
            "price": Decimal("9.99"),
            "download_url": "https://cdn.example.com/dispossessed.epub",
            "category_id": catalog.fiction_id,
            "authors_id": [catalog.author_ids[0]],
            "image_urls": ["https://cdn.example.com/dispossessed.png"],
        }
        data.update(overrides)
        with acting_user(catalog.reader_email):
            return await create_ebook(session, EbookCreate(**data))

    return _make


@pytest.fixture
def statements(engine):
    """SQL statements executed on the engine while the test runs."""

    captured: list[str] = []

    def _capture(conn, cursor, statement, parameters, context, executemany):
        captured.append(statement)

    event.listen(engine.sync_engine, "before_cursor_execute", _capture)
    yield captured
    event.remove(engine.sync_engine, "before_cursor_execute", _capture)


def _write_target(statement: str) -> str | None:
    words = statement.split()
    verb = words[0].upper()
    if verb == "UPDATE":
        return words[1]
    if verb in ("INSERT", "DELETE"):
        return words[2]
    return None


def writes_to(statements: list[str], table: str) -> list[str]:
    return [statement for statement in statements if _write_target(statement) == table]


@pytest.fixture
def writes():
    return writes_to
