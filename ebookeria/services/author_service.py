from sqlalchemy.ext.asyncio import AsyncSession

from ebookeria.models.catalog_model import AuthorCreate
from ebookeria.db.schema import Author


async def get_author(session: AsyncSession, author_id: int) -> Author | None:
    return await session.get(Author, author_id)


async def create_author(session: AsyncSession, data: AuthorCreate) -> Author:
    author = Author(**data.model_dump())
    session.add(author)
    await session.commit()
    await session.refresh(author)
    return author
