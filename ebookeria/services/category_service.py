from sqlalchemy.ext.asyncio import AsyncSession

from ebookeria.models.catalog_model import CategoryCreate
from ebookeria.db.schema import Category


async def get_category(session: AsyncSession, category_id: int) -> Category | None:
    return await session.get(Category, category_id)


async def create_category(session: AsyncSession, data: CategoryCreate) -> Category:
    category = Category(**data.model_dump())
    session.add(category)
    await session.commit()
    await session.refresh(category)
    return category
