from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ebookeria.core.context import get_current_user_email
from ebookeria.core.errors import NotFoundError
from ebookeria.models.catalog_model import UserCreate
from ebookeria.db.schema import User


async def get_user(session: AsyncSession, user_id: int) -> User | None:
    return await session.get(User, user_id)


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, data: UserCreate) -> User:
    user = User(**data.model_dump())
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def get_current_user(session: AsyncSession) -> User:
    """Resolve the user bound to the current request scope.

    Raises ``RuntimeError`` when no user is bound, which means the calling
    layer forgot to enter ``acting_user``.
    """

    email = get_current_user_email()
    if email is None:
        raise RuntimeError("No acting user is bound to the current context.")

    user = await get_user_by_email(session, email)
    if user is None:
        raise NotFoundError("User", email, field="email")
    return user
