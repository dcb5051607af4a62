import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ebookeria.core.errors import NotFoundError
from ebookeria.db.schema import Ebook, Purchase
from ebookeria.services.user_service import get_current_user


logger = logging.getLogger("ebookeria.purchases")


async def record_purchase(session: AsyncSession, ebook_id: int) -> Purchase:
    """Add an ebook to the current user's purchase history.

    Buying the same ebook twice returns the existing purchase.
    """

    ebook = await session.get(Ebook, ebook_id)
    if ebook is None:
        raise NotFoundError("Ebook", ebook_id)
    user = await get_current_user(session)

    stmt = select(Purchase).where(Purchase.user_id == user.id, Purchase.ebook_id == ebook.id)
    existing = (await session.execute(stmt)).scalar_one_or_none()
    if existing is not None:
        return existing

    purchase = Purchase(user_id=user.id, ebook_id=ebook.id)
    session.add(purchase)
    await session.commit()
    await session.refresh(purchase)
    logger.info(f"User {user.id} purchased ebook {ebook.id}.")
    return purchase
