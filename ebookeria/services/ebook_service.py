import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ebookeria.core.errors import NotFoundError
from ebookeria.db.schema import Author, Category, Ebook, EbookAuthor, Image, Purchase
from ebookeria.models.ebook_model import EbookCreate, EbookRead, EbookSummary, EbookUpdate
from ebookeria.models.page_model import Page, PageRequest
from ebookeria.services.author_service import get_author
from ebookeria.services.category_service import get_category
from ebookeria.services.user_service import get_current_user
from ebookeria.utils import count_pages, order_by_clause, same_price


logger = logging.getLogger("ebookeria.ebooks")

SCALAR_FIELDS = ("title", "description", "published_year", "download_url")


def to_ebook_read(ebook: Ebook) -> EbookRead:
    return EbookRead(
        id=ebook.id,
        title=ebook.title,
        description=ebook.description,
        published_year=ebook.published_year,
        category=ebook.category.name,
        price=ebook.price,
        authors=[author.full_name for author in ebook.authors],
        image_urls=[image.url for image in ebook.images],
    )


def to_ebook_summary(ebook: Ebook) -> EbookSummary:
    return EbookSummary(
        id=ebook.id,
        title=ebook.title,
        image_url=ebook.images[0].url if ebook.images else "",
        download_url=ebook.download_url,
    )


def _link_author(ebook: Ebook, author: Author) -> None:
    ebook.author_links.append(EbookAuthor(author=author))
    author.ebooks.add(ebook)


def _unlink_author(ebook: Ebook, link: EbookAuthor) -> None:
    ebook.author_links.remove(link)
    # The same author can be listed twice; keep the back-reference while any entry remains.
    if all(other.author is not link.author for other in ebook.author_links):
        link.author.ebooks.discard(ebook)


async def _resolve_category(session: AsyncSession, category_id: int) -> Category:
    category = await get_category(session, category_id)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category


async def _resolve_author(session: AsyncSession, author_id: int) -> Author:
    author = await get_author(session, author_id)
    if author is None:
        raise NotFoundError("Author", author_id)
    # Both sides of the relation are mutated in memory, so load the back-reference first.
    await author.awaitable_attrs.ebooks
    return author


async def _get_ebook_for_update(session: AsyncSession, ebook_id: int) -> Ebook:
    stmt = (
        select(Ebook)
        .where(Ebook.id == ebook_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    ebook = (await session.execute(stmt)).scalar_one_or_none()
    if ebook is None:
        raise NotFoundError("Ebook", ebook_id)
    return ebook


async def get_ebook(session: AsyncSession, ebook_id: int) -> EbookRead:
    ebook = await session.get(Ebook, ebook_id)
    if ebook is None:
        raise NotFoundError("Ebook", ebook_id)
    return to_ebook_read(ebook)


async def create_ebook(session: AsyncSession, data: EbookCreate) -> EbookRead:
    """Create an ebook with its category, authors, images and owner.

    Every referenced id is resolved before the ebook is built, so a
    ``NotFoundError`` leaves the store and the loaded authors untouched.
    """

    category = await _resolve_category(session, data.category_id)
    authors = []
    for author_id in data.authors_id:
        authors.append(await _resolve_author(session, author_id))
    user = await get_current_user(session)

    ebook = Ebook(
        title=data.title,
        description=data.description,
        published_year=data.published_year,
        price=data.price,
        download_url=data.download_url,
        category=category,
        user=user,
    )
    for author in authors:
        _link_author(ebook, author)
    ebook.images = [Image(url=url) for url in data.image_urls]

    session.add(ebook)
    await session.commit()
    logger.info(f"Created ebook {ebook.id} with {len(authors)} author(s) and {len(ebook.images)} image(s).")
    return to_ebook_read(ebook)


async def update_ebook(session: AsyncSession, data: EbookUpdate) -> None:
    """
        Apply a partial update to an ebook.

        ``None`` fields are left alone and the others are written only when they
        differ from the stored value. Author and image lists are reconciled
        against the requested ones: missing entries are added, entries that are
        no longer requested are removed, and entries present on both sides are
        not touched, which keeps their order and the images' identity.

        All lookups run before the first mutation.
    """

    ebook = await _get_ebook_for_update(session, data.id)

    category = None
    if data.category_id is not None:
        category = await _resolve_category(session, data.category_id)

    authors_to_add: list[Author] = []
    links_to_remove: list[EbookAuthor] = []
    if data.authors_id is not None:
        requested_ids = set(data.authors_id)
        current_ids = {link.author_id for link in ebook.author_links}
        for author_id in dict.fromkeys(data.authors_id):
            if author_id not in current_ids:
                authors_to_add.append(await _resolve_author(session, author_id))
        links_to_remove = [link for link in ebook.author_links if link.author_id not in requested_ids]
        for link in links_to_remove:
            await link.author.awaitable_attrs.ebooks

    changed = []
    for field in SCALAR_FIELDS:
        value = getattr(data, field)
        if value is not None and getattr(ebook, field) != value:
            setattr(ebook, field, value)
            changed.append(field)

    if data.price is not None and not same_price(ebook.price, data.price):
        ebook.price = data.price
        changed.append("price")

    if category is not None and ebook.category_id != category.id:
        ebook.category = category
        changed.append("category")

    for link in links_to_remove:
        _unlink_author(ebook, link)
    for author in authors_to_add:
        _link_author(ebook, author)
    if links_to_remove or authors_to_add:
        changed.append("authors")

    if data.image_urls is not None:
        requested_urls = set(data.image_urls)
        stale = [image for image in ebook.images if image.url not in requested_urls]
        for image in stale:
            ebook.images.remove(image)

        existing_urls = {image.url for image in ebook.images}
        fresh = [url for url in dict.fromkeys(data.image_urls) if url not in existing_urls]
        for url in fresh:
            ebook.images.append(Image(url=url))

        if stale or fresh:
            changed.append("images")

    await session.commit()

    if changed:
        logger.info(f"Updated ebook {ebook.id}.")
        logger.debug(f"Ebook {ebook.id} changed fields: {', '.join(changed)}")


async def delete_ebook(session: AsyncSession, ebook_id: int) -> None:
    ebook = await session.get(Ebook, ebook_id)
    if ebook is None:
        raise NotFoundError("Ebook", ebook_id)

    for author in {link.author for link in ebook.author_links}:
        ebooks = await author.awaitable_attrs.ebooks
        ebooks.discard(ebook)

    # Author links, images and purchases are removed by the delete-orphan cascade.
    await session.delete(ebook)
    await session.commit()
    logger.info(f"Deleted ebook {ebook_id}.")


async def list_ebooks(session: AsyncSession, page: PageRequest) -> Page[EbookRead]:
    order = order_by_clause(Ebook, page.sort_field, page.sort_direction)

    total = await session.scalar(select(func.count()).select_from(Ebook))
    stmt = (
        select(Ebook)
        .order_by(order, Ebook.id)
        .offset(page.offset)
        .limit(page.page_size)
    )
    ebooks = (await session.scalars(stmt)).all()

    total_pages = count_pages(total, page.page_size)
    return Page[EbookRead](
        items=[to_ebook_read(ebook) for ebook in ebooks],
        page_no=page.page_no,
        page_size=page.page_size,
        total_elements=total,
        total_pages=total_pages,
        last=page.page_no + 1 >= total_pages,
    )


async def list_user_ebooks(session: AsyncSession, page: PageRequest) -> Page[EbookSummary]:
    """Page through the ebooks bought by the current user, sorted by an ebook column."""

    order = order_by_clause(Ebook, page.sort_field, page.sort_direction)
    user = await get_current_user(session)

    total = await session.scalar(
        select(func.count()).select_from(Purchase).where(Purchase.user_id == user.id)
    )
    stmt = (
        select(Ebook)
        .join(Purchase, Purchase.ebook_id == Ebook.id)
        .where(Purchase.user_id == user.id)
        .order_by(order, Ebook.id)
        .offset(page.offset)
        .limit(page.page_size)
    )
    ebooks = (await session.scalars(stmt)).all()
    for ebook in ebooks:
        logger.debug(f"User {user.id} owns ebook {ebook.id} ({ebook.title!r}).")

    total_pages = count_pages(total, page.page_size)
    return Page[EbookSummary](
        items=[to_ebook_summary(ebook) for ebook in ebooks],
        page_no=page.page_no,
        page_size=page.page_size,
        total_elements=total,
        total_pages=total_pages,
        last=page.page_no + 1 >= total_pages,
    )
