from decimal import Decimal

import pytest
from sqlalchemy import select, func

from ebookeria.core.errors import NotFoundError
from ebookeria.db.schema import Author, Ebook, Image
from ebookeria.services.ebook_service import create_ebook, get_ebook
from ebookeria.models.ebook_model import EbookCreate


class TestCreateEbook:
    """Creating an ebook links both sides of the author relation and owns its images."""

    @pytest.mark.asyncio
    async def test_author_order_is_preserved(self, make_ebook, catalog):
        a1, a2, a3 = catalog.author_ids
        n1, n2, n3 = catalog.author_names

        created = await make_ebook(authors_id=[a3, a1, a2])

        assert created.authors == [n3, n1, n2]

    @pytest.mark.asyncio
    async def test_every_author_references_the_new_ebook(self, make_ebook, session, session_factory, catalog):
        created = await make_ebook(authors_id=catalog.author_ids)
        ebook = await session.get(Ebook, created.id)

        for author_id in catalog.author_ids:
            author = await session.get(Author, author_id)
            assert ebook in await author.awaitable_attrs.ebooks

        async with session_factory() as fresh:
            for author_id in catalog.author_ids:
                author = await fresh.get(Author, author_id)
                ebooks = await author.awaitable_attrs.ebooks
                assert {e.id for e in ebooks} == {created.id}

    @pytest.mark.asyncio
    async def test_duplicate_author_ids_are_kept(self, make_ebook, session_factory, catalog):
        a1 = catalog.author_ids[0]

        created = await make_ebook(authors_id=[a1, a1])

        assert created.authors == [catalog.author_names[0]] * 2
        async with session_factory() as fresh:
            author = await fresh.get(Author, a1)
            ebooks = await author.awaitable_attrs.ebooks
            assert [e.id for e in ebooks] == [created.id]

    @pytest.mark.asyncio
    async def test_images_follow_the_requested_urls(self, make_ebook, session_factory):
        urls = ["https://cdn.example.com/back.png", "https://cdn.example.com/front.png"]

        created = await make_ebook(image_urls=urls)

        assert created.image_urls == urls
        async with session_factory() as fresh:
            images = (await fresh.scalars(select(Image).order_by(Image.id))).all()
            assert [image.url for image in images] == urls
            assert {image.ebook_id for image in images} == {created.id}

    @pytest.mark.asyncio
    async def test_owner_is_the_acting_user(self, make_ebook, session_factory, catalog):
        created = await make_ebook()

        async with session_factory() as fresh:
            ebook = await fresh.get(Ebook, created.id)
            assert ebook.user_id == catalog.reader_id

    @pytest.mark.asyncio
    async def test_read_reflects_what_was_created(self, make_ebook, session, session_factory, catalog):
        a1, a2, _ = catalog.author_ids
        urls = ["https://cdn.example.com/1.png", "https://cdn.example.com/2.png"]

        created = await make_ebook(authors_id=[a2, a1], image_urls=urls, price=Decimal("12.50"))

        assert await get_ebook(session, created.id) == created
        async with session_factory() as fresh:
            read = await get_ebook(fresh, created.id)
        assert read.authors == [catalog.author_names[1], catalog.author_names[0]]
        assert read.image_urls == urls
        assert read.category == "Fiction"
        assert read.price == Decimal("12.50")

    @pytest.mark.asyncio
    async def test_unknown_category_persists_nothing(self, make_ebook, session_factory):
        with pytest.raises(NotFoundError) as exc_info:
            await make_ebook(category_id=999)

        assert exc_info.value.entity == "Category"
        assert exc_info.value.entity_id == 999
        async with session_factory() as fresh:
            assert await fresh.scalar(select(func.count()).select_from(Ebook)) == 0

    @pytest.mark.asyncio
    async def test_unknown_author_persists_nothing(self, make_ebook, session, session_factory, catalog):
        a1 = catalog.author_ids[0]

        with pytest.raises(NotFoundError) as exc_info:
            await make_ebook(authors_id=[a1, 999])

        assert str(exc_info.value) == "Author with id: 999 not found"
        author = await session.get(Author, a1)
        assert await author.awaitable_attrs.ebooks == set()
        async with session_factory() as fresh:
            assert await fresh.scalar(select(func.count()).select_from(Ebook)) == 0
            assert await fresh.scalar(select(func.count()).select_from(Image)) == 0

    @pytest.mark.asyncio
    async def test_requires_an_acting_user(self, session, catalog):
        data = EbookCreate(
            title="Orphan",
            description="No owner",
            published_year="2001-01-01",
            price="1.00",
            download_url="https://cdn.example.com/orphan.epub",
            category_id=catalog.fiction_id,
            authors_id=[],
            image_urls=[],
        )

        with pytest.raises(RuntimeError):
            await create_ebook(session, data)
