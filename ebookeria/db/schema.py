from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Text, Integer, Numeric, Date, DateTime, ForeignKey, CheckConstraint, UniqueConstraint, func
)
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(AsyncAttrs, DeclarativeBase):
    pass


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)


class Author(Base):
    __tablename__ = "authors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    full_name: Mapped[str] = mapped_column(Text, nullable=False)

    # Back-reference only: rows are written through Ebook.author_links and the
    # set is kept in sync by the ebook service.
    ebooks: Mapped[set["Ebook"]] = relationship(secondary="ebook_authors", viewonly=True)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(Text, nullable=True)


class EbookAuthor(Base):
    """One entry of an ebook's ordered author list.

    The same author may appear more than once for a single ebook, so the row
    carries its own key and a ``position`` instead of a composite primary key.
    """

    __tablename__ = "ebook_authors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ebook_id: Mapped[int] = mapped_column(ForeignKey("ebooks.id", ondelete="CASCADE"), nullable=False)
    author_id: Mapped[int] = mapped_column(ForeignKey("authors.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    author: Mapped[Author] = relationship(lazy="selectin")


class Image(Base):
    __tablename__ = "images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    ebook_id: Mapped[int] = mapped_column(ForeignKey("ebooks.id", ondelete="CASCADE"), nullable=False)

    ebook: Mapped["Ebook"] = relationship(back_populates="images")


class Ebook(Base):
    __tablename__ = "ebooks"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_ebooks_price_nonnegative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    published_year: Mapped[date] = mapped_column(Date, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    download_url: Mapped[str] = mapped_column(Text, nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    category: Mapped[Category] = relationship(lazy="selectin")
    user: Mapped[User] = relationship()
    author_links: Mapped[list[EbookAuthor]] = relationship(
        order_by=EbookAuthor.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    images: Mapped[list[Image]] = relationship(
        back_populates="ebook",
        order_by=Image.id,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    purchases: Mapped[list["Purchase"]] = relationship(
        back_populates="ebook",
        cascade="all, delete-orphan",
    )

    @property
    def authors(self) -> list[Author]:
        return [link.author for link in self.author_links]


class Purchase(Base):
    __tablename__ = "purchases"
    __table_args__ = (
        UniqueConstraint("user_id", "ebook_id", name="uq_purchases_user_ebook"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    ebook_id: Mapped[int] = mapped_column(ForeignKey("ebooks.id", ondelete="CASCADE"), nullable=False)
    purchased_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    ebook: Mapped[Ebook] = relationship(back_populates="purchases")
