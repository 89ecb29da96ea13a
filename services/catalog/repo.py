"""SQLAlchemy repository for the product catalog.

The catalog service owns the ``products`` table: name, prices in cents,
optional sale price, image list and stock flag. The orders gateway only ever
reads single products by id, so the repository is read-mostly; ``upsert``
exists for seeding and tests.

The connection string comes from ``CATALOG_DATABASE_URL``; when unset it is
assembled from the ``DB_*`` variables and points at the ``catalog-db``
PostgreSQL container.
"""

import os
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import JSON, BigInteger, Boolean, CheckConstraint, DateTime, Integer, String, Text, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.pool import StaticPool

DB_HOST = os.getenv("DB_HOST", "catalog-db")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "catalog")
DB_USER = os.getenv("DB_USER", "catalog_user")
DB_PASSWORD = os.getenv("DB_PASSWORD", "catalog-pass")

DATABASE_URL = os.getenv(
    "CATALOG_DATABASE_URL",
    f"postgresql+psycopg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)


def _make_engine(url: str):
    if url.startswith("sqlite"):
        # a single shared connection keeps in-memory databases alive across sessions
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, pool_pre_ping=True)


engine = _make_engine(DATABASE_URL)


class Base(DeclarativeBase):
    pass


def _now():
    return datetime.now(timezone.utc)


class Product(Base):
    """A sellable product.

    Attributes:
        id: Surrogate key referenced by order items.
        price_cents: Regular price in minor units.
        sale_price_cents: Discounted price, never above ``price_cents``; None when not on sale.
        images: Ordered list of image URLs; the first one is the primary image.
        in_stock: Informational flag, orders do not check it.
    """
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint(
            "sale_price_cents IS NULL OR sale_price_cents <= price_cents",
            name="products_sale_price_lte_price",
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    sale_price_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    in_stock: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    @property
    def primary_image(self) -> str | None:
        return self.images[0] if self.images else None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "image": self.primary_image,
            "price_cents": self.price_cents,
            "sale_price_cents": self.sale_price_cents,
            "in_stock": self.in_stock,
        }


def init_db() -> None:
    Base.metadata.create_all(engine)


@contextmanager
def get_session():
    """Yield a SQLAlchemy session bound to the catalog engine."""
    with Session(engine) as s:
        yield s


class CatalogRepo:
    """Read access to products, plus an upsert used for seeding."""

    def get(self, product_id: int) -> dict | None:
        """Return the public view of a product, or None when it does not exist."""
        with get_session() as s:
            obj = s.get(Product, product_id)
            return obj.as_dict() if obj else None

    def upsert(self, **fields) -> int:
        """Create or update a product keyed by ``slug``; returns its id."""
        with get_session() as s:
            obj = s.query(Product).filter(Product.slug == fields["slug"]).one_or_none()
            if obj is None:
                obj = Product(**fields)
                s.add(obj)
            else:
                for name, value in fields.items():
                    setattr(obj, name, value)
            s.commit()
            return obj.id
