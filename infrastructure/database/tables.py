"""
Relational tables shared with the redirect and admin services.

The schema is owned by the platform; the worker only maps the columns it
touches. Link rows are created and deleted elsewhere. LinkCountryClick rows
are created here on the first click from a country.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Link(Base):
    __tablename__ = "link"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    short_code: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    total_clicks: Mapped[int] = mapped_column(
        "clicks", BigInteger, nullable=False, default=0
    )

    def __repr__(self) -> str:
        return f"<Link {self.id} {self.short_code!r} clicks={self.total_clicks}>"


class LinkCountryClick(Base):
    """Per-country click counter, one row per (link, country).

    The (link_id, country_code) key is the conflict target of the upsert.
    """

    __tablename__ = "link_country_click"

    link_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("link.id", ondelete="CASCADE"), primary_key=True
    )
    country_code: Mapped[str] = mapped_column(String, primary_key=True)
    clicks: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<LinkCountryClick link={self.link_id} "
            f"{self.country_code} clicks={self.clicks}>"
        )
