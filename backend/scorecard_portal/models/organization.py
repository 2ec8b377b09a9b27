"""Markets, stores and advisors: the scopes a scorecard can be computed for."""

from __future__ import annotations

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from scorecard_portal.db.base import Base


class Market(Base):
    __tablename__ = "market"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128))

    stores: Mapped[list["Store"]] = relationship(back_populates="market")
    vendor_tags: Mapped[list["MarketVendorTag"]] = relationship(  # noqa: F821
        back_populates="market", cascade="all, delete-orphan"
    )


class Store(Base):
    __tablename__ = "store"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    market_id: Mapped[str | None] = mapped_column(ForeignKey("market.id", ondelete="SET NULL"), nullable=True)
    name: Mapped[str] = mapped_column(String(128))

    market: Mapped[Market | None] = relationship(back_populates="stores")


class Advisor(Base):
    __tablename__ = "advisor"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    market_id: Mapped[str | None] = mapped_column(ForeignKey("market.id", ondelete="SET NULL"), nullable=True)
    first_name: Mapped[str] = mapped_column(String(64))
    last_name: Mapped[str] = mapped_column(String(64))
    spreadsheet_name: Mapped[str | None] = mapped_column(String(128), nullable=True)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


__all__ = ["Advisor", "Market", "Store"]
