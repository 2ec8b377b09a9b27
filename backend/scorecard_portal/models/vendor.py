"""Vendor tags and their branded product mappings."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from scorecard_portal.db.base import Base


class VendorTag(Base):
    __tablename__ = "vendor_tag"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128))

    mappings: Mapped[list["VendorProductMapping"]] = relationship(back_populates="vendor")


class MarketVendorTag(Base):
    """A vendor's mappings apply to every market carrying its tag."""

    __tablename__ = "market_vendor_tag"

    market_id: Mapped[str] = mapped_column(ForeignKey("market.id", ondelete="CASCADE"), primary_key=True)
    tag_id: Mapped[str] = mapped_column(ForeignKey("vendor_tag.id", ondelete="CASCADE"), primary_key=True)

    market: Mapped["Market"] = relationship(back_populates="vendor_tags")  # noqa: F821


class VendorProductMapping(Base):
    __tablename__ = "vendor_product_mapping"
    __table_args__ = (Index("ix_vendor_product_mapping_vendor", "vendor_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    vendor_id: Mapped[str] = mapped_column(ForeignKey("vendor_tag.id", ondelete="CASCADE"))
    market_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    service_field: Mapped[str] = mapped_column(String(128))
    product_name: Mapped[str] = mapped_column(String(255))

    vendor: Mapped[VendorTag] = relationship(back_populates="mappings")


__all__ = ["MarketVendorTag", "VendorProductMapping", "VendorTag"]
