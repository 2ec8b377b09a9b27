"""Per-market scorecard layouts."""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from scorecard_portal.db.base import Base


class ScorecardTemplateRecord(Base):
    __tablename__ = "scorecard_template"

    id: Mapped[int] = mapped_column(primary_key=True)
    market_id: Mapped[str | None] = mapped_column(ForeignKey("market.id", ondelete="CASCADE"), nullable=True)
    template_name: Mapped[str] = mapped_column(String(128))
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)

    categories: Mapped[list["ScorecardTemplateCategoryRecord"]] = relationship(
        back_populates="template", cascade="all, delete-orphan"
    )


class ScorecardTemplateCategoryRecord(Base):
    __tablename__ = "scorecard_template_category"

    id: Mapped[int] = mapped_column(primary_key=True)
    template_id: Mapped[int] = mapped_column(ForeignKey("scorecard_template.id", ondelete="CASCADE"))
    category_name: Mapped[str] = mapped_column(String(128))
    category_icon: Mapped[str | None] = mapped_column(String(32), nullable=True)
    category_color: Mapped[str | None] = mapped_column(String(32), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True)

    template: Mapped[ScorecardTemplateRecord] = relationship(back_populates="categories")
    fields: Mapped[list["ScorecardTemplateFieldRecord"]] = relationship(
        back_populates="category", cascade="all, delete-orphan"
    )


class ScorecardTemplateFieldRecord(Base):
    __tablename__ = "scorecard_template_field"

    id: Mapped[int] = mapped_column(primary_key=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("scorecard_template_category.id", ondelete="CASCADE"))
    field_key: Mapped[str] = mapped_column(String(128))
    field_label: Mapped[str | None] = mapped_column(String(128), nullable=True)
    field_format: Mapped[str | None] = mapped_column(String(32), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    show_goal: Mapped[bool] = mapped_column(Boolean, default=False)

    category: Mapped[ScorecardTemplateCategoryRecord] = relationship(back_populates="fields")


__all__ = [
    "ScorecardTemplateCategoryRecord",
    "ScorecardTemplateFieldRecord",
    "ScorecardTemplateRecord",
]
