"""
SQLAlchemy ORM persistence models for the Discounts module.

Responsibility
--------------
Persist discount periods and their per-product items.

Invariants enforced
-------------------
* No status column: status is derived from the dates on every read.
* ``(period_id, product_id)`` is unique on items.
* Percentages use ``Decimal`` (Numeric(38,9)).
* Overlap between periods is NOT a database constraint; the service checks
  it before creation.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supply_kernel.db.base import TrackedBase


class DiscountPeriodModel(TrackedBase):
    """A scheduled discount period. Maps to the ``DiscountPeriod`` DTO."""

    __tablename__ = "discount_periods"

    __table_args__ = (
        Index("idx_discount_period_dates", "start_date", "end_date"),
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)

    items: Mapped[list["DiscountPeriodItemModel"]] = relationship(
        "DiscountPeriodItemModel",
        back_populates="period",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="DiscountPeriodItemModel.product_id",
    )

    def to_dto(self):
        from supply_modules.discounts.models import DiscountPeriod

        return DiscountPeriod(
            id=self.id,
            start_date=self.start_date,
            end_date=self.end_date,
            description=self.description,
            items=tuple(
                item.to_dto() for item in sorted(self.items, key=lambda i: i.product_id)
            ),
            created_by=self.created_by_id,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "DiscountPeriodModel":
        model = cls(
            id=dto.id,
            start_date=dto.start_date,
            end_date=dto.end_date,
            description=dto.description,
            created_by_id=created_by_id,
        )
        model.items = [
            DiscountPeriodItemModel(
                product_id=item.product_id,
                discount_percent=item.discount_percent,
                created_by_id=created_by_id,
            )
            for item in dto.items
        ]
        return model

    def __repr__(self) -> str:
        return f"<DiscountPeriodModel {self.start_date}..{self.end_date}>"


class DiscountPeriodItemModel(TrackedBase):
    """A product's discount percent within a period."""

    __tablename__ = "discount_period_items"

    __table_args__ = (
        UniqueConstraint("period_id", "product_id", name="uq_discount_period_item_product"),
        Index("idx_discount_item_product", "product_id"),
    )

    period_id: Mapped[UUID] = mapped_column(ForeignKey("discount_periods.id"), nullable=False)
    product_id: Mapped[str] = mapped_column(String(100), nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(nullable=False)

    period: Mapped[DiscountPeriodModel] = relationship(
        "DiscountPeriodModel", back_populates="items",
    )

    def to_dto(self):
        from supply_modules.discounts.models import DiscountPeriodItem

        return DiscountPeriodItem(
            product_id=self.product_id,
            discount_percent=self.discount_percent,
        )

    def __repr__(self) -> str:
        return f"<DiscountPeriodItemModel {self.product_id} {self.discount_percent}%>"
