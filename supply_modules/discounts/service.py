"""
Discounts Module Service (``supply_modules.discounts.service``).

Responsibility
--------------
Validate, create and reschedule discount periods, manage their product
items, and answer "what is this product's price today" -- delegating the
interval decisions to ``supply_engines.periods``.

Invariants enforced
-------------------
* A period's end date is strictly after its start date.
* A period does not start before today (unless configured otherwise).
* Every percent lies within the configured range; a product appears at
  most once per period.
* A new or rescheduled period does not overlap any stored period
  (touching boundaries overlap).
* Each public write method owns the transaction boundary.

Failure modes
-------------
* Validation failure -> ``Outcome`` with InvalidIntervalError,
  InvalidDiscountError, PeriodConflictError or PeriodNotFoundError.
* Unexpected exception -> session rolled back, exception re-raised.

Concurrency
-----------
The overlap check is not atomic with the insert. Two concurrent creations
can both pass the check and produce overlapping periods; this race is
accepted.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from supply_engines.periods import (
    PeriodConflictDetector,
    PeriodStatus,
    PeriodStatusCalculator,
)
from supply_kernel.domain.clock import Clock, SystemClock
from supply_kernel.domain.intervals import as_day, validate_strictly_after
from supply_kernel.domain.outcome import Outcome
from supply_kernel.exceptions import (
    InvalidDiscountError,
    InvalidIntervalError,
    PeriodNotFoundError,
    SupplyKernelError,
)
from supply_kernel.logging_config import LogContext, get_logger
from supply_modules.discounts.config import DiscountConfig
from supply_modules.discounts.models import (
    DiscountPeriod,
    DiscountPeriodItem,
    discounted_price,
    to_percent,
)
from supply_modules.discounts.orm import DiscountPeriodItemModel, DiscountPeriodModel

logger = get_logger("modules.discounts.service")

ItemInput = DiscountPeriodItem | Mapping[str, Any] | tuple | str


class DiscountService:
    """
    Orchestrates discount-period operations.

    Contract
    --------
    * Write methods return an ``Outcome``; the session is committed only on
      success.
    * Status is derived with the injected clock on every read.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: DiscountConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or DiscountConfig.with_defaults()
        self._detector = PeriodConflictDetector()
        self._status = PeriodStatusCalculator()

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_period(
        self,
        start: date,
        end: date,
        exclude_id: UUID | None = None,
    ) -> Outcome[None]:
        """Check the dates of a candidate period against the rules and the
        stored periods. ``exclude_id`` skips the period being rescheduled."""
        error = validate_strictly_after(start, end)
        if error is not None:
            return Outcome.failure(error)
        today = self._clock.today()
        if not self._config.allow_past_start and as_day(start) < today:
            return Outcome.failure(
                InvalidIntervalError(
                    str(as_day(start)), str(as_day(end)), reason="start cannot be in the past",
                )
            )
        return self._detector.check(start, end, self.list_periods(), exclude_id=exclude_id)

    def validate_description(self, description: str | None) -> Outcome[str]:
        text = (description or "").strip()
        if len(text) < self._config.min_description_length:
            return Outcome.failure(
                InvalidDiscountError(
                    "description",
                    description,
                    f"must be at least {self._config.min_description_length} characters",
                )
            )
        if len(text) > self._config.max_description_length:
            return Outcome.failure(
                InvalidDiscountError(
                    "description",
                    description,
                    f"must be at most {self._config.max_description_length} characters",
                )
            )
        return Outcome.success(text)

    # =========================================================================
    # Periods
    # =========================================================================

    def create_period(
        self,
        start: date,
        end: date,
        description: str,
        items: Sequence[ItemInput],
        actor_id: UUID,
        period_id: UUID | None = None,
    ) -> Outcome[DiscountPeriod]:
        """
        Create a discount period.

        ``items`` may hold DiscountPeriodItem values, mappings with
        ``product_id`` / ``discount_percent``, ``(product_id, percent)``
        tuples, or bare product ids (which get the default percent).
        """
        period_id = period_id or uuid4()
        with LogContext.bind(period_id=period_id, actor_id=actor_id):
            try:
                logger.info(
                    "discount_period_create_started",
                    extra={"start_date": start, "end_date": end, "item_count": len(items)},
                )
                checked = self.validate_period(start, end)
                if not checked.ok:
                    return self._fail("discount_period_rejected", checked.error)
                text = self.validate_description(description)
                if not text.ok:
                    return self._fail("discount_period_rejected", text.error)
                built = self._build_items(items)
                if not built.ok:
                    return self._fail("discount_period_rejected", built.error)

                period = DiscountPeriod(
                    id=period_id,
                    start_date=as_day(start),
                    end_date=as_day(end),
                    description=text.value,
                    items=built.value,
                    created_by=actor_id,
                )
                model = DiscountPeriodModel.from_dto(period, created_by_id=actor_id)
                self._session.add(model)
                self._session.commit()
                logger.info(
                    "discount_period_created",
                    extra={"days": period.days, "item_count": len(period.items)},
                )
                return Outcome.success(model.to_dto())
            except Exception:
                self._session.rollback()
                raise

    def reschedule_period(
        self,
        period_id: UUID,
        start: date,
        end: date,
        actor_id: UUID,
        description: str | None = None,
    ) -> Outcome[DiscountPeriod]:
        """Move a period to new dates; it is not compared with itself.

        A ``description`` replaces the current one under the same length
        rules as creation; ``None`` keeps it.
        """
        with LogContext.bind(period_id=period_id, actor_id=actor_id):
            try:
                model = self._session.get(DiscountPeriodModel, period_id)
                if model is None:
                    return self._fail(
                        "discount_period_rejected", PeriodNotFoundError(str(period_id)),
                    )
                checked = self.validate_period(start, end, exclude_id=period_id)
                if not checked.ok:
                    return self._fail("discount_period_rejected", checked.error)
                if description is not None:
                    text = self.validate_description(description)
                    if not text.ok:
                        return self._fail("discount_period_rejected", text.error)
                    model.description = text.value
                model.start_date = as_day(start)
                model.end_date = as_day(end)
                model.updated_by_id = actor_id
                self._session.commit()
                logger.info(
                    "discount_period_rescheduled",
                    extra={"start_date": model.start_date, "end_date": model.end_date},
                )
                return Outcome.success(model.to_dto())
            except Exception:
                self._session.rollback()
                raise

    def add_item(
        self,
        period_id: UUID,
        product_id: str,
        discount_percent: Any,
        actor_id: UUID,
    ) -> Outcome[DiscountPeriod]:
        """Add a product to a period that has not ended."""
        with LogContext.bind(period_id=period_id, actor_id=actor_id):
            try:
                model = self._session.get(DiscountPeriodModel, period_id)
                if model is None:
                    return self._fail(
                        "discount_item_rejected", PeriodNotFoundError(str(period_id)),
                    )
                period = model.to_dto()
                if period.status_on(self._clock.now()) == PeriodStatus.ENDED:
                    return self._fail(
                        "discount_item_rejected",
                        InvalidDiscountError("period", str(period_id), "period has ended"),
                    )
                built = self._item((product_id, discount_percent))
                if not built.ok:
                    return self._fail("discount_item_rejected", built.error)
                if period.item_for(built.value.product_id) is not None:
                    return self._fail(
                        "discount_item_rejected",
                        InvalidDiscountError(
                            "product_id",
                            built.value.product_id,
                            "product is already in this period",
                        ),
                    )

                model.items.append(
                    DiscountPeriodItemModel(
                        product_id=built.value.product_id,
                        discount_percent=built.value.discount_percent,
                        created_by_id=actor_id,
                    )
                )
                model.updated_by_id = actor_id
                self._session.commit()
                logger.info(
                    "discount_item_added",
                    extra={
                        "product_id": built.value.product_id,
                        "discount_percent": built.value.discount_percent,
                    },
                )
                return Outcome.success(model.to_dto())
            except Exception:
                self._session.rollback()
                raise

    def remove_item(
        self,
        period_id: UUID,
        product_id: str,
        actor_id: UUID,
    ) -> Outcome[DiscountPeriod]:
        """Take a product out of a period that has not ended."""
        with LogContext.bind(period_id=period_id, actor_id=actor_id):
            try:
                model = self._session.get(DiscountPeriodModel, period_id)
                if model is None:
                    return self._fail(
                        "discount_item_rejected", PeriodNotFoundError(str(period_id)),
                    )
                if model.to_dto().status_on(self._clock.now()) == PeriodStatus.ENDED:
                    return self._fail(
                        "discount_item_rejected",
                        InvalidDiscountError("period", str(period_id), "period has ended"),
                    )
                code = str(product_id or "").strip()
                row = next((i for i in model.items if i.product_id == code), None)
                if row is None:
                    return self._fail(
                        "discount_item_rejected",
                        InvalidDiscountError("product_id", product_id, "product is not in this period"),
                    )

                model.items.remove(row)
                model.updated_by_id = actor_id
                self._session.commit()
                logger.info("discount_item_removed", extra={"product_id": code})
                return Outcome.success(model.to_dto())
            except Exception:
                self._session.rollback()
                raise

    def get_period(self, period_id: UUID) -> Outcome[DiscountPeriod]:
        model = self._session.get(DiscountPeriodModel, period_id)
        if model is None:
            return Outcome.failure(PeriodNotFoundError(str(period_id)))
        return Outcome.success(model.to_dto())

    def list_periods(self, status: PeriodStatus | str | None = None) -> list[DiscountPeriod]:
        """All periods by start date, optionally only those with ``status`` today."""
        stmt = select(DiscountPeriodModel).order_by(
            DiscountPeriodModel.start_date, DiscountPeriodModel.end_date,
        )
        periods = [m.to_dto() for m in self._session.scalars(stmt).all()]
        if status is None:
            return periods
        return self._status.filter(self._clock.now(), periods, PeriodStatus(status))

    def list_active_periods(self) -> list[DiscountPeriod]:
        return self.list_periods(PeriodStatus.ACTIVE)

    def period_status(self, period: DiscountPeriod | UUID) -> Outcome[PeriodStatus]:
        if not isinstance(period, DiscountPeriod):
            found = self.get_period(period)
            if not found.ok:
                return Outcome.failure(found.error)
            period = found.value
        return Outcome.success(self._status.status_of(self._clock.now(), period))

    def price_for(self, product_id: str, original_price: Any) -> Decimal:
        """Today's price of a product: discounted if an active period lists it."""
        for period in self.list_active_periods():
            item = period.item_for(product_id)
            if item is not None:
                return item.price_for(original_price)
        return discounted_price(original_price, 0)

    # =========================================================================
    # Internals
    # =========================================================================

    def _fail(self, event: str, error: SupplyKernelError) -> Outcome:
        self._session.rollback()
        logger.info(event, extra={"error_code": error.code, "reason": str(error)})
        return Outcome.failure(error)

    def _item(self, raw: ItemInput) -> Outcome[DiscountPeriodItem]:
        if isinstance(raw, DiscountPeriodItem):
            product_id, percent = raw.product_id, raw.discount_percent
        elif isinstance(raw, Mapping):
            product_id = raw.get("product_id")
            percent = raw.get("discount_percent", self._config.default_percent)
        elif isinstance(raw, tuple):
            product_id, percent = raw
        else:
            product_id, percent = raw, self._config.default_percent
        if product_id is None or str(product_id).strip() == "":
            return Outcome.failure(InvalidDiscountError("product_id", product_id, "is required"))
        try:
            value = to_percent(percent, self._config.min_percent, self._config.max_percent)
        except InvalidDiscountError as exc:
            return Outcome.failure(exc)
        return Outcome.success(DiscountPeriodItem(str(product_id).strip(), value))

    def _build_items(self, items: Iterable[ItemInput]) -> Outcome[tuple[DiscountPeriodItem, ...]]:
        built: list[DiscountPeriodItem] = []
        seen: set[str] = set()
        for raw in items:
            item = self._item(raw)
            if not item.ok:
                return Outcome.failure(item.error)
            if item.value.product_id in seen:
                return Outcome.failure(
                    InvalidDiscountError(
                        "product_id", item.value.product_id, "listed more than once",
                    )
                )
            seen.add(item.value.product_id)
            built.append(item.value)
        return Outcome.success(tuple(built))
