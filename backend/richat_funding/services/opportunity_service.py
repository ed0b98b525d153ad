"""Query engine and CRUD logic for funding opportunities.

List requests are translated into one ``SELECT`` whose ``WHERE`` clause is
the AND of independent predicates, one builder per filter field.  Each
builder returns ``None`` when its field is absent, so filters combine
freely and can be tested one at a time.

Ordering is a whitelist lookup; unknown sort keys fall back to deadline
ascending.  Deadlines are free text, so "deadline" ordering is lexicographic
on the stored value, not chronological.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional

from pydantic import ValidationError
from sqlalchemy import Select, and_, any_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from richat_funding.helpers.text_utils import LIKE_ESCAPE, contains_pattern
from richat_funding.models.db.application import Application
from richat_funding.models.db.funding_opportunity import FundingOpportunity
from richat_funding.models.opportunity_models import (
    ALL,
    DEFAULT_SORT,
    STATUS_OPEN,
    STATUS_UPCOMING,
    FundingStatistics,
    OpportunityCreate,
    OpportunityFilters,
    OpportunityUpdate,
)
from richat_funding.services.errors import ConflictError, InvalidDataError, NotFoundError

logger = logging.getLogger(__name__)

Opportunity = FundingOpportunity

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
# Fund shorthand codes accepted by the "fonds" filter, mapped to the
# substring searched in funding_program.
FUND_SHORTHANDS: dict[str, str] = {"GCF": "GCF", "GEF": "GEF", "CIF": "CIF"}

# Trailing window for the "created this week" statistic
STATISTICS_WINDOW = timedelta(days=7)


# ---------------------------------------------------------------------------
# Filter parsing
# ---------------------------------------------------------------------------


def parse_filters(params: Optional[Mapping[str, Any]]) -> OpportunityFilters:
    """Validate raw query parameters into :class:`OpportunityFilters`.

    Fails closed: if any field is malformed the whole filter set is dropped
    and the defaults (no filter, deadline order) are returned.
    """
    if not params:
        return OpportunityFilters()
    try:
        return OpportunityFilters.model_validate(dict(params))
    except ValidationError as e:
        logger.warning(
            "Ignoring malformed opportunity filters %s: %s",
            dict(params),
            [err["msg"] for err in e.errors()],
        )
        return OpportunityFilters()


# ---------------------------------------------------------------------------
# Predicate builders
# ---------------------------------------------------------------------------

PredicateBuilder = Callable[[OpportunityFilters], Optional[ColumnElement[bool]]]


def _ilike(column, value: str) -> ColumnElement[bool]:
    return column.ilike(contains_pattern(value), escape=LIKE_ESCAPE)


def sector_predicate(filters: OpportunityFilters) -> Optional[ColumnElement[bool]]:
    if not filters.sector:
        return None
    return filters.sector == any_(Opportunity.sectors)


def funding_type_predicate(filters: OpportunityFilters) -> Optional[ColumnElement[bool]]:
    # Substring match tolerates label variants ("Don" vs "Don / Subvention")
    if not filters.funding_type or filters.funding_type == ALL:
        return None
    return _ilike(Opportunity.funding_type, filters.funding_type)


def status_predicate(filters: OpportunityFilters) -> Optional[ColumnElement[bool]]:
    if not filters.status:
        return None
    return Opportunity.status == filters.status


def min_amount_predicate(filters: OpportunityFilters) -> Optional[ColumnElement[bool]]:
    if not filters.min_amount:
        return None
    return Opportunity.min_amount >= filters.min_amount


def max_amount_predicate(filters: OpportunityFilters) -> Optional[ColumnElement[bool]]:
    if not filters.max_amount:
        return None
    return Opportunity.max_amount <= filters.max_amount


def deadline_predicate(filters: OpportunityFilters) -> Optional[ColumnElement[bool]]:
    if not filters.deadline:
        return None
    return _ilike(Opportunity.deadline, filters.deadline)


def search_term_predicate(filters: OpportunityFilters) -> Optional[ColumnElement[bool]]:
    if not filters.search_term:
        return None
    return or_(
        _ilike(Opportunity.title, filters.search_term),
        _ilike(Opportunity.description, filters.search_term),
        _ilike(Opportunity.funding_program, filters.search_term),
    )


def fonds_predicate(filters: OpportunityFilters) -> Optional[ColumnElement[bool]]:
    if not filters.fonds or filters.fonds == ALL:
        return None
    pattern = FUND_SHORTHANDS.get(filters.fonds, filters.fonds)
    return _ilike(Opportunity.funding_program, pattern)


PREDICATE_BUILDERS: tuple[PredicateBuilder, ...] = (
    sector_predicate,
    funding_type_predicate,
    status_predicate,
    min_amount_predicate,
    max_amount_predicate,
    deadline_predicate,
    search_term_predicate,
    fonds_predicate,
)


def build_filter_conditions(filters: OpportunityFilters) -> list[ColumnElement[bool]]:
    """Return the predicates that apply to ``filters``, in builder order."""
    conditions = []
    for builder in PREDICATE_BUILDERS:
        clause = builder(filters)
        if clause is not None:
            conditions.append(clause)
    return conditions


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

_ORDERINGS: dict[str, tuple] = {
    "deadline": (Opportunity.deadline.asc(),),
    "amount": (Opportunity.max_amount.desc().nulls_last(),),
    "recent": (Opportunity.created_at.desc(),),
    "title": (Opportunity.title.asc(),),
    "title_desc": (Opportunity.title.desc(),),
}


def resolve_ordering(sort_by: Optional[str]) -> tuple:
    """Map a sort key to ORDER BY clauses, with ``id`` as the tie-breaker."""
    primary = _ORDERINGS.get(sort_by or DEFAULT_SORT, _ORDERINGS[DEFAULT_SORT])
    return (*primary, Opportunity.id.asc())


def build_opportunity_query(filters: OpportunityFilters) -> Select:
    """Build the full filtered and ordered SELECT for a list request."""
    stmt = select(Opportunity)
    conditions = build_filter_conditions(filters)
    if conditions:
        stmt = stmt.where(and_(*conditions))
    return stmt.order_by(*resolve_ordering(filters.sort_by))


def build_statistics_query(now: datetime) -> Select:
    """Single aggregate query behind :meth:`OpportunityService.get_statistics`."""
    cutoff = now - STATISTICS_WINDOW
    return select(
        func.count().filter(Opportunity.status == STATUS_OPEN).label("total_open"),
        func.count()
        .filter(Opportunity.status == STATUS_UPCOMING)
        .label("total_pending"),
        func.coalesce(
            func.sum(Opportunity.max_amount).filter(Opportunity.status == STATUS_OPEN),
            0,
        ).label("total_amount"),
        func.count().filter(Opportunity.created_at >= cutoff).label("this_week"),
    ).select_from(Opportunity)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class OpportunityService:
    """Service layer for funding opportunity operations."""

    @staticmethod
    async def list_opportunities(
        db: AsyncSession, filters: Optional[OpportunityFilters] = None
    ) -> list[FundingOpportunity]:
        """Return opportunities matching ``filters`` in the requested order.

        An empty result is a valid answer, never an error.
        """
        stmt = build_opportunity_query(filters or OpportunityFilters())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_opportunity(db: AsyncSession, opportunity_id: int) -> FundingOpportunity:
        """Fetch one opportunity.

        Raises:
            NotFoundError: If no row has this id.
        """
        opportunity = await db.get(FundingOpportunity, opportunity_id)
        if opportunity is None:
            raise NotFoundError("Funding opportunity", opportunity_id)
        return opportunity

    @staticmethod
    async def create_opportunity(
        db: AsyncSession, data: OpportunityCreate
    ) -> FundingOpportunity:
        opportunity = FundingOpportunity(**data.model_dump())
        db.add(opportunity)
        await db.flush()
        await db.refresh(opportunity)
        logger.info("Created funding opportunity %s (%s)", opportunity.id, opportunity.title)
        return opportunity

    @staticmethod
    async def update_opportunity(
        db: AsyncSession, opportunity_id: int, data: OpportunityUpdate
    ) -> FundingOpportunity:
        """Apply a partial update and refresh ``updated_at``.

        The amount range is re-checked against the merged record, since the
        body may carry only one of the two bounds.

        Raises:
            NotFoundError: If no row has this id.
            InvalidDataError: If the merged amounts are out of order.
        """
        opportunity = await OpportunityService.get_opportunity(db, opportunity_id)
        changes = data.model_dump(exclude_unset=True)

        min_amount = changes.get("min_amount", opportunity.min_amount)
        max_amount = changes.get("max_amount", opportunity.max_amount)
        if min_amount is not None and max_amount is not None and min_amount > max_amount:
            raise InvalidDataError(
                "minAmount must be less than or equal to maxAmount", field="minAmount"
            )

        for field, value in changes.items():
            setattr(opportunity, field, value)
        opportunity.updated_at = datetime.now(timezone.utc)

        await db.flush()
        await db.refresh(opportunity)
        return opportunity

    @staticmethod
    async def delete_opportunity(db: AsyncSession, opportunity_id: int) -> None:
        """Delete an opportunity that no application references.

        Raises:
            NotFoundError: If no row has this id.
            ConflictError: If applications still reference it.
        """
        opportunity = await OpportunityService.get_opportunity(db, opportunity_id)

        ref_result = await db.execute(
            select(func.count(Application.id)).where(
                Application.funding_opportunity_id == opportunity_id
            )
        )
        references = ref_result.scalar() or 0
        if references:
            raise ConflictError(
                f"Funding opportunity {opportunity_id} is referenced by "
                f"{references} application(s)"
            )

        await db.delete(opportunity)
        await db.flush()
        logger.info("Deleted funding opportunity %s", opportunity_id)

    @staticmethod
    async def get_statistics(
        db: AsyncSession, now: Optional[datetime] = None
    ) -> FundingStatistics:
        """Aggregate counts over the whole collection.

        Time-relative, so it is recomputed on every call.
        """
        now = now or datetime.now(timezone.utc)
        result = await db.execute(build_statistics_query(now))
        row = result.one()
        return FundingStatistics(
            total_open=row.total_open or 0,
            total_pending=row.total_pending or 0,
            total_amount=int(row.total_amount or 0),
            this_week=row.this_week or 0,
        )
