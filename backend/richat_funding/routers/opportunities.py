"""Funding opportunities router.

Catalog CRUD plus the filtered list and the dashboard statistics.  List
filters are read from the raw query string and validated as a whole, so a
malformed value drops every filter instead of failing the request.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from richat_funding.deps import get_db, raise_not_found, raise_server_error
from richat_funding.models.opportunity_models import (
    FundingStatistics,
    OpportunityCreate,
    OpportunityResponse,
    OpportunityUpdate,
)
from richat_funding.services.errors import ConflictError, InvalidDataError, NotFoundError
from richat_funding.services.opportunity_service import OpportunityService, parse_filters

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["funding-opportunities"])


# ---------------------------------------------------------------------------
# GET  /funding-opportunities
# ---------------------------------------------------------------------------


@router.get("/funding-opportunities", response_model=list[OpportunityResponse])
async def list_funding_opportunities(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """List opportunities matching the query-string filters.

    Accepted parameters: ``sector``, ``fundingType``, ``minAmount``,
    ``maxAmount``, ``status``, ``deadline``, ``searchTerm``, ``fonds`` and
    ``sortBy`` (deadline, amount, recent, title, title_desc).
    """
    filters = parse_filters(request.query_params)
    try:
        opportunities = await OpportunityService.list_opportunities(db, filters)
    except Exception as e:
        raise_server_error("listing funding opportunities", e)

    return [OpportunityResponse.model_validate(o) for o in opportunities]


# ---------------------------------------------------------------------------
# GET  /funding-opportunities/{opportunity_id}
# ---------------------------------------------------------------------------


@router.get(
    "/funding-opportunities/{opportunity_id}",
    response_model=OpportunityResponse,
)
async def get_funding_opportunity(
    opportunity_id: int,
    db: AsyncSession = Depends(get_db),
):
    try:
        opportunity = await OpportunityService.get_opportunity(db, opportunity_id)
    except NotFoundError as e:
        raise_not_found(e)
    except Exception as e:
        raise_server_error("fetching funding opportunity", e)

    return OpportunityResponse.model_validate(opportunity)


# ---------------------------------------------------------------------------
# POST /funding-opportunities
# ---------------------------------------------------------------------------


@router.post(
    "/funding-opportunities",
    response_model=OpportunityResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_funding_opportunity(
    body: OpportunityCreate,
    db: AsyncSession = Depends(get_db),
):
    """Add an opportunity from the manual entry form.

    Invalid bodies are rejected with 400 and nothing is written.
    """
    try:
        opportunity = await OpportunityService.create_opportunity(db, body)
    except Exception as e:
        raise_server_error("funding opportunity creation", e)

    return OpportunityResponse.model_validate(opportunity)


# ---------------------------------------------------------------------------
# PUT  /funding-opportunities/{opportunity_id}
# ---------------------------------------------------------------------------


@router.put(
    "/funding-opportunities/{opportunity_id}",
    response_model=OpportunityResponse,
)
async def update_funding_opportunity(
    opportunity_id: int,
    body: OpportunityUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Replace the fields present in the body; ``updatedAt`` is refreshed."""
    try:
        opportunity = await OpportunityService.update_opportunity(
            db, opportunity_id, body
        )
    except NotFoundError as e:
        raise_not_found(e)
    except InvalidDataError:
        raise
    except Exception as e:
        raise_server_error("funding opportunity update", e)

    return OpportunityResponse.model_validate(opportunity)


# ---------------------------------------------------------------------------
# DELETE /funding-opportunities/{opportunity_id}
# ---------------------------------------------------------------------------


@router.delete(
    "/funding-opportunities/{opportunity_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_funding_opportunity(
    opportunity_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Delete an opportunity.

    Raises:
        HTTPException 404: Opportunity not found.
        HTTPException 409: Applications still reference it.
    """
    try:
        await OpportunityService.delete_opportunity(db, opportunity_id)
    except NotFoundError as e:
        raise_not_found(e)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except Exception as e:
        raise_server_error("funding opportunity deletion", e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# GET  /funding-statistics
# ---------------------------------------------------------------------------


@router.get("/funding-statistics", response_model=FundingStatistics)
async def get_funding_statistics(db: AsyncSession = Depends(get_db)):
    """Open/upcoming counts, open amount total, and opportunities added this week."""
    try:
        return await OpportunityService.get_statistics(db)
    except Exception as e:
        raise_server_error("fetching funding statistics", e)
