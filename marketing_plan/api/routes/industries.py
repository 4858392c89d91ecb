"""API routes for the industry catalogue."""

from typing import Optional

from fastapi import APIRouter, Query

from marketing_plan.api.services import get_services
from marketing_plan.errors import NotFoundError
from marketing_plan.industries.schemas import Industry

router = APIRouter(prefix="/industries", tags=["industries"])


@router.get("", response_model=list[Industry])
async def list_industries(
    category: Optional[str] = Query(
        None,
        description="Filter by category: service, product, technology, local, b2b, b2c",
    ),
):
    """List industries. An unknown category returns an empty list."""
    return get_services().industries.list_all(category=category)


@router.get("/{industry_id}", response_model=Industry)
async def get_industry(industry_id: str):
    """Get a single industry by id."""
    registry = get_services().industries
    industry = registry.get(industry_id)
    if industry is None:
        raise NotFoundError(
            f"Industry '{industry_id}' not found",
            details=f"Available: {[i.id for i in registry.list_all()]}",
        )
    return industry
