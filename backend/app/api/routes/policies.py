"""Policy listing, search and the per-user aggregation report."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.api.schemas import AggregatedUserResponse, PolicyResponse, PolicySearchResponse
from app.api.schemas.records import UserSummary
from app.core.errors import RecordNotFound
from app.repositories import policies as policy_repository
from app.repositories import users as user_repository

router = APIRouter(prefix="/policies", tags=["Policies"])


@router.get("", response_model=list[PolicyResponse])
async def list_policies(db: AsyncSession = Depends(get_db)):
    return await policy_repository.list_policies(db)


@router.get("/aggregated", response_model=list[AggregatedUserResponse])
async def aggregated_policies(db: AsyncSession = Depends(get_db)):
    """Policies grouped by user, users with the most policies first."""
    return await policy_repository.aggregate_policies_by_user(db)


@router.get("/search/{username}", response_model=PolicySearchResponse)
async def search_policies(username: str, db: AsyncSession = Depends(get_db)):
    """
    Find the first user whose first name contains ``username``
    (case-insensitive) and return their policies.
    """
    user = await user_repository.find_user_by_first_name(db, username)
    if user is None:
        raise RecordNotFound("User not found")

    policies = await policy_repository.list_policies_for_user(db, user.id)
    return PolicySearchResponse(
        user=UserSummary(id=user.id, name=user.full_name, email=user.email),
        policies=[PolicyResponse.model_validate(p) for p in policies],
    )
