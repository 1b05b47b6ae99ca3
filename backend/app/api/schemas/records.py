"""Response schemas for agents, users and policies."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from app.api.schemas.base import ApiModel


class AgentResponse(ApiModel):
    id: UUID
    agent_name: str
    created_at: datetime
    updated_at: datetime


class AddressResponse(ApiModel):
    street: str
    city: str
    state: str
    zip_code: str


class UserResponse(ApiModel):
    """Full user profile; the postal address is nested."""

    id: UUID
    first_name: str
    last_name: str
    date_of_birth: date
    address: AddressResponse
    phone_number: str
    email: str
    gender: str
    user_type: str
    created_at: datetime
    updated_at: datetime


class CategoryResponse(ApiModel):
    id: UUID
    category_name: str


class CarrierResponse(ApiModel):
    id: UUID
    company_name: str


class PolicyHolderResponse(ApiModel):
    id: UUID
    first_name: str
    last_name: str
    email: str


class PolicyResponse(ApiModel):
    id: UUID
    policy_number: str
    policy_start_date: datetime
    policy_end_date: datetime
    category: CategoryResponse
    carrier: CarrierResponse
    user: PolicyHolderResponse
    created_at: datetime
    updated_at: datetime


class UserSummary(ApiModel):
    id: UUID
    name: str
    email: str


class PolicySearchResponse(ApiModel):
    user: UserSummary
    policies: list[PolicyResponse]


class AggregatedPolicyEntry(ApiModel):
    policy_number: str
    start_date: datetime
    end_date: datetime
    category: str
    carrier: str


class AggregatedUserResponse(ApiModel):
    """One user and every policy they hold."""

    user_id: UUID
    user_name: str
    user_email: str
    total_policies: int
    policies: list[AggregatedPolicyEntry]
    categories: list[str]
    carriers: list[str]
