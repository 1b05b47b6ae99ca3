"""Read endpoints for agents and users."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.api.schemas import AgentResponse, UserResponse
from app.repositories import agents as agent_repository
from app.repositories import users as user_repository

router = APIRouter(tags=["Directory"])


@router.get("/agents", response_model=list[AgentResponse])
async def list_agents(db: AsyncSession = Depends(get_db)):
    return await agent_repository.list_agents(db)


@router.get("/users", response_model=list[UserResponse])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await user_repository.list_users(db)
