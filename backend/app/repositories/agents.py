"""Agent repository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.agent import Agent


async def get_agent_by_name(db: AsyncSession, agent_name: str) -> Agent | None:
    """Agents are unique by name."""
    result = await db.execute(select(Agent).where(Agent.agent_name == agent_name))
    return result.scalar_one_or_none()


async def get_or_create_agent(db: AsyncSession, agent_name: str) -> tuple[Agent, bool]:
    agent = await get_agent_by_name(db, agent_name)
    if agent is not None:
        return agent, False
    agent = Agent(agent_name=agent_name)
    db.add(agent)
    await db.flush()
    return agent, True


async def list_agents(db: AsyncSession) -> list[Agent]:
    result = await db.execute(select(Agent).order_by(Agent.created_at))
    return list(result.scalars().all())
