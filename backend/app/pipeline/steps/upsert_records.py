"""
UpsertRecordsStep: turns every extracted row into domain records.

Each row is handled on its own session and committed on its own:

    Agent → User (by email) → UserAccount → PolicyCategory →
    PolicyCarrier → Policy (only when user, category and carrier
    were all resolved in the same row)

Every lookup is get-or-create on the natural key, so re-ingesting a
file creates nothing.  A failing row is rolled back as a whole and
reported in stats.errors; the remaining rows still run.  A uniqueness
violation means another upload inserted the same natural key first;
the row is retried once so the lookup finds that record.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.pipeline.context import IngestionStats, PipelineContext, StepResult
from app.pipeline.step import PipelineStep
from app.processing.normalization import pick_text, policy_terms, user_email, user_profile
from app.repositories import (
    agents as agent_repository,
    policies as policy_repository,
    policy_carriers as carrier_repository,
    policy_categories as category_repository,
    user_accounts as account_repository,
    users as user_repository,
)

logger = get_logger(__name__)

MAX_ROW_ATTEMPTS = 2


async def upsert_row(db: AsyncSession, row: Mapping[str, Any], now: datetime) -> IngestionStats:
    """Resolve or create every record one row describes.  Flushes, never commits."""
    created = IngestionStats()

    agent_name = pick_text(row, "agent")
    if agent_name:
        _, is_new = await agent_repository.get_or_create_agent(db, agent_name)
        created.agents += is_new

    user = None
    email = user_email(row)
    if email is not None:
        user, is_new = await user_repository.get_or_create_user(db, email, lambda: user_profile(row))
        created.users += is_new

    account_name = pick_text(row, "account_name")
    if user is not None and account_name:
        _, is_new = await account_repository.get_or_create_account(db, account_name, user.id)
        created.user_accounts += is_new

    category = None
    category_name = pick_text(row, "category")
    if category_name:
        category, is_new = await category_repository.get_or_create_category(db, category_name)
        created.policy_categories += is_new

    carrier = None
    carrier_name = pick_text(row, "carrier")
    if carrier_name:
        carrier, is_new = await carrier_repository.get_or_create_carrier(db, carrier_name)
        created.policy_carriers += is_new

    if user is not None and category is not None and carrier is not None:
        terms = policy_terms(row, now)
        if terms is not None:
            _, is_new = await policy_repository.get_or_create_policy(
                db,
                policy_number=terms.policy_number,
                policy_start_date=terms.start,
                policy_end_date=terms.end,
                user_id=user.id,
                category_id=category.id,
                company_id=carrier.id,
            )
            created.policies += is_new

    return created


def _describe(exc: Exception) -> str:
    if isinstance(exc, IntegrityError) and exc.orig is not None:
        return f"Duplicate or invalid reference: {exc.orig}"
    return str(exc) or type(exc).__name__


class UpsertRecordsStep(PipelineStep):
    """Get-or-create the records for every row, one transaction per row."""

    name = "upsert_records"
    description = "Create agents, users, accounts, categories, carriers and policies"

    async def execute(self, ctx: PipelineContext) -> StepResult:
        started_at = self._now()
        now = datetime.now(timezone.utc)
        stats = ctx.stats

        for number, row in enumerate(ctx.rows, start=1):
            for attempt in range(1, MAX_ROW_ATTEMPTS + 1):
                async with ctx.session_factory() as session:
                    try:
                        row_stats = await upsert_row(session, row, now)
                        await session.commit()
                    except IntegrityError as exc:
                        await session.rollback()
                        if attempt < MAX_ROW_ATTEMPTS:
                            logger.info("Natural-key conflict, retrying row", row=number)
                            continue
                        stats.errors.append(f"Row {number}: {_describe(exc)}")
                    except Exception as exc:
                        await session.rollback()
                        stats.errors.append(f"Row {number}: {_describe(exc)}")
                    else:
                        stats.merge(row_stats)
                break

        logger.info(
            "Rows upserted",
            rows=len(ctx.rows),
            row_errors=len(stats.errors),
            created=stats.to_dict(),
        )
        return self._success(started_at, metadata={
            "rows": len(ctx.rows),
            "row_errors": len(stats.errors),
        })
