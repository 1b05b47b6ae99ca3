"""
PipelineContext: mutable state object carried through every step.

This is the single source of truth for one ingestion run.  Each step
reads from and writes to the context; the ingestion service turns the
final context into the upload response and the IngestionRun audit row.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


# ═══════════════════════════════════════════════════════════
#  IngestionStats: per-entity created counts + row errors
# ═══════════════════════════════════════════════════════════

@dataclass
class IngestionStats:
    """Counts of newly created records, plus one message per failed row."""

    agents: int = 0
    users: int = 0
    user_accounts: int = 0
    policy_categories: int = 0
    policy_carriers: int = 0
    policies: int = 0
    errors: list[str] = field(default_factory=list)

    def merge(self, other: "IngestionStats") -> None:
        """Add another row's counts (errors are tracked by the caller)."""
        self.agents += other.agents
        self.users += other.users
        self.user_accounts += other.user_accounts
        self.policy_categories += other.policy_categories
        self.policy_carriers += other.policy_carriers
        self.policies += other.policies

    def to_dict(self) -> dict[str, Any]:
        """Wire shape used by the upload response (camelCase keys)."""
        return {
            "agents": self.agents,
            "users": self.users,
            "userAccounts": self.user_accounts,
            "policyCategories": self.policy_categories,
            "policyCarriers": self.policy_carriers,
            "policies": self.policies,
            "errors": list(self.errors),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IngestionStats":
        return cls(
            agents=data.get("agents", 0),
            users=data.get("users", 0),
            user_accounts=data.get("userAccounts", 0),
            policy_categories=data.get("policyCategories", 0),
            policy_carriers=data.get("policyCarriers", 0),
            policies=data.get("policies", 0),
            errors=list(data.get("errors", [])),
        )


# ═══════════════════════════════════════════════════════════
#  StepResult
# ═══════════════════════════════════════════════════════════

@dataclass
class StepResult:
    """Outcome of a single pipeline step execution."""

    step_name: str
    status: str                     # StepStatus value
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialise for JSON storage."""
        return {
            "step_name": self.step_name,
            "status": self.status,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "metadata": self.metadata,
        }


# ═══════════════════════════════════════════════════════════
#  PipelineContext
# ═══════════════════════════════════════════════════════════

@dataclass
class PipelineContext:
    """
    Carries all state between ingestion steps.

    Populated progressively: detection fills in the format, extraction
    the raw rows, the upsert step the stats.
    """

    # ─── Identity (set at init) ────────────────────────
    file_path: str
    file_name: str
    session_factory: async_sessionmaker[AsyncSession] | Callable[[], AsyncSession]
    execution_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    # ─── Detection / extraction ────────────────────────
    detected_format: str | None = None
    rows: list[dict[str, Any]] = field(default_factory=list)

    # ─── Outcome ───────────────────────────────────────
    stats: IngestionStats = field(default_factory=IngestionStats)

    # ─── Execution tracking ────────────────────────────
    total_steps: int = 0
    step_results: list[StepResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def add_error(self, error: str) -> None:
        """Record a run-level error (row errors live in stats.errors)."""
        self.errors.append(error)

    def to_summary_dict(self) -> dict[str, Any]:
        """Compact summary for logging / DB storage."""
        return {
            "execution_id": self.execution_id,
            "file_name": self.file_name,
            "detected_format": self.detected_format,
            "rows": len(self.rows),
            "stats": asdict(self.stats),
            "steps_completed": len(self.step_results),
            "total_steps": self.total_steps,
            "errors": self.errors,
        }
