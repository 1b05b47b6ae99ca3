"""
IngestionRun: audit record for one uploaded file.

One row per upload.  Tracks the detected format, status, timing and the
final per-entity counts / row errors so past uploads can be listed.
"""

from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text, Uuid

from app.db.models.base import Base, generate_uuid, utcnow


class IngestionRun(Base):
    """One row per ingestion pipeline execution."""

    __tablename__ = "ingestion_runs"

    id = Column(Uuid, primary_key=True, default=generate_uuid)

    # ── Source file ──────────────────────────
    file_name = Column(String(255), nullable=False)
    detected_format = Column(String(50), nullable=True)

    # ── Status / Progress ────────────────────
    status = Column(String(50), nullable=False, default="RUNNING", index=True)
    rows_total = Column(Integer, default=0)

    # ── Timing (UTC) ─────────────────────────
    started_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    duration_ms = Column(Integer, nullable=True)

    # ── Outcome ───────────────────────────────
    # Per-entity created counts plus the row error list.
    stats = Column(JSON, default=dict)
    error_message = Column(Text, nullable=True)

    # ── Audit timestamps ─────────────────────
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<IngestionRun {self.id} file={self.file_name} status={self.status}>"
