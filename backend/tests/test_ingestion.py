"""Tests for the ingestion service, row upserts and the runner's admission gate."""

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.core.constants import IngestionMode, PipelineStatus
from app.core.errors import IngestionCapacityExceeded
from app.db.models import Agent, Base, Policy, User, UserAccount
from app.db.session import create_engine_for, make_session_factory
from app.ingestion import runner as runner_module
from app.ingestion.runner import IngestionRunner
from app.ingestion.service import IngestionOutcome, ingest_file
from app.pipeline.steps.extract_data import EMPTY_FILE_MESSAGE
from app.processing.format_detector import UNSUPPORTED_FORMAT_MESSAGE
from app.repositories import ingestion_runs as run_repository
from app.repositories import policy_categories as category_repository

from .conftest import SAMPLE_ROWS, write_csv


async def count(session_factory, model) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(model))


class TestIngestFile:
    async def test_creates_records_and_reports_counts(self, session_factory, sample_csv):
        outcome = await ingest_file(str(sample_csv), "policies.csv", session_factory)

        assert outcome.success
        assert outcome.rows == 3
        assert outcome.summary == "Processed 3 rows"
        assert outcome.stats.to_dict() == {
            "agents": 2,
            "users": 2,
            "userAccounts": 2,
            "policyCategories": 2,
            "policyCarriers": 2,
            "policies": 3,
            "errors": [],
        }
        assert await count(session_factory, Policy) == 3

    async def test_uploaded_file_is_deleted(self, session_factory, sample_csv):
        await ingest_file(str(sample_csv), "policies.csv", session_factory)
        assert not sample_csv.exists()

    async def test_identical_reupload_creates_nothing(self, session_factory, tmp_path):
        first = write_csv(tmp_path / "first.csv", SAMPLE_ROWS)
        second = write_csv(tmp_path / "second.csv", SAMPLE_ROWS)

        await ingest_file(str(first), "first.csv", session_factory)
        outcome = await ingest_file(str(second), "second.csv", session_factory)

        assert outcome.success
        stats = outcome.stats
        assert (stats.agents, stats.users, stats.user_accounts) == (0, 0, 0)
        assert (stats.policy_categories, stats.policy_carriers, stats.policies) == (0, 0, 0)
        assert await count(session_factory, User) == 2

    async def test_row_without_policy_number_still_creates_other_records(self, session_factory, tmp_path):
        row = dict(SAMPLE_ROWS[0], policy_number="")
        path = write_csv(tmp_path / "no-policy.csv", [row])

        outcome = await ingest_file(str(path), "no-policy.csv", session_factory)

        assert outcome.stats.users == 1
        assert outcome.stats.policy_categories == 1
        assert outcome.stats.policy_carriers == 1
        assert outcome.stats.policies == 0
        assert outcome.stats.errors == []

    async def test_failing_row_is_rolled_back_and_reported(self, session_factory, tmp_path):
        bad = dict(
            SAMPLE_ROWS[2],
            email="bad@example.com",
            account_name="Bad Row",
            policy_start_date="2022-01-01",
            policy_end_date="2021-01-01",
        )
        path = write_csv(tmp_path / "mixed.csv", [bad, SAMPLE_ROWS[0]])

        outcome = await ingest_file(str(path), "mixed.csv", session_factory)

        assert outcome.success
        assert outcome.stats.errors == ["Row 1: Policy start date must be before end date"]
        assert outcome.stats.users == 1
        assert outcome.stats.policies == 1
        async with session_factory() as session:
            bad_user = await session.scalar(select(User).where(User.email == "bad@example.com"))
            agents = (await session.scalars(select(Agent.agent_name))).all()
        assert bad_user is None
        assert agents == ["Alex Watts"]
        assert await count(session_factory, UserAccount) == 1

    async def test_invalid_gender_is_a_row_error(self, session_factory, tmp_path):
        path = write_csv(tmp_path / "gender.csv", [dict(SAMPLE_ROWS[0], gender="unknown")])

        outcome = await ingest_file(str(path), "gender.csv", session_factory)

        assert len(outcome.stats.errors) == 1
        assert outcome.stats.errors[0].startswith("Row 1: Invalid gender")

    async def test_known_user_skips_profile_validation(self, session_factory, tmp_path):
        first = write_csv(tmp_path / "first.csv", [SAMPLE_ROWS[0]])
        second = write_csv(
            tmp_path / "second.csv",
            [dict(SAMPLE_ROWS[1], gender="X", dob="not a date")],
        )

        await ingest_file(str(first), "first.csv", session_factory)
        outcome = await ingest_file(str(second), "second.csv", session_factory)

        assert outcome.stats.errors == []
        assert outcome.stats.users == 0
        assert outcome.stats.policy_categories == 1
        assert outcome.stats.policies == 1
        async with session_factory() as session:
            policy = await session.scalar(select(Policy).where(Policy.policy_number == "PK7LN1S5W4CV"))
            user = await session.scalar(select(User).where(User.email == "lura@example.com"))
        assert policy is not None
        assert policy.user_id == user.id
        assert user.gender == "Female"

    async def test_unsupported_format(self, session_factory, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello", encoding="utf-8")

        outcome = await ingest_file(str(path), "notes.txt", session_factory)

        assert not outcome.success
        assert outcome.error == UNSUPPORTED_FORMAT_MESSAGE
        assert not path.exists()

    async def test_empty_file(self, session_factory, tmp_path):
        path = write_csv(tmp_path / "empty.csv", [])

        outcome = await ingest_file(str(path), "empty.csv", session_factory)

        assert not outcome.success
        assert outcome.error == EMPTY_FILE_MESSAGE
        assert not path.exists()

    async def test_run_is_recorded(self, session_factory, sample_csv, tmp_path):
        await ingest_file(str(sample_csv), "policies.csv", session_factory)
        bad = tmp_path / "bad.pdf"
        bad.write_bytes(b"%PDF")
        await ingest_file(str(bad), "bad.pdf", session_factory)

        async with session_factory() as session:
            runs = await run_repository.list_runs(session)

        by_name = {run.file_name: run for run in runs}
        assert by_name["policies.csv"].status == PipelineStatus.COMPLETED
        assert by_name["policies.csv"].rows_total == 3
        assert by_name["policies.csv"].stats["policies"] == 3
        assert by_name["bad.pdf"].status == PipelineStatus.FAILED
        assert by_name["bad.pdf"].error_message == UNSUPPORTED_FORMAT_MESSAGE

    async def test_natural_key_conflict_retries_the_row(self, session_factory, tmp_path, monkeypatch):
        original = category_repository.get_or_create_category
        calls = {"n": 0}

        async def conflict_once(db, category_name):
            calls["n"] += 1
            if calls["n"] == 1:
                raise IntegrityError("INSERT INTO policy_categories", {}, Exception("UNIQUE constraint failed"))
            return await original(db, category_name)

        monkeypatch.setattr(category_repository, "get_or_create_category", conflict_once)
        path = write_csv(tmp_path / "race.csv", [SAMPLE_ROWS[0]])

        outcome = await ingest_file(str(path), "race.csv", session_factory)

        assert outcome.stats.errors == []
        assert outcome.stats.policies == 1
        assert calls["n"] == 2


class TestIngestionRunner:
    async def test_inline_submit(self, session_factory, sample_csv):
        runner = IngestionRunner(IngestionMode.INLINE, max_concurrent=2, session_factory=session_factory)

        outcome = await runner.submit(str(sample_csv), "policies.csv")

        assert outcome.success
        assert runner.in_flight == 0
        assert not runner.is_busy

    async def test_refuses_uploads_beyond_capacity(self, session_factory, tmp_path, monkeypatch):
        release = asyncio.Event()

        async def slow_ingest(file_path, file_name, factory):
            await release.wait()
            return IngestionOutcome(success=True, file_name=file_name, rows=1)

        monkeypatch.setattr(runner_module, "ingest_file", slow_ingest)
        runner = IngestionRunner(IngestionMode.INLINE, max_concurrent=1, session_factory=session_factory)
        first = tmp_path / "first.csv"
        second = tmp_path / "second.csv"
        first.write_text("a\n1\n")
        second.write_text("a\n1\n")

        pending = asyncio.create_task(runner.submit(str(first), "first.csv"))
        await asyncio.sleep(0)
        assert runner.is_busy

        with pytest.raises(IngestionCapacityExceeded):
            await runner.submit(str(second), "second.csv")
        assert not second.exists()

        release.set()
        outcome = await pending
        assert outcome.success
        assert runner.in_flight == 0

    async def test_worker_crash_becomes_a_failed_outcome(self, session_factory, tmp_path, monkeypatch):
        async def broken(file_path, file_name, factory):
            raise RuntimeError("worker died")

        monkeypatch.setattr(runner_module, "ingest_file", broken)
        runner = IngestionRunner(IngestionMode.INLINE, max_concurrent=1, session_factory=session_factory)
        path = tmp_path / "file.csv"
        path.write_text("a\n1\n")

        outcome = await runner.submit(str(path), "file.csv")

        assert not outcome.success
        assert outcome.error == "worker died"
        assert not path.exists()
        assert runner.in_flight == 0


class TestProcessIsolation:
    async def test_process_mode_ingests_in_a_child_process(self, tmp_path, monkeypatch):
        url = f"sqlite+aiosqlite:///{tmp_path / 'isolated.db'}"
        monkeypatch.setenv("DATABASE_URI", url)
        engine = create_engine_for(url)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        factory = make_session_factory(engine)
        path = write_csv(tmp_path / "policies.csv", SAMPLE_ROWS)
        runner = IngestionRunner(IngestionMode.PROCESS, max_concurrent=1, timeout=120)

        try:
            outcome = await runner.submit(str(path), "policies.csv")
        finally:
            runner.shutdown()

        assert outcome.success, outcome.error
        assert outcome.rows == 3
        assert outcome.stats.policies == 3
        assert outcome.stats.users == 2
        assert await count(factory, Policy) == 3
        assert await count(factory, User) == 2
        assert not path.exists()
        await engine.dispose()
