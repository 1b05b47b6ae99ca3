"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time: configure them BEFORE importing app
os.environ.setdefault("DATABASE_URI", "sqlite+aiosqlite://")
os.environ["INGESTION_MODE"] = "inline"
os.environ["WATCHDOG_ENABLED"] = "false"
os.environ.setdefault("APP_ENV", "test")

import csv
from pathlib import Path

import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.db.models import Base
from app.db.session import make_session_factory
from app.main import create_app

SAMPLE_HEADERS = [
    "agent", "firstname", "dob", "address", "city", "state", "zip", "phone",
    "email", "gender", "userType", "account_name", "category_name",
    "company_name", "policy_number", "policy_start_date", "policy_end_date",
]

SAMPLE_ROWS = [
    {
        "agent": "Alex Watts", "firstname": "Lura Lucca", "dob": "1960-05-30",
        "address": "170 MATTHEWS PL", "city": "Wichita", "state": "KS", "zip": "67202",
        "phone": "8677356559", "email": "lura@example.com", "gender": "Female",
        "userType": "Active Client", "account_name": "Lura Lucca & Owen Dodson",
        "category_name": "Commercial Auto", "company_name": "Integon Gen Ins Corp",
        "policy_number": "YEEX9MOIBU7X", "policy_start_date": "2018-11-02",
        "policy_end_date": "2019-11-02",
    },
    {
        "agent": "Alex Watts", "firstname": "Lura Lucca", "dob": "1960-05-30",
        "address": "170 MATTHEWS PL", "city": "Wichita", "state": "KS", "zip": "67202",
        "phone": "8677356559", "email": "lura@example.com", "gender": "Female",
        "userType": "Active Client", "account_name": "Lura Lucca & Owen Dodson",
        "category_name": "Personal Auto", "company_name": "National Union",
        "policy_number": "PK7LN1S5W4CV", "policy_start_date": "2019-01-15",
        "policy_end_date": "2020-01-15",
    },
    {
        "agent": "Dev Kapoor", "firstname": "Torie Buchanan", "dob": "1980-01-12",
        "address": "66 SANTA CRUZ AVE", "city": "Tampa", "state": "FL", "zip": "33601",
        "phone": "5559871234", "email": "torie@example.com", "gender": "M",
        "userType": "Active Client", "account_name": "Torie Buchanan",
        "category_name": "Commercial Auto", "company_name": "National Union",
        "policy_number": "Z1Q8LMP3RT0A", "policy_start_date": "2020-03-01",
        "policy_end_date": "2021-03-01",
    },
]


def write_csv(path: Path, rows: list[dict], headers: list[str] | None = None) -> Path:
    """Write rows as a CSV file and return its path."""
    headers = headers or SAMPLE_HEADERS
    with open(path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=headers)
        writer.writeheader()
        for row in rows:
            writer.writerow({h: row.get(h, "") for h in headers})
    return path


@pytest.fixture
async def engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch) -> Path:
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def sample_csv(tmp_path) -> Path:
    return write_csv(tmp_path / "policies.csv", SAMPLE_ROWS)


@pytest.fixture
async def app(session_factory, upload_dir):
    """Application with its lifespan running against the test database."""
    application = create_app(session_factory=session_factory)
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
