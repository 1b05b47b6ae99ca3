"""Tests for the HTTP API: uploads, reads, reports, scheduling and health."""

import uuid
from datetime import datetime, timedelta, timezone

from app.processing.format_detector import UNSUPPORTED_FORMAT_MESSAGE


async def upload(client, path, name=None):
    with open(path, "rb") as fh:
        return await client.post(
            "/api/upload",
            files={"file": (name or path.name, fh.read(), "text/csv")},
        )


class TestUpload:
    async def test_upload_processes_file(self, client, sample_csv, upload_dir):
        response = await upload(client, sample_csv)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "File processed successfully"
        assert body["data"] == "Processed 3 rows"
        assert body["stats"] == {
            "agents": 2,
            "users": 2,
            "userAccounts": 2,
            "policyCategories": 2,
            "policyCarriers": 2,
            "policies": 3,
            "errors": [],
        }
        assert list(upload_dir.iterdir()) == []

    async def test_missing_file(self, client):
        response = await client.post("/api/upload", data={"note": "no file here"})

        assert response.status_code == 400
        assert response.json() == {"error": "No file uploaded"}

    async def test_unsupported_format(self, client, tmp_path, upload_dir):
        path = tmp_path / "notes.txt"
        path.write_text("hello", encoding="utf-8")

        response = await upload(client, path)

        assert response.status_code == 500
        assert response.json() == {"error": UNSUPPORTED_FORMAT_MESSAGE}
        assert list(upload_dir.iterdir()) == []

    async def test_upload_history(self, client, sample_csv):
        await upload(client, sample_csv)

        response = await client.get("/api/uploads")

        assert response.status_code == 200
        runs = response.json()
        assert len(runs) == 1
        assert runs[0]["fileName"] == "policies.csv"
        assert runs[0]["status"] == "COMPLETED"
        assert runs[0]["rowsTotal"] == 3


class TestRecords:
    async def test_agents_and_users(self, client, sample_csv):
        await upload(client, sample_csv)

        agents = (await client.get("/api/agents")).json()
        users = (await client.get("/api/users")).json()

        assert sorted(a["agentName"] for a in agents) == ["Alex Watts", "Dev Kapoor"]
        lura = next(u for u in users if u["email"] == "lura@example.com")
        assert lura["firstName"] == "Lura"
        assert lura["lastName"] == "Lucca"
        assert lura["address"] == {
            "street": "170 MATTHEWS PL",
            "city": "Wichita",
            "state": "KS",
            "zipCode": "67202",
        }

    async def test_policies_include_references(self, client, sample_csv):
        await upload(client, sample_csv)

        policies = (await client.get("/api/policies")).json()

        assert len(policies) == 3
        first = next(p for p in policies if p["policyNumber"] == "YEEX9MOIBU7X")
        assert first["category"]["categoryName"] == "Commercial Auto"
        assert first["carrier"]["companyName"] == "Integon Gen Ins Corp"
        assert first["user"]["email"] == "lura@example.com"


class TestPolicySearch:
    async def test_case_insensitive_first_name_match(self, client, sample_csv):
        await upload(client, sample_csv)

        response = await client.get("/api/policies/search/LUR")

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["name"] == "Lura Lucca"
        assert body["user"]["email"] == "lura@example.com"
        assert {p["policyNumber"] for p in body["policies"]} == {"YEEX9MOIBU7X", "PK7LN1S5W4CV"}

    async def test_no_match(self, client, sample_csv):
        await upload(client, sample_csv)

        response = await client.get("/api/policies/search/nobody")

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}

    async def test_wildcards_are_literal(self, client, sample_csv):
        await upload(client, sample_csv)

        response = await client.get("/api/policies/search/%25")

        assert response.status_code == 404


class TestAggregation:
    async def test_groups_policies_per_user(self, client, sample_csv):
        await upload(client, sample_csv)

        response = await client.get("/api/policies/aggregated")

        assert response.status_code == 200
        entries = response.json()
        assert [e["userName"] for e in entries] == ["Lura Lucca", "Torie Buchanan"]

        lura = entries[0]
        assert lura["userEmail"] == "lura@example.com"
        assert lura["totalPolicies"] == 2
        assert set(lura["categories"]) == {"Commercial Auto", "Personal Auto"}
        assert set(lura["carriers"]) == {"Integon Gen Ins Corp", "National Union"}
        assert {p["policyNumber"] for p in lura["policies"]} == {"YEEX9MOIBU7X", "PK7LN1S5W4CV"}
        assert set(lura["policies"][0]) == {"policyNumber", "startDate", "endDate", "category", "carrier"}

    async def test_empty_store(self, client):
        response = await client.get("/api/policies/aggregated")
        assert response.json() == []


class TestScheduleMessage:
    async def test_schedules_future_message(self, client):
        tomorrow = datetime.now(timezone.utc) + timedelta(days=1)

        response = await client.post("/api/schedule-message", json={
            "message": "Renewal reminder",
            "day": tomorrow.strftime("%Y-%m-%d"),
            "time": "09:30:00",
        })

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Message scheduled successfully"
        scheduled = body["scheduledMessage"]
        assert scheduled["message"] == "Renewal reminder"
        assert scheduled["status"] == "pending"
        assert scheduled["insertedAt"] is None

        fetched = await client.get(f"/api/scheduled-messages/{scheduled['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["status"] == "pending"

    async def test_past_time_is_rejected_and_not_stored(self, client):
        response = await client.post("/api/schedule-message", json={
            "message": "Too late",
            "day": "2020-01-01",
            "time": "10:00",
        })

        assert response.status_code == 400
        assert response.json() == {"error": "Scheduled time must be in the future"}
        assert (await client.get("/api/scheduled-messages")).json() == []

    async def test_missing_fields(self, client):
        response = await client.post("/api/schedule-message", json={"message": "hi", "day": "2030-01-01"})

        assert response.status_code == 400
        assert response.json() == {"error": "Message, day, and time are required"}

    async def test_unparseable_day(self, client):
        response = await client.post("/api/schedule-message", json={
            "message": "hi", "day": "someday", "time": "soon",
        })

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid day or time"}

    async def test_unknown_message(self, client):
        response = await client.get(f"/api/scheduled-messages/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json() == {"error": "Scheduled message not found"}


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        assert body["uptime"] >= 0
        assert datetime.fromisoformat(body["timestamp"])

    async def test_index_page(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
