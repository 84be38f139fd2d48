# =============================================================================
# API Tests — FastAPI TestClient over a temporary SQLite database
# =============================================================================
#
# Each test gets empty tables (see the `client` fixture in conftest.py).
# The language model is always mocked or unconfigured; embeddings use the
# hash pseudo-embedding, which needs no network.
# =============================================================================

from __future__ import annotations

import datetime as dt
import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from lifedesk.agents.assistant import INVALID_KEY_MESSAGE
from lifedesk.agents.orchestrator import NO_DOCUMENTS_RESPONSE
from lifedesk.config import settings
from lifedesk.services.llm import LLMResponse


def _mock_llm(content: str) -> AsyncMock:
    llm = AsyncMock()
    llm.complete.return_value = LLMResponse(
        content=content, model="test-model", input_tokens=1, output_tokens=1,
    )
    return llm


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["version"] == settings.app_version


# ---------------------------------------------------------------------------
# Todos
# ---------------------------------------------------------------------------


class TestTodos:
    """CRUD, filtering and toggling of todos."""

    def test_create_defaults(self, client):
        response = client.post("/todos", json={"title": "  Buy milk  "})
        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Buy milk"
        assert body["priority"] == "medium"
        assert body["completed"] is False

    def test_blank_title_rejected(self, client):
        assert client.post("/todos", json={"title": "   "}).status_code == 422

    def test_invalid_priority_rejected(self, client):
        assert client.post("/todos", json={"title": "x", "priority": "urgent"}).status_code == 422

    def test_filter_and_toggle(self, client):
        first = client.post("/todos", json={"title": "first"}).json()
        client.post("/todos", json={"title": "second"})

        toggled = client.post(f"/todos/{first['id']}/toggle").json()
        assert toggled["completed"] is True

        active = [t["title"] for t in client.get("/todos", params={"filter": "active"}).json()]
        done = [t["title"] for t in client.get("/todos", params={"filter": "completed"}).json()]
        assert active == ["second"]
        assert done == ["first"]
        assert len(client.get("/todos").json()) == 2

    def test_patch_and_null_required_field(self, client):
        todo = client.post("/todos", json={"title": "draft"}).json()

        patched = client.patch(
            f"/todos/{todo['id']}", json={"priority": "high", "due_date": "2024-06-01"},
        ).json()
        assert patched["priority"] == "high"
        assert patched["due_date"] == "2024-06-01"
        assert patched["title"] == "draft"

        assert client.patch(f"/todos/{todo['id']}", json={"title": None}).status_code == 400

    def test_delete_and_404(self, client):
        todo = client.post("/todos", json={"title": "gone"}).json()
        assert client.delete(f"/todos/{todo['id']}").status_code == 204
        assert client.delete(f"/todos/{todo['id']}").status_code == 404
        assert client.post(f"/todos/{uuid.uuid4()}/toggle").status_code == 404


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class TestEvents:
    """Calendar listing, day filter and date validation."""

    def test_day_filter_and_order(self, client):
        client.post("/events", json={"title": "late", "start_date": "2024-05-03T15:00:00Z"})
        client.post("/events", json={"title": "early", "start_date": "2024-05-03T09:00:00Z"})
        client.post("/events", json={"title": "other day", "start_date": "2024-05-04T09:00:00Z"})

        titles = [e["title"] for e in client.get("/events", params={"on": "2024-05-03"}).json()]
        assert titles == ["early", "late"]
        assert len(client.get("/events").json()) == 3

    def test_end_before_start_rejected(self, client):
        response = client.post("/events", json={
            "title": "backwards",
            "start_date": "2024-05-03T10:00:00Z",
            "end_date": "2024-05-03T09:00:00Z",
        })
        assert response.status_code == 400

    def test_patch_checks_range(self, client):
        event = client.post("/events", json={
            "title": "meeting", "start_date": "2024-05-03T10:00:00Z",
        }).json()
        bad = client.patch(f"/events/{event['id']}", json={"end_date": "2024-05-02T10:00:00Z"})
        assert bad.status_code == 400

        good = client.patch(f"/events/{event['id']}", json={"location": "Room 4"})
        assert good.json()["location"] == "Room 4"


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class TestNotes:
    """Tags, search and updated_at handling."""

    def test_tags_from_string(self, client):
        note = client.post("/notes", json={"title": "Ideas", "tags": "work, q3,, "}).json()
        assert note["tags"] == ["work", "q3"]
        assert note["content"] == ""

    @pytest.mark.parametrize("tags", [[1], 5, ["ok", None]])
    def test_non_string_tags_rejected(self, client, tags):
        response = client.post("/notes", json={"title": "x", "tags": tags})
        assert response.status_code == 422
        response = client.post("/notes", json={"title": "x"})
        note_id = response.json()["id"]
        assert client.put(f"/notes/{note_id}", json={"tags": tags}).status_code == 422

    def test_search(self, client):
        client.post("/notes", json={"title": "Trip", "content": "Lisbon hotel"})
        client.post("/notes", json={"title": "Groceries", "tags": ["food"]})

        assert [n["title"] for n in client.get("/notes", params={"q": "lisbon"}).json()] == ["Trip"]
        assert [n["title"] for n in client.get("/notes", params={"q": "FOOD"}).json()] == ["Groceries"]

    def test_update_bumps_updated_at(self, client):
        older = client.post("/notes", json={"title": "older"}).json()
        client.post("/notes", json={"title": "newer"})

        updated = client.put(f"/notes/{older['id']}", json={"content": "edited"}).json()
        assert updated["content"] == "edited"
        assert updated["updated_at"] > older["updated_at"]
        assert client.get("/notes").json()[0]["title"] == "older"


# ---------------------------------------------------------------------------
# Goals & Habits
# ---------------------------------------------------------------------------


class TestGoals:
    """Goal progress and habit streaks."""

    def test_goal_progress_completes(self, client):
        goal = client.post("/goals", json={"title": "Read", "target_value": 12, "unit": "books"}).json()
        assert goal["status"] == "active"
        assert goal["current_value"] == 0
        assert goal["days_until_deadline"] is None

        halfway = client.post(f"/goals/{goal['id']}/progress", json={"current_value": 6}).json()
        assert halfway["progress_percent"] == 50.0
        assert halfway["status"] == "active"

        done = client.post(f"/goals/{goal['id']}/progress", json={"current_value": 12}).json()
        assert done["status"] == "completed"
        assert done["progress_percent"] == 100.0

    def test_goal_deadline(self, client):
        deadline = (dt.datetime.now(dt.UTC).date() + dt.timedelta(days=10)).isoformat()
        goal = client.post("/goals", json={"title": "Run", "target_value": 5, "deadline": deadline}).json()
        assert goal["days_until_deadline"] in (9, 10)

    def test_non_positive_target_rejected(self, client):
        assert client.post("/goals", json={"title": "x", "target_value": 0}).status_code == 422

    def test_habit_track_and_patch(self, client):
        habit = client.post("/habits", json={"name": "Meditate"}).json()
        assert habit["streak"] == 0
        assert habit["frequency"] == "daily"

        client.post(f"/habits/{habit['id']}/track")
        tracked = client.post(f"/habits/{habit['id']}/track").json()
        assert tracked["streak"] == 2

        paused = client.patch(f"/habits/{habit['id']}", json={"active": False}).json()
        assert paused["active"] is False
        assert client.delete(f"/habits/{habit['id']}").status_code == 204


# ---------------------------------------------------------------------------
# Finance
# ---------------------------------------------------------------------------


class TestFinance:
    """Transactions, month filter and summary."""

    def _add(self, client, **fields):
        response = client.post("/expenses", json=fields)
        assert response.status_code == 201
        return response.json()

    def test_month_filter_and_summary(self, client):
        self._add(client, amount=3000, category="Salary", type="income", date="2024-05-01")
        self._add(client, amount=40, category="Food & Dining", date="2024-05-02")
        self._add(client, amount=900, category="Bills & Utilities", date="2024-05-31")
        self._add(client, amount=75, category="Travel", date="2024-06-01")

        may = client.get("/expenses", params={"month": "2024-05"}).json()
        assert [e["date"] for e in may] == ["2024-05-31", "2024-05-02", "2024-05-01"]

        summary = client.get("/expenses/summary", params={"month": "2024-05"}).json()
        assert summary["total_income"] == 3000
        assert summary["total_expenses"] == 940
        assert summary["net"] == 2060
        assert [c["category"] for c in summary["categories"]] == ["Bills & Utilities", "Food & Dining"]

    def test_invalid_month(self, client):
        assert client.get("/expenses", params={"month": "2024/05"}).status_code == 400

    def test_default_date_is_utc_today(self, client):
        late_evening = dt.datetime(2024, 5, 31, 23, 30, tzinfo=dt.UTC)
        with patch("lifedesk.services.stats._utcnow", return_value=late_evening):
            expense = self._add(client, amount=12, category="Other")
        assert expense["date"] == "2024-05-31"

    def test_amount_must_be_positive(self, client):
        response = client.post("/expenses", json={"amount": 0, "category": "Other"})
        assert response.status_code == 422

    def test_categories(self, client):
        body = client.get("/expenses/categories").json()
        assert "Food & Dining" in body["expense"]
        assert "Salary" in body["income"]

    def test_delete(self, client):
        expense = self._add(client, amount=5, category="Other", date="2024-05-02")
        assert client.delete(f"/expenses/{expense['id']}").status_code == 204
        assert client.delete(f"/expenses/{expense['id']}").status_code == 404


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class TestDocuments:
    """Text documents, uploads, search and deletion."""

    @pytest.fixture(autouse=True)
    def _storage_dir(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "storage_dir", str(tmp_path))
        self.root = tmp_path

    def test_text_document(self, client):
        response = client.post("/documents/text", json={"title": "Allergies", "content": "Peanuts"})
        assert response.status_code == 201
        body = response.json()
        assert body["file_type"] == "text/plain"
        assert body["file_path"] is None

        listed = client.get("/documents").json()
        assert [d["title"] for d in listed] == ["Allergies"]
        assert "content" not in listed[0]
        assert "embedding" not in listed[0]

    def test_text_document_requires_content(self, client):
        assert client.post("/documents/text", json={"title": "t", "content": "  "}).status_code == 422

    def test_upload_text_file(self, client):
        response = client.post(
            "/documents/upload",
            files=[("files", ("plan.md", b"# Plan\nShip it", "text/markdown"))],
        )
        assert response.status_code == 201
        doc = response.json()["documents"][0]
        assert doc["title"] == "plan.md"
        assert doc["file_path"].startswith("documents/")
        assert (self.root / doc["file_path"]).read_bytes() == b"# Plan\nShip it"

    def test_upload_unsupported_type(self, client):
        response = client.post(
            "/documents/upload", files=[("files", ("photo.png", b"\x89PNG", "image/png"))],
        )
        assert response.status_code == 415

    def test_upload_empty_file(self, client):
        response = client.post(
            "/documents/upload", files=[("files", ("empty.txt", b"", "text/plain"))],
        )
        assert response.status_code == 400

    def test_upload_too_large(self, client, monkeypatch):
        monkeypatch.setattr(settings, "max_upload_bytes", 4)
        response = client.post(
            "/documents/upload", files=[("files", ("big.txt", b"too large", "text/plain"))],
        )
        assert response.status_code == 413

    def test_upload_stops_at_first_failure(self, client):
        response = client.post(
            "/documents/upload",
            files=[
                ("files", ("ok.txt", b"kept", "text/plain")),
                ("files", ("bad.png", b"\x89PNG", "image/png")),
                ("files", ("later.txt", b"never", "text/plain")),
            ],
        )
        assert response.status_code == 415
        assert [d["title"] for d in client.get("/documents").json()] == ["ok.txt"]

    def test_failed_store_removes_uploaded_file(self, client):
        with patch(
            "lifedesk.services.retrieval.generate_embedding",
            AsyncMock(side_effect=ValueError("No API key configured for embeddings.")),
        ):
            response = client.post(
                "/documents/upload", files=[("files", ("a.txt", b"hello", "text/plain"))],
            )
        assert response.status_code == 503
        assert [p for p in self.root.rglob("*") if p.is_file()] == []
        assert client.get("/documents").json() == []

    def test_embedding_failure_on_text_document(self, client):
        with patch(
            "lifedesk.services.retrieval.generate_embedding",
            AsyncMock(side_effect=RuntimeError("embedding API down")),
        ):
            response = client.post("/documents/text", json={"title": "t", "content": "c"})
        assert response.status_code == 502
        assert "embedding API down" in response.json()["detail"]

    def test_embedding_failure_on_search(self, client):
        with patch(
            "lifedesk.services.retrieval.generate_embedding",
            AsyncMock(side_effect=RuntimeError("embedding API down")),
        ):
            response = client.get("/documents/search", params={"q": "x"})
        assert response.status_code == 502

    def test_search_and_delete(self, client):
        kept = client.post("/documents/text", json={"title": "A", "content": "alpha"}).json()
        client.post("/documents/text", json={"title": "B", "content": "beta"})

        results = client.get("/documents/search", params={"q": "alpha"}).json()
        assert results[0]["metadata"]["title"] == "A"
        assert results[0]["metadata"]["document_id"] == kept["id"]

        assert client.delete(f"/documents/{kept['id']}").status_code == 204
        assert client.delete(f"/documents/{kept['id']}").status_code == 404

    def test_delete_removes_stored_file(self, client):
        doc = client.post(
            "/documents/upload", files=[("files", ("note.txt", b"remember", "text/plain"))],
        ).json()["documents"][0]
        client.delete(f"/documents/{doc['id']}")
        assert not (self.root / doc["file_path"]).exists()

    def test_file_kept_when_delete_is_not_committed(self, client):
        doc = client.post(
            "/documents/upload", files=[("files", ("keep.txt", b"still here", "text/plain"))],
        ).json()["documents"][0]

        with patch.object(
            AsyncSession, "commit", AsyncMock(side_effect=RuntimeError("database is down")),
        ):
            with pytest.raises(RuntimeError, match="database is down"):
                client.delete(f"/documents/{doc['id']}")

        assert (self.root / doc["file_path"]).exists()
        assert [d["id"] for d in client.get("/documents").json()] == [doc["id"]]


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class TestChat:
    """The RAG chat endpoint and its transcript."""

    def test_no_documents(self, client):
        body = client.post("/chat", json={"message": "What is my plan?"}).json()
        assert body == {"response": NO_DOCUMENTS_RESPONSE, "sources": []}

        history = client.get("/chat/history").json()
        assert [(m["role"], m["content"]) for m in history] == [
            ("user", "What is my plan?"),
            ("assistant", NO_DOCUMENTS_RESPONSE),
        ]

    def test_answer_with_sources(self, client):
        client.post("/documents/text", json={"title": "Plan", "content": "Ship on Friday"})
        llm = _mock_llm("You ship on Friday.")

        with patch("lifedesk.agents.assistant.get_llm_provider", return_value=llm):
            body = client.post("/chat", json={"message": "When do I ship?"}).json()

        assert body["response"] == "You ship on Friday."
        assert body["sources"][0]["metadata"]["title"] == "Plan"
        assert "Ship on Friday" in llm.complete.call_args.args[0]

        assistant = client.get("/chat/history").json()[-1]
        assert assistant["sources"][0]["content"] == "Ship on Friday"

    def test_unconfigured_model_answers_with_message(self, client):
        client.post("/documents/text", json={"title": "Plan", "content": "Ship on Friday"})
        body = client.post("/chat", json={"message": "When?"}).json()
        assert body["response"] == INVALID_KEY_MESSAGE

    def test_blank_message_rejected(self, client):
        assert client.post("/chat", json={"message": "  "}).status_code == 422

    def test_history_limit_and_clear(self, client):
        for i in range(3):
            client.post("/chat", json={"message": f"question {i}"})

        last_two = client.get("/chat/history", params={"limit": 2}).json()
        assert [m["content"] for m in last_two] == ["question 2", NO_DOCUMENTS_RESPONSE]

        assert client.get("/chat/history", params={"limit": 501}).status_code == 422
        assert client.delete("/chat/history").json() == {"deleted": 6}
        assert client.get("/chat/history").json() == []


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


class TestDashboard:
    """Cross-table stats and recent activity."""

    def test_empty(self, client):
        body = client.get("/dashboard").json()
        assert body["stats"]["total_todos"] == 0
        assert body["stats"]["completion_rate"] == 0
        assert body["recent_activities"] == []

    def test_counts_and_activity(self, client):
        for title in ("t1", "t2", "t3", "t4"):
            client.post("/todos", json={"title": title})
        first = client.get("/todos").json()[-1]
        client.post(f"/todos/{first['id']}/toggle")

        soon = (dt.datetime.now(dt.UTC) + dt.timedelta(days=2)).isoformat()
        later = (dt.datetime.now(dt.UTC) + dt.timedelta(days=30)).isoformat()
        client.post("/events", json={"title": "soon", "start_date": soon})
        client.post("/events", json={"title": "later", "start_date": later})

        client.post("/goals", json={"title": "g", "target_value": 1})
        client.post("/habits", json={"name": "kept"})
        habit = client.post("/habits", json={"name": "paused"}).json()
        client.patch(f"/habits/{habit['id']}", json={"active": False})
        client.post("/notes", json={"title": "n"})

        today = dt.datetime.now(dt.UTC).date().isoformat()
        client.post("/expenses", json={"amount": 20, "category": "Other", "date": today})
        client.post("/expenses", json={"amount": 500, "category": "Salary", "type": "income", "date": today})

        body = client.get("/dashboard").json()
        stats = body["stats"]
        assert stats["total_todos"] == 4
        assert stats["completed_todos"] == 1
        assert stats["completion_rate"] == 25
        assert stats["upcoming_events"] == 1
        assert stats["total_goals"] == 1
        assert stats["active_habits"] == 1
        assert stats["monthly_expenses"] == 20
        assert stats["total_notes"] == 1

        activities = body["recent_activities"]
        assert [a["title"] for a in activities] == ["soon", "t4", "t3", "t2"]
