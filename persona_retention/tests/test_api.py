"""
Test Module for the HTTP API.

Runs the FastAPI app through TestClient with the lifespan active, so each
test starts from a fresh session seeded with the sample dataset.
"""

import pytest

from persona_retention.services.sample_data import SAMPLE_CSV

pytestmark = pytest.mark.integration


# =============================================================================
# TEST CLASS: Meta Endpoints
# =============================================================================

class TestMeta:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_root(self, client):
        body = client.get("/").json()
        assert body["name"] == "Persona Retention API"
        assert body["docs"] == "/docs"


# =============================================================================
# TEST CLASS: Dashboard
# =============================================================================

class TestDashboard:
    """Tests for /dashboard endpoints."""

    def test_startup_loads_sample(self, client):
        body = client.get("/dashboard").json()
        assert body["mode"] == "dominant"
        assert body["months"] == ["2025-09", "2025-10"]
        assert body["records"] == 6
        assert body["notices"] == []
        assert body["spotlight"]["trust"]["retention"] == "0%"
        assert body["alerts"][0]["tone"] == "good"
        assert body["volume_series"][1]["Trust erosion"] == 1

    def test_put_csv(self, client):
        response = client.put("/dashboard/csv", json={"text": "user_id,month,text\nx,2025-05,routine\n"})
        assert response.status_code == 200
        assert response.json() == {"rows_parsed": 1, "records": 1, "notices": []}
        assert client.get("/dashboard").json()["months"] == ["2025-05"]

    def test_put_empty_csv_returns_notice(self, client):
        body = client.put("/dashboard/csv", json={"text": ""}).json()
        assert body["rows_parsed"] == 0
        assert body["notices"][0]["kind"] == "empty_result"

        dashboard = client.get("/dashboard").json()
        assert dashboard["aggregates"] == []
        assert dashboard["alerts"] == []

    def test_upload(self, client):
        files = {"file": ("data.csv", b"user_id;month;text\nx;2025-05;routine\n", "text/csv")}
        body = client.post("/dashboard/upload", files=files).json()
        assert body["records"] == 1

    def test_upload_latin1_file(self, client):
        files = {"file": ("data.csv", b"user_id;month;text\nx;2025-05;caf\xe9 routine\n", "text/csv")}
        body = client.post("/dashboard/upload", files=files).json()
        assert body == {"rows_parsed": 1, "records": 1, "notices": []}
        assert client.get("/dashboard").json()["months"] == ["2025-05"]

    def test_upload_too_large(self, client, monkeypatch):
        from persona_retention.core.config import get_settings

        monkeypatch.setenv("PERSONA_MAX_UPLOAD_BYTES", "10")
        get_settings.cache_clear()

        files = {"file": ("data.csv", SAMPLE_CSV.encode("utf-8"), "text/csv")}
        assert client.post("/dashboard/upload", files=files).status_code == 413

    def test_sample_reload(self, client):
        client.put("/dashboard/csv", json={"text": ""})
        body = client.post("/dashboard/sample").json()
        assert body["rows_parsed"] == 6

    def test_mode_switch(self, client):
        body = client.put("/dashboard/mode", json={"mode": "multi"}).json()
        assert body["mode"] == "multi"
        escalation = [
            a for a in body["aggregates"]
            if a["month"] == "2025-10" and a["persona"] == "escalation"
        ]
        assert escalation[0]["users"] == 2

    def test_series_views(self, client):
        retention = client.get("/dashboard/series").json()
        volume = client.get("/dashboard/series", params={"view": "volume"}).json()
        assert retention[0]["Trust erosion"] == 100
        assert retention[1]["Trust erosion"] == 0
        assert volume[1]["Cognitive overload"] == 1
        assert client.get("/dashboard/series", params={"view": "pie"}).status_code == 422

    def test_invalid_mode(self, client):
        assert client.put("/dashboard/mode", json={"mode": "weighted"}).status_code == 422

    def test_table_filters(self, client):
        rows = client.get("/dashboard/table", params={"min_users": 0, "persona": "escalation"}).json()
        assert [(r["month"], r["persona"]) for r in rows] == [
            ("2025-10", "escalation"),
            ("2025-09", "escalation"),
        ]

    def test_table_default_noise_guard(self, client):
        assert client.get("/dashboard/table").json() == []

    def test_table_unknown_persona(self, client):
        assert client.get("/dashboard/table", params={"persona": "nope"}).status_code == 404

    def test_month_feedback(self, client):
        entries = client.get("/dashboard/months/2025-10/feedback").json()
        assert [e["user_id"] for e in entries] == ["u1", "u2", "u3"]
        assert entries[0]["persona"] == "trust_erosion"

    def test_month_feedback_min_chars(self, client):
        entries = client.get("/dashboard/months/2025-10/feedback", params={"min_chars": 30}).json()
        assert [e["user_id"] for e in entries] == ["u1", "u3"]

    def test_month_feedback_invalid_month(self, client):
        assert client.get("/dashboard/months/oktober/feedback").status_code == 404


# =============================================================================
# TEST CLASS: Personas & Keywords
# =============================================================================

class TestKeywords:
    """Tests for the catalog and keyword editing."""

    def test_personas(self, client):
        personas = client.get("/personas").json()
        assert [p["key"] for p in personas][:2] == ["trust_erosion", "emotional"]
        assert "onbetrouwbaar" in personas[0]["keywords"]

    def test_update_keywords_recomputes(self, client):
        response = client.put("/keywords/trust_erosion", json={"keywords": "nergens, ,meer"})
        assert response.status_code == 200
        assert response.json()["keywords"] == ["nergens", "meer"]

        entries = client.get("/dashboard/months/2025-10/feedback").json()
        assert entries[0] == {
            "user_id": "u1",
            "persona": "emotional",
            "text": "Nog steeds onbetrouwbaar. Klaar mee.",
        }

    def test_update_unknown_persona(self, client):
        response = client.put("/keywords/nope", json={"keywords": "x"})
        assert response.status_code == 404
        assert response.json()["detail"] == "Unknown persona: nope"

    def test_reset(self, client):
        client.put("/keywords/veteran", json={"keywords": "x"})
        body = client.post("/keywords/reset").json()
        assert "al jaren" in body["veteran"]
        assert client.get("/keywords").json() == body


# =============================================================================
# TEST CLASS: Export
# =============================================================================

class TestExport:
    """Tests for CSV downloads."""

    def test_table_export(self, client):
        response = client.get("/export/table.csv", params={"min_users": 0, "persona": "trust_erosion"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "persona_retention_export.csv" in response.headers["content-disposition"]
        assert response.text.splitlines()[1] == "2025-10,Trust erosion,1,0,1,0,-100,0"

    def test_empty_table_export(self, client):
        assert client.get("/export/table.csv").text == ""

    def test_template(self, client):
        response = client.get("/export/template.csv")
        assert response.text.startswith("user_id,month,text,active_next_month\n")
        assert "template_user_month.csv" in response.headers["content-disposition"]
