"""Tests for the /api/bugs endpoints."""

import pytest

from app.api.endpoints.bugs import MAX_PAGE_NUMBER


# ---------------------------------------------------------------------------
# POST /api/bugs
# ---------------------------------------------------------------------------


class TestCreateBug:
    def test_creates_bug_with_valid_data(self, client, bug_payload):
        payload = bug_payload(title="New Test Bug", priority="high", reporter="John Doe")

        res = client.post("/api/bugs", json=payload)

        assert res.status_code == 201
        body = res.json()
        assert body["success"] is True
        assert body["message"] == "Bug created successfully"
        data = body["data"]
        assert data["id"].startswith("B")
        assert data["title"] == "New Test Bug"
        assert data["description"] == payload["description"]
        assert data["status"] == "open"
        assert data["priority"] == "high"
        assert data["reporter"] == "John Doe"
        assert data["createdAt"].endswith("Z")
        assert "updatedAt" in data

    def test_missing_title_returns_400(self, client):
        res = client.post("/api/bugs", json={"description": "This bug is missing a title"})

        assert res.status_code == 400
        body = res.json()
        assert body["success"] is False
        assert body["error"] == "Validation failed"
        assert "Title is required and must be a string" in body["errors"]

    def test_empty_title_returns_400(self, client, bug_payload):
        res = client.post("/api/bugs", json=bug_payload(title=""))

        assert res.status_code == 400
        assert res.json()["success"] is False

    def test_accumulates_all_messages(self, client):
        res = client.post("/api/bugs", json={"title": "", "description": "", "status": "invalid"})

        assert res.status_code == 400
        assert len(res.json()["errors"]) == 3

    def test_uses_default_status_and_priority(self, client):
        res = client.post("/api/bugs", json={
            "title": "Bug with defaults",
            "description": "This bug uses default values",
            "reporter": "Jane Doe",
        })

        assert res.status_code == 201
        data = res.json()["data"]
        assert data["status"] == "open"
        assert data["priority"] == "medium"
        assert data["assignedTo"] == ""
        assert data["tags"] == []

    def test_missing_reporter_is_rejected_by_store(self, client):
        res = client.post("/api/bugs", json={"title": "No reporter", "description": "desc"})

        assert res.status_code == 400
        body = res.json()
        assert body["error"] == "Validation failed"
        assert body["errors"] == ["Reporter name is required"]

    def test_normalizes_text_and_enums(self, client):
        res = client.post("/api/bugs", json={
            "title": "  Padded title  ",
            "description": " desc ",
            "reporter": " Jane ",
            "status": "In-Progress",
            "priority": "CRITICAL",
            "assignedTo": " Bob ",
            "tags": ["ui", " ui ", "login", ""],
            "stepsToReproduce": " 1. open page ",
        })

        assert res.status_code == 201
        data = res.json()["data"]
        assert data["title"] == "Padded title"
        assert data["reporter"] == "Jane"
        assert data["status"] == "in-progress"
        assert data["priority"] == "critical"
        assert data["assignedTo"] == "Bob"
        assert data["tags"] == ["ui", "login"]
        assert data["stepsToReproduce"] == "1. open page"

    def test_client_supplied_id_is_ignored(self, client, bug_payload):
        res = client.post("/api/bugs", json=bug_payload(id="B1"))

        assert res.status_code == 201
        assert res.json()["data"]["id"] != "B1"

    @pytest.mark.parametrize("overrides, error", [
        ({"tags": 5}, "Tags must be a list of strings"),
        ({"attachments": True}, "Attachments must be a list of strings"),
        ({"assignedTo": {"a": 1}}, "Assigned to must be a string"),
        ({"assignedTo": "a" * 101}, "Assigned to cannot exceed 100 characters"),
        ({"environment": "e" * 201}, "Environment cannot exceed 200 characters"),
    ])
    def test_malformed_optional_field_returns_400(self, client, bug_payload, overrides, error):
        res = client.post("/api/bugs", json=bug_payload(**overrides))

        assert res.status_code == 400
        body = res.json()
        assert body["error"] == "Validation failed"
        assert body["errors"] == [error]
        assert client.get("/api/bugs").json()["pagination"]["total"] == 0

    def test_single_string_tag_is_wrapped(self, client, bug_payload):
        res = client.post("/api/bugs", json=bug_payload(tags="ui"))

        assert res.status_code == 201
        assert res.json()["data"]["tags"] == ["ui"]

    def test_non_object_body_returns_400(self, client):
        res = client.post("/api/bugs", json=["not", "an", "object"])

        assert res.status_code == 400
        assert res.json()["success"] is False


# ---------------------------------------------------------------------------
# GET /api/bugs
# ---------------------------------------------------------------------------


class TestListBugs:
    def test_returns_bugs_with_pagination(self, client, created_bug):
        res = client.get("/api/bugs")

        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert isinstance(body["data"], list)
        assert len(body["data"]) == 1
        assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}

    def test_filters_by_status(self, client, bug_payload, created_bug):
        client.post("/api/bugs", json=bug_payload(title="In Progress Bug", status="in-progress"))

        res = client.get("/api/bugs", params={"status": "in-progress"})

        assert res.status_code == 200
        data = res.json()["data"]
        assert len(data) == 1
        assert all(bug["status"] == "in-progress" for bug in data)

    def test_filters_by_priority(self, client, bug_payload, created_bug):
        client.post("/api/bugs", json=bug_payload(title="Critical Bug", priority="critical"))

        res = client.get("/api/bugs", params={"priority": "critical"})

        data = res.json()["data"]
        assert len(data) == 1
        assert data[0]["priority"] == "critical"

    def test_paginates_results(self, client, bug_payload, created_bug):
        for i in range(15):
            client.post("/api/bugs", json=bug_payload(title=f"Pagination Bug {i}"))

        page1 = client.get("/api/bugs", params={"page": 1, "limit": 10}).json()
        page2 = client.get("/api/bugs", params={"page": 2, "limit": 10}).json()

        assert len(page1["data"]) == 10
        assert len(page2["data"]) == 6
        assert page1["pagination"]["page"] == 1
        assert page2["pagination"]["page"] == 2
        assert page1["pagination"]["total"] == 16
        assert page1["pagination"]["pages"] == 2

    def test_sorts_newest_first_by_default(self, client, bug_payload):
        client.post("/api/bugs", json=bug_payload(title="Older Bug"))
        client.post("/api/bugs", json=bug_payload(title="Newer Bug"))

        res = client.get("/api/bugs")

        assert res.json()["data"][0]["title"] == "Newer Bug"

    def test_sorts_ascending_on_request(self, client, bug_payload):
        client.post("/api/bugs", json=bug_payload(title="Older Bug"))
        client.post("/api/bugs", json=bug_payload(title="Newer Bug"))

        res = client.get("/api/bugs", params={"sortBy": "createdAt", "order": "asc"})

        assert res.json()["data"][0]["title"] == "Older Bug"

    def test_limit_is_capped(self, client, settings):
        res = client.get("/api/bugs", params={"limit": 1000})

        assert res.json()["pagination"]["limit"] == settings.MAX_PAGE_SIZE

    def test_invalid_page_returns_400(self, client):
        res = client.get("/api/bugs", params={"page": 0})

        assert res.status_code == 400
        body = res.json()
        assert body["success"] is False
        assert body["errors"]

    def test_huge_page_returns_400(self, client, created_bug):
        res = client.get("/api/bugs", params={"page": 10 ** 20})

        assert res.status_code == 400
        assert res.json()["errors"][0].startswith("page:")

    def test_last_allowed_page_is_empty(self, client, created_bug):
        res = client.get("/api/bugs", params={"page": MAX_PAGE_NUMBER, "limit": 100})

        assert res.status_code == 200
        assert res.json()["data"] == []
        assert res.json()["pagination"]["total"] == 1


# ---------------------------------------------------------------------------
# GET /api/bugs/{id}
# ---------------------------------------------------------------------------


class TestGetBug:
    def test_returns_bug_by_id(self, client, created_bug):
        res = client.get(f"/api/bugs/{created_bug['id']}")

        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["data"]["id"] == created_bug["id"]
        assert body["data"]["title"] == "Test Bug"

    def test_returns_404_for_unknown_bug(self, client):
        res = client.get("/api/bugs/B123456789012345")

        assert res.status_code == 404
        body = res.json()
        assert body["success"] is False
        assert body["error"] == "Bug not found"

    def test_returns_400_for_invalid_id_format(self, client):
        res = client.get("/api/bugs/invalid-id")

        assert res.status_code == 400
        body = res.json()
        assert body["success"] is False
        assert body["error"] == "Invalid bug ID format"

    def test_error_body_carries_request_id(self, client):
        res = client.get("/api/bugs/invalid-id", headers={"X-Request-ID": "req-123"})

        assert res.headers["X-Request-ID"] == "req-123"
        assert res.json()["request_id"] == "req-123"


# ---------------------------------------------------------------------------
# PUT /api/bugs/{id}
# ---------------------------------------------------------------------------


class TestUpdateBug:
    def test_updates_bug_with_valid_data(self, client, created_bug):
        updates = {
            "title": "Updated Test Bug",
            "description": "This description has been updated",
            "status": "in-progress",
            "priority": "high",
        }

        res = client.put(f"/api/bugs/{created_bug['id']}", json=updates)

        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["message"] == "Bug updated successfully"
        for key, value in updates.items():
            assert body["data"][key] == value

    def test_allows_partial_updates(self, client, created_bug):
        res = client.put(f"/api/bugs/{created_bug['id']}", json={"status": "resolved"})

        assert res.status_code == 200
        data = res.json()["data"]
        assert data["status"] == "resolved"
        assert data["title"] == "Test Bug"
        assert data["reporter"] == "Test User"
        assert data["createdAt"] == created_bug["createdAt"]

    def test_invalid_status_returns_400(self, client, created_bug):
        res = client.put(f"/api/bugs/{created_bug['id']}", json={"status": "invalid-status"})

        assert res.status_code == 400
        assert res.json()["success"] is False

    def test_invalid_reporter_returns_400(self, client, created_bug):
        res = client.put(f"/api/bugs/{created_bug['id']}", json={"reporter": "r" * 101})

        assert res.status_code == 400
        assert res.json()["errors"] == ["Reporter name cannot exceed 100 characters"]

    def test_malformed_tags_leave_bug_unchanged(self, client, created_bug):
        res = client.put(f"/api/bugs/{created_bug['id']}", json={"tags": {"ui": True}, "title": "Changed"})

        assert res.status_code == 400
        assert res.json()["errors"] == ["Tags must be a list of strings"]
        assert client.get(f"/api/bugs/{created_bug['id']}").json()["data"]["title"] == "Test Bug"

    def test_returns_404_for_unknown_bug(self, client):
        res = client.put("/api/bugs/B123456789012345", json={"title": "Updated Title"})

        assert res.status_code == 404
        assert res.json()["success"] is False

    def test_returns_400_for_invalid_id_format(self, client):
        res = client.put("/api/bugs/invalid-id", json={"title": "Updated Title"})

        assert res.status_code == 400

    def test_id_cannot_be_changed(self, client, created_bug):
        res = client.put(f"/api/bugs/{created_bug['id']}", json={"id": "B1", "assignedTo": "Jane"})

        assert res.status_code == 200
        assert res.json()["data"]["id"] == created_bug["id"]
        assert res.json()["data"]["assignedTo"] == "Jane"


# ---------------------------------------------------------------------------
# PATCH /api/bugs/{id}/status
# ---------------------------------------------------------------------------


class TestUpdateBugStatus:
    def test_updates_status(self, client, created_bug):
        res = client.patch(f"/api/bugs/{created_bug['id']}/status", json={"status": "resolved"})

        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["data"]["status"] == "resolved"
        assert body["message"] == "Bug status updated successfully"

    def test_status_is_stored_lower_case(self, client, created_bug):
        res = client.patch(f"/api/bugs/{created_bug['id']}/status", json={"status": "CLOSED"})

        assert res.json()["data"]["status"] == "closed"

    def test_missing_status_returns_400(self, client, created_bug):
        res = client.patch(f"/api/bugs/{created_bug['id']}/status", json={})

        assert res.status_code == 400
        body = res.json()
        assert body["success"] is False
        assert body["error"] == "Status is required"

    def test_invalid_status_returns_400(self, client, created_bug):
        res = client.patch(f"/api/bugs/{created_bug['id']}/status", json={"status": "done"})

        assert res.status_code == 400
        assert "must be one of" in res.json()["errors"][0]

    def test_returns_404_for_unknown_bug(self, client):
        res = client.patch("/api/bugs/B123456789012345/status", json={"status": "resolved"})

        assert res.status_code == 404
        assert res.json()["success"] is False


# ---------------------------------------------------------------------------
# DELETE /api/bugs/{id}
# ---------------------------------------------------------------------------


class TestDeleteBug:
    def test_deletes_bug(self, client, bug_payload):
        bug = client.post("/api/bugs", json=bug_payload(title="Bug to Delete")).json()["data"]

        res = client.delete(f"/api/bugs/{bug['id']}")

        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert "deleted" in body["message"]
        assert body["data"]["title"] == "Bug to Delete"
        assert client.get(f"/api/bugs/{bug['id']}").status_code == 404

    def test_returns_404_for_unknown_bug(self, client):
        res = client.delete("/api/bugs/B123456789012345")

        assert res.status_code == 404
        assert res.json()["success"] is False

    def test_returns_400_for_invalid_id_format(self, client):
        res = client.delete("/api/bugs/invalid-id")

        assert res.status_code == 400
        assert res.json()["success"] is False


# ---------------------------------------------------------------------------
# Statistics and service endpoints
# ---------------------------------------------------------------------------


class TestStatistics:
    def test_counts_by_status_and_priority(self, client, bug_payload):
        client.post("/api/bugs", json=bug_payload(status="open", priority="high"))
        client.post("/api/bugs", json=bug_payload(status="closed", priority="high"))
        client.post("/api/bugs", json=bug_payload(status="closed", priority="low"))

        res = client.get("/api/bugs/statistics")

        assert res.status_code == 200
        data = res.json()["data"]
        assert data["total"] == 3
        assert data["byStatus"] == {"open": 1, "in-progress": 0, "resolved": 0, "closed": 2}
        assert data["byPriority"] == {"low": 1, "medium": 0, "high": 2, "critical": 0}


def test_health_check(client):
    res = client.get("/health")

    assert res.status_code == 200
    assert res.json()["status"] == "healthy"
