from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from taskapi.api.deps import get_task_service
from taskapi.api.routes import parse_sort
from taskapi.domain.errors import InvalidParameterError
from taskapi.domain.filters import SortOrder
from taskapi.services.task_service import TaskService


def create(client: TestClient, headers: dict[str, str], **payload) -> dict:
    response = client.post("/api/tasks", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreate:
    def test_requires_authentication(self, client: TestClient) -> None:
        response = client.post("/api/tasks", json={"title": "Task"})

        assert response.status_code == 401
        body = response.json()
        assert body["status"] == 401
        assert body["error"] == "Unauthorized"
        assert body["path"] == "/api/tasks"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_rejects_unknown_token(self, client: TestClient) -> None:
        response = client.post(
            "/api/tasks", json={"title": "Task"}, headers={"Authorization": "Bearer nope"}
        )

        assert response.status_code == 401

    def test_auth_is_checked_before_body(self, client: TestClient) -> None:
        response = client.post("/api/tasks", json={"title": ""})

        assert response.status_code == 401

    def test_auth_is_checked_before_json_is_parsed(self, client: TestClient) -> None:
        response = client.post(
            "/api/tasks", content="{bad", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"

    def test_returns_201_with_location_and_defaults(self, client: TestClient, auth_headers) -> None:
        response = client.post(
            "/api/tasks",
            json={"title": "New task", "description": "Description"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert response.headers["Location"] == f"/api/tasks/{body['id']}"
        assert body["title"] == "New task"
        assert body["status"] == "TODO"
        assert body["priority"] == "MEDIUM"
        assert body["dueDate"] is None
        assert body["createdAt"] == body["updatedAt"]

    def test_keeps_explicit_fields(self, client: TestClient, auth_headers) -> None:
        body = create(
            client,
            auth_headers,
            title="Urgent",
            status="IN_PROGRESS",
            priority="HIGH",
            dueDate="2026-12-31",
        )

        assert body["status"] == "IN_PROGRESS"
        assert body["priority"] == "HIGH"
        assert body["dueDate"] == "2026-12-31"

    def test_blank_title_is_a_field_error(self, client: TestClient, auth_headers) -> None:
        response = client.post("/api/tasks", json={"title": "   "}, headers=auth_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation Failed"
        assert body["message"] == "Request body has invalid fields"
        assert body["fieldErrors"]["title"] == "Title is required"

    def test_missing_title_is_a_field_error(self, client: TestClient, auth_headers) -> None:
        response = client.post("/api/tasks", json={"description": "x"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["fieldErrors"] == {"title": "Title is required"}

    def test_length_limits(self, client: TestClient, auth_headers) -> None:
        response = client.post(
            "/api/tasks",
            json={"title": "t" * 256, "description": "d" * 2001},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["fieldErrors"] == {
            "title": "Title must not exceed 255 characters",
            "description": "Description must not exceed 2000 characters",
        }

    def test_malformed_json(self, client: TestClient, auth_headers) -> None:
        response = client.post(
            "/api/tasks",
            content="{not json",
            headers={**auth_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Bad Request"
        assert body["message"] == "Malformed request body"
        assert "fieldErrors" not in body


class TestRead:
    def test_round_trip(self, client: TestClient, auth_headers) -> None:
        created = create(client, auth_headers, title="Round trip", priority="LOW")

        response = client.get(f"/api/tasks/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    def test_get_is_public(self, client: TestClient, seeded) -> None:
        assert client.get(f"/api/tasks/{seeded[0].id}").status_code == 200

    def test_unknown_id_is_404(self, client: TestClient) -> None:
        response = client.get("/api/tasks/99")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "Not Found"
        assert body["message"] == "Task not found with id: 99"
        assert body["path"] == "/api/tasks/99"
        assert "timestamp" in body

    def test_non_integer_id_is_bad_request(self, client: TestClient) -> None:
        response = client.get("/api/tasks/abc")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid value 'abc' for parameter 'task_id'"

    def test_id_beyond_64_bits_is_bad_request(self, client: TestClient) -> None:
        response = client.get("/api/tasks/99999999999999999999")

        assert response.status_code == 400
        assert response.json()["message"] == (
            "Invalid value '99999999999999999999' for parameter 'task_id'"
        )

    def test_non_positive_id_is_bad_request(self, client: TestClient) -> None:
        assert client.get("/api/tasks/0").status_code == 400


class TestList:
    def test_page_envelope(self, client: TestClient, seeded) -> None:
        response = client.get("/api/tasks")

        assert response.status_code == 200
        body = response.json()
        assert body["totalElements"] == 3
        assert body["totalPages"] == 1
        assert body["page"] == 0
        assert body["size"] == 20
        assert [t["id"] for t in body["content"]] == sorted((t.id for t in seeded), reverse=True)

    @pytest.mark.parametrize(
        ("query", "expected"),
        [
            ("status=TODO", {"Deploy application", "Write documentation"}),
            ("priority=HIGH", {"Write unit tests"}),
            ("status=TODO&priority=MEDIUM", {"Deploy application"}),
            ("search=write", {"Write unit tests", "Write documentation"}),
        ],
    )
    def test_filters(self, client: TestClient, seeded, query: str, expected: set[str]) -> None:
        body = client.get(f"/api/tasks?{query}").json()

        assert body["totalElements"] == len(expected)
        assert {t["title"] for t in body["content"]} == expected

    def test_pagination_and_sort(self, client: TestClient, seeded) -> None:
        body = client.get("/api/tasks?page=1&size=2&sort=title,asc").json()

        assert body["totalElements"] == 3
        assert body["totalPages"] == 2
        assert body["page"] == 1
        assert [t["title"] for t in body["content"]] == ["Write unit tests"]

    def test_size_is_capped(self, client: TestClient, settings, seeded) -> None:
        body = client.get("/api/tasks?size=100000").json()

        assert body["size"] == settings.max_page_size

    @pytest.mark.parametrize(
        ("query", "message"),
        [
            ("status=BOGUS", "Invalid value 'BOGUS' for parameter 'status'"),
            ("priority=urgent", "Invalid value 'urgent' for parameter 'priority'"),
            ("page=-1", "Invalid value '-1' for parameter 'page'"),
            ("size=abc", "Invalid value 'abc' for parameter 'size'"),
            (
                "page=999999999999999999",
                "Invalid value '999999999999999999' for parameter 'page'",
            ),
            ("sort=owner,desc", "Invalid value 'owner,desc' for parameter 'sort'"),
        ],
    )
    def test_bad_parameters(self, client: TestClient, query: str, message: str) -> None:
        response = client.get(f"/api/tasks?{query}")

        assert response.status_code == 400
        assert response.json()["message"] == message


class TestUpdate:
    def test_partial_update(self, client: TestClient, auth_headers) -> None:
        created = create(
            client, auth_headers, title="Old", description="Keep", priority="HIGH", dueDate="2026-01-15"
        )

        response = client.put(
            f"/api/tasks/{created['id']}", json={"title": "New"}, headers=auth_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "New"
        assert body["description"] == "Keep"
        assert body["priority"] == "HIGH"
        assert body["dueDate"] == "2026-01-15"
        assert body["createdAt"] == created["createdAt"]
        assert body["updatedAt"] >= created["updatedAt"]

    def test_status_change(self, client: TestClient, auth_headers) -> None:
        created = create(client, auth_headers, title="Task")

        body = client.put(
            f"/api/tasks/{created['id']}", json={"status": "DONE"}, headers=auth_headers
        ).json()

        assert body["status"] == "DONE"
        assert body["title"] == "Task"

    def test_blank_title_rejected(self, client: TestClient, auth_headers) -> None:
        created = create(client, auth_headers, title="Task")

        response = client.put(
            f"/api/tasks/{created['id']}", json={"title": ""}, headers=auth_headers
        )

        assert response.status_code == 400
        assert "title" in response.json()["fieldErrors"]

    def test_unknown_id_is_404(self, client: TestClient, auth_headers) -> None:
        response = client.put("/api/tasks/99", json={"title": "Title"}, headers=auth_headers)

        assert response.status_code == 404

    def test_requires_authentication(self, client: TestClient, seeded) -> None:
        response = client.put(f"/api/tasks/{seeded[0].id}", json={"title": "Hijack"})

        assert response.status_code == 401
        assert client.get(f"/api/tasks/{seeded[0].id}").json()["title"] == seeded[0].title


class TestDelete:
    def test_delete_then_404(self, client: TestClient, auth_headers, seeded) -> None:
        task_id = seeded[0].id

        response = client.delete(f"/api/tasks/{task_id}", headers=auth_headers)

        assert response.status_code == 204
        assert response.content == b""
        assert client.get(f"/api/tasks/{task_id}").status_code == 404

    def test_unknown_id_is_404(self, client: TestClient, auth_headers) -> None:
        response = client.delete("/api/tasks/99", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Task not found with id: 99"

    def test_requires_authentication(self, client: TestClient, seeded) -> None:
        assert client.delete(f"/api/tasks/{seeded[0].id}").status_code == 401


class BrokenRepo:
    def get_task(self, task_id: int):
        raise RuntimeError("database exploded: secret details")


def test_unexpected_error_is_hidden(app) -> None:
    app.dependency_overrides[get_task_service] = lambda: TaskService(BrokenRepo())

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/tasks/1")

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Internal Server Error"
    assert body["message"] == "An unexpected error occurred"
    assert "secret" not in response.text


def test_unknown_route_uses_error_body(client: TestClient) -> None:
    response = client.get("/api/nothing")

    assert response.status_code == 404
    assert response.json()["path"] == "/api/nothing"


def test_parse_sort() -> None:
    assert parse_sort("createdAt,desc") == SortOrder("created_at", descending=True)
    assert parse_sort("dueDate") == SortOrder("due_date", descending=False)
    assert parse_sort("priority, DESC") == SortOrder("priority", descending=True)
    with pytest.raises(InvalidParameterError):
        parse_sort("title,sideways")


def test_put_without_credentials_is_401_even_with_malformed_body(client: TestClient, seeded) -> None:
    response = client.put(
        f"/api/tasks/{seeded[0].id}",
        content="{bad",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 401


def test_delete_id_beyond_64_bits_is_bad_request(client: TestClient, auth_headers) -> None:
    response = client.delete("/api/tasks/99999999999999999999", headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Bad Request"


def test_repeated_sort_parameters_add_ordering_keys(client: TestClient, seeded) -> None:
    body = client.get("/api/tasks?sort=status,asc&sort=title,desc").json()

    assert [t["title"] for t in body["content"]] == [
        "Write unit tests",
        "Write documentation",
        "Deploy application",
    ]


def test_bad_entry_among_repeated_sorts_is_rejected(client: TestClient) -> None:
    response = client.get("/api/tasks?sort=title&sort=owner")

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid value 'owner' for parameter 'sort'"
