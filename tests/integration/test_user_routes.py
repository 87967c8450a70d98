"""HTTP tests for the user routes through the FastAPI test client."""

import logging
from datetime import date
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from user_management.main import app
from user_management.services import UserService

BASE_URL = "/api/v1/users"


@pytest.fixture
def payload(years_ago):
    return {
        "name": "Jane Doe",
        "email": "Jane.Doe@Example.com",
        "date_of_birth": years_ago(30).isoformat(),
        "phone": "+1234567890",
        "address": "1 Main Street",
    }


def _create(client: TestClient, payload: dict) -> dict:
    response = client.post(BASE_URL, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestHealth:
    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert isinstance(body["timestamp"], int)

    def test_cors_preflight(self, client: TestClient):
        response = client.options(
            BASE_URL,
            headers={
                "Origin": "https://frontend.example",
                "Access-Control-Request-Method": "DELETE",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "DELETE" in response.headers["access-control-allow-methods"]


class TestCreateRoute:
    def test_create_user(self, client: TestClient, payload):
        response = client.post(BASE_URL, json=payload)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User created successfully"
        data = body["data"]
        assert data["email"] == "jane.doe@example.com"
        assert data["name"] == "Jane Doe"
        assert data["age"] == 30
        assert data["date_of_birth"] == payload["date_of_birth"]
        assert "deleted_at" not in data

    def test_validation_failure_has_details(self, client: TestClient):
        response = client.post(BASE_URL, json={"name": "J", "email": "nope"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        assert body["details"] == {
            "name": "Must be at least 2 characters long",
            "email": "Must be a valid email address",
            "date_of_birth": "This field is required",
        }

    def test_malformed_json(self, client: TestClient):
        response = client.post(
            BASE_URL, content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request format"}

    def test_too_young(self, client: TestClient, payload, years_ago):
        payload["date_of_birth"] = years_ago(18).isoformat()
        response = client.post(BASE_URL, json=payload)
        assert response.status_code == 400
        assert response.json() == {"error": "user must be older than 18 years"}

    def test_invalid_date(self, client: TestClient, payload):
        payload["date_of_birth"] = "1990/01/01"
        response = client.post(BASE_URL, json=payload)
        assert response.status_code == 400
        assert "YYYY-MM-DD" in response.json()["error"]

    def test_duplicate_email(self, client: TestClient, payload):
        _create(client, payload)
        payload["email"] = "  JANE.DOE@example.com "
        response = client.post(BASE_URL, json=payload)
        assert response.status_code == 400
        assert response.json() == {"error": "email already exists"}


class TestGetRoute:
    def test_get_user(self, client: TestClient, payload):
        created = _create(client, payload)
        response = client.get(f"{BASE_URL}/{created['id']}")

        assert response.status_code == 200
        assert response.json()["message"] == "User retrieved successfully"
        assert response.json()["data"]["id"] == created["id"]

    @pytest.mark.parametrize("user_id", ["abc", "-1", "1.5"])
    def test_invalid_id(self, client: TestClient, user_id):
        response = client.get(f"{BASE_URL}/{user_id}")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid user ID"}

    def test_not_found(self, client: TestClient):
        response = client.get(f"{BASE_URL}/4242")
        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}


class TestUpdateRoute:
    def test_partial_update(self, client: TestClient, payload):
        created = _create(client, payload)
        response = client.put(f"{BASE_URL}/{created['id']}", json={"name": "  Janet Doe "})

        assert response.status_code == 200
        data = response.json()["data"]
        assert response.json()["message"] == "User updated successfully"
        assert data["name"] == "Janet Doe"
        assert data["email"] == created["email"]
        assert data["phone"] == created["phone"]
        assert data["age"] == created["age"]

    def test_update_with_own_email(self, client: TestClient, payload):
        created = _create(client, payload)
        response = client.put(
            f"{BASE_URL}/{created['id']}", json={"email": "JANE.DOE@EXAMPLE.COM"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["email"] == "jane.doe@example.com"

    def test_update_validation_failure(self, client: TestClient, payload):
        created = _create(client, payload)
        response = client.put(f"{BASE_URL}/{created['id']}", json={"phone": "123"})
        assert response.status_code == 400
        assert response.json()["details"] == {"phone": "Must be at least 10 characters long"}

    def test_update_missing_user(self, client: TestClient):
        response = client.put(f"{BASE_URL}/999", json={"name": "Nobody"})
        assert response.status_code == 404

    def test_update_invalid_id(self, client: TestClient):
        response = client.put(f"{BASE_URL}/abc", json={"name": "Nobody"})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid user ID"}


class TestDeleteRoute:
    def test_delete_user(self, client: TestClient, payload):
        created = _create(client, payload)

        response = client.delete(f"{BASE_URL}/{created['id']}")
        assert response.status_code == 200
        assert response.json() == {"message": "User deleted successfully"}

        assert client.get(f"{BASE_URL}/{created['id']}").status_code == 404
        assert client.delete(f"{BASE_URL}/{created['id']}").status_code == 404

    def test_delete_invalid_id(self, client: TestClient):
        response = client.delete(f"{BASE_URL}/x1")
        assert response.status_code == 400


class TestListRoute:
    def test_list_defaults(self, client: TestClient, make_user):
        for _ in range(25):
            make_user()

        response = client.get(BASE_URL)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Users retrieved successfully"
        data = body["data"]
        assert data["total"] == 25
        assert data["page"] == 1
        assert data["per_page"] == 10
        assert data["total_pages"] == 3
        assert len(data["users"]) == 10
        assert data["users"][0]["name"] == "User 25"

    def test_list_search_and_sort(self, client: TestClient, make_user, years_ago):
        make_user(name="Anna Smith", date_of_birth=years_ago(40))
        make_user(name="Bella Smith", date_of_birth=years_ago(22))
        make_user(name="Carl Jones", date_of_birth=years_ago(33))

        response = client.get(
            BASE_URL, params={"search": "SMITH", "sortBy": "age", "sortDir": "asc"}
        )

        assert response.status_code == 200
        users = response.json()["data"]["users"]
        assert [user["name"] for user in users] == ["Bella Smith", "Anna Smith"]
        assert [user["age"] for user in users] == [22, 40]

    def test_snake_case_sort_aliases(self, client: TestClient, make_user):
        make_user(name="Zed")
        make_user(name="Amy")

        response = client.get(BASE_URL, params={"sort_by": "name", "sort_dir": "asc"})
        assert [user["name"] for user in response.json()["data"]["users"]] == ["Amy", "Zed"]

    def test_page_beyond_last(self, client: TestClient, make_user):
        make_user()
        response = client.get(BASE_URL, params={"page": 5})
        data = response.json()["data"]
        assert data["users"] == []
        assert data["total"] == 1
        assert data["total_pages"] == 1

    def test_invalid_sort_field(self, client: TestClient):
        response = client.get(BASE_URL, params={"sortBy": "password"})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid sort field"}

    def test_invalid_sort_direction(self, client: TestClient):
        response = client.get(BASE_URL, params={"sortDir": "sideways"})
        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"
        assert "sort_dir" in response.json()["details"]

    def test_per_page_too_large(self, client: TestClient):
        response = client.get(BASE_URL, params={"per_page": 500})
        assert response.status_code == 400
        assert response.json()["details"] == {"per_page": "Must be at most 100"}

    def test_non_numeric_page(self, client: TestClient):
        response = client.get(BASE_URL, params={"page": "first"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid query parameters"

    def test_deleted_users_are_not_listed(self, client: TestClient, make_user):
        kept = make_user()
        removed = make_user()
        client.delete(f"{BASE_URL}/{removed.id}")

        data = client.get(BASE_URL).json()["data"]
        assert [user["id"] for user in data["users"]] == [kept.id]
        assert data["total"] == 1


def test_age_is_never_read_from_input(client: TestClient, payload):
    payload["age"] = 99
    data = _create(client, payload)
    assert data["age"] == 30
    assert date.fromisoformat(data["date_of_birth"]).year == date.today().year - 30


class TestErrorShape:
    """Framework level failures use the same error envelope as the routes."""

    def test_unknown_route(self, client: TestClient):
        response = client.get("/api/v1/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}

    def test_method_not_allowed(self, client: TestClient):
        response = client.patch(f"{BASE_URL}/1", json={})
        assert response.status_code == 405
        assert response.json() == {"error": "Method Not Allowed"}
        assert "GET" in response.headers["allow"]

    def test_unhandled_error_is_logged_and_hidden(self, client: TestClient, caplog):
        server = TestClient(app, raise_server_exceptions=False)

        with patch.object(UserService, "get_user", side_effect=RuntimeError("boom")):
            with caplog.at_level(logging.ERROR, logger="user_management.requests"):
                response = server.get(f"{BASE_URL}/1")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        request_logs = [
            record for record in caplog.records if record.name == "user_management.requests"
        ]
        assert any("unhandled error" in record.getMessage() for record in request_logs)
