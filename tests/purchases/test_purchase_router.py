"""End-to-end HTTP tests: buying a course and reading its content."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient


PASSWORD = "SecureP@ssword123"


def signup(client: TestClient, email: str, role: str | None = None) -> dict:
    payload = {"full_name": email.split("@")[0], "email": email, "password": PASSWORD}
    if role:
        payload["role"] = role
    response = client.post("/v1/auth/signup", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def as_user(user: dict) -> dict[str, str]:
    return {"X-User-Id": user["id"]}


@pytest.fixture
def admin(client: TestClient) -> dict:
    return signup(client, "admin@example.com", role="admin")


@pytest.fixture
def student(client: TestClient) -> dict:
    return signup(client, "student@example.com")


@pytest.fixture
def course(client: TestClient, admin: dict) -> dict:
    response = client.post(
        "/v1/courses",
        json={"name": "Python 101", "price": "49.90"},
        headers=as_user(admin),
    )
    assert response.status_code == 201, response.text
    course = response.json()
    for title, order in [("setup", 2), ("intro", 1)]:
        response = client.post(
            f"/v1/courses/{course['id']}/content",
            json={
                "title": title,
                "content_type": "video",
                "content_url": f"https://cdn.example.com/{title}.mp4",
                "order": order,
            },
            headers=as_user(admin),
        )
        assert response.status_code == 201, response.text
    return course


class TestPurchaseFlow:
    """Purchase, confirm, read content, refund."""

    def test_full_flow(
        self, client: TestClient, admin: dict, student: dict, course: dict
    ) -> None:
        content_url = f"/v1/courses/{course['id']}/content"
        access_url = f"/v1/courses/{course['id']}/access"

        response = client.get(content_url, headers=as_user(student))
        assert response.status_code == 403
        assert response.json()["code"] == "access_denied"

        response = client.post(
            "/v1/purchases",
            json={"course_id": course["id"], "payment_method": "stripe"},
            headers=as_user(student),
        )
        assert response.status_code == 201
        purchase = response.json()
        assert purchase["status"] == "pending"
        assert Decimal(str(purchase["amount"])) == Decimal("49.90")

        response = client.post(
            f"/v1/purchases/{purchase['id']}/confirm", headers=as_user(admin)
        )
        assert response.status_code == 200
        body = response.json()
        assert body["purchase"]["status"] == "completed"
        assert body["enrollment"]["has_access"] is True

        response = client.get(content_url, headers=as_user(student))
        assert response.status_code == 200
        assert [i["title"] for i in response.json()] == ["intro", "setup"]

        response = client.get(access_url, headers=as_user(student))
        assert response.json() == {"course_id": course["id"], "has_access": True}

        response = client.post(
            f"/v1/purchases/{purchase['id']}/refund", headers=as_user(admin)
        )
        assert response.status_code == 200
        assert response.json()["enrollment"]["has_access"] is False

        response = client.get(content_url, headers=as_user(student))
        assert response.status_code == 403
        response = client.get(access_url, headers=as_user(student))
        assert response.json()["has_access"] is False

    def test_refund_pending_is_conflict(
        self, client: TestClient, admin: dict, student: dict, course: dict
    ) -> None:
        response = client.post(
            "/v1/purchases",
            json={"course_id": course["id"], "payment_method": "paypal"},
            headers=as_user(student),
        )
        purchase_id = response.json()["id"]

        response = client.post(
            f"/v1/purchases/{purchase_id}/refund", headers=as_user(admin)
        )

        assert response.status_code == 409
        assert response.json()["code"] == "invalid_transition"

    def test_consumer_cannot_confirm(
        self, client: TestClient, student: dict, course: dict
    ) -> None:
        response = client.post(
            "/v1/purchases",
            json={"course_id": course["id"], "payment_method": "stripe"},
            headers=as_user(student),
        )
        purchase_id = response.json()["id"]

        response = client.post(
            f"/v1/purchases/{purchase_id}/confirm", headers=as_user(student)
        )

        assert response.status_code == 403

    def test_confirm_unknown_purchase(self, client: TestClient, admin: dict) -> None:
        response = client.post("/v1/purchases/missing/confirm", headers=as_user(admin))
        assert response.status_code == 404

    def test_purchase_unknown_course(self, client: TestClient, student: dict) -> None:
        response = client.post(
            "/v1/purchases",
            json={"course_id": "missing", "payment_method": "stripe"},
            headers=as_user(student),
        )
        assert response.status_code == 404

    def test_purchase_requires_user(self, client: TestClient, course: dict) -> None:
        response = client.post(
            "/v1/purchases",
            json={"course_id": course["id"], "payment_method": "stripe"},
        )
        assert response.status_code == 401

    def test_my_purchases(
        self, client: TestClient, admin: dict, student: dict, course: dict
    ) -> None:
        client.post(
            "/v1/purchases",
            json={"course_id": course["id"], "payment_method": "stripe"},
            headers=as_user(student),
        )

        mine = client.get("/v1/purchases/my", headers=as_user(student)).json()
        others = client.get("/v1/purchases/my", headers=as_user(admin)).json()

        assert len(mine) == 1
        assert mine[0]["user_id"] == student["id"]
        assert others == []


class TestCourseEndpoints:
    """Catalogue endpoints."""

    def test_public_catalogue(self, client: TestClient, course: dict) -> None:
        response = client.get("/v1/courses")
        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == [course["id"]]

    def test_consumer_cannot_create_course(
        self, client: TestClient, student: dict
    ) -> None:
        response = client.post(
            "/v1/courses",
            json={"name": "Nope", "price": "1.00"},
            headers=as_user(student),
        )
        assert response.status_code == 403

    def test_delete_course(self, client: TestClient, admin: dict, course: dict) -> None:
        response = client.delete(f"/v1/courses/{course['id']}", headers=as_user(admin))
        assert response.status_code == 204

        assert client.get(f"/v1/courses/{course['id']}").status_code == 404
        assert client.get("/v1/courses").json() == []

    def test_negative_price_rejected(self, client: TestClient, admin: dict) -> None:
        response = client.post(
            "/v1/courses",
            json={"name": "Bad", "price": "-5"},
            headers=as_user(admin),
        )
        assert response.status_code == 422

    def test_content_order_out_of_range_rejected(
        self, client: TestClient, admin: dict, course: dict
    ) -> None:
        for order in [-1, 2**31]:
            response = client.post(
                f"/v1/courses/{course['id']}/content",
                json={
                    "title": "late",
                    "content_type": "video",
                    "content_url": "https://cdn.example.com/late.mp4",
                    "order": order,
                },
                headers=as_user(admin),
            )
            assert response.status_code == 422
