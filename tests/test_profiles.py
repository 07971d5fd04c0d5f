import pytest
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import engine
from backend.app.main import app

MENTOR_PROFILE = {
    "full_name": "Sarah Johnson",
    "age": 34,
    "contact_number": "+1-555-0101",
    "expertise": "Mathematics, Physics",
    "experience": 8,
    "bio": "Former olympiad coach.",
    "hourly_rate": "45.00",
    "preferred_language": "English",
}

STUDENT_PROFILE = {
    "full_name": "Alex Student",
    "age": 16,
    "contact_number": "+1-555-0199",
    "current_education_level": "ORDINARY_LEVEL",
    "school": "Central High",
    "subjects_of_interest": "Math, Chemistry",
    "current_year": 2,
    "skill_levels": {"Math": "INTERMEDIATE"},
    "preferred_learning_style": "VISUAL",
}


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def register_and_login(client: TestClient, email: str, role: str) -> dict:
    client.post("/auth/register", json={"email": email, "password": "secret", "role": role})
    response = client.post("/auth/login", json={"email": email, "password": "secret"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_mentor_profile_upsert_and_read():
    client = TestClient(app)
    headers = register_and_login(client, "mentor@example.com", "MENTOR")

    assert client.get("/profiles/mentor", headers=headers).status_code == 404

    created = client.post("/profiles/mentor", json=MENTOR_PROFILE, headers=headers)
    assert created.status_code == 201
    assert created.json()["full_name"] == "Sarah Johnson"

    updated = client.post("/profiles/mentor", json={**MENTOR_PROFILE, "experience": 9}, headers=headers)
    assert updated.status_code == 201
    assert updated.json()["id"] == created.json()["id"]

    fetched = client.get("/profiles/mentor", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["experience"] == 9
    assert float(fetched.json()["hourly_rate"]) == 45.0


def test_student_profile_upsert_and_read():
    client = TestClient(app)
    headers = register_and_login(client, "student@example.com", "STUDENT")

    created = client.post("/profiles/student", json=STUDENT_PROFILE, headers=headers)
    assert created.status_code == 201
    fetched = client.get("/profiles/student", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["skill_levels"] == {"Math": "INTERMEDIATE"}
    assert fetched.json()["learning_disabilities"] is None


def test_profile_roles_are_enforced():
    client = TestClient(app)
    student = register_and_login(client, "student@example.com", "STUDENT")
    mentor = register_and_login(client, "mentor@example.com", "MENTOR")

    assert client.post("/profiles/mentor", json=MENTOR_PROFILE, headers=student).status_code == 403
    assert client.post("/profiles/student", json=STUDENT_PROFILE, headers=mentor).status_code == 403
    assert client.get("/profiles/mentor").status_code == 401


def test_profile_validation():
    client = TestClient(app)
    headers = register_and_login(client, "student@example.com", "STUDENT")
    bad = {**STUDENT_PROFILE, "age": 0, "preferred_learning_style": "SLEEPING"}
    response = client.post("/profiles/student", json=bad, headers=headers)
    assert response.status_code == 400
    fields = {detail["field"] for detail in response.json()["error"]["details"]}
    assert "body.age" in fields
    assert "body.preferred_learning_style" in fields
