"""Tests for assignment management."""
from datetime import datetime, timedelta

import pytest
from fastapi import status

from feedback_api.assignments.schemas import AssignmentCreate, to_naive_utc
from feedback_api.models import Assignment, Submission


def assignment_payload(**overrides):
    payload = {
        "title": "Lab Report",
        "description": "Write up the titration lab",
        "instructions": "Include method, results and discussion.",
        "subject": "Chemistry",
        "max_score": 50,
        "rubric": [
            {"name": "Method", "points": 20, "description": "Procedure is reproducible"},
            {"name": "Discussion", "points": 30, "description": "Results are interpreted"},
        ],
        "is_published": True,
    }
    payload.update(overrides)
    return payload


def test_professor_creates_assignment(client, professor, professor_headers):
    response = client.post("/assignments", json=assignment_payload(), headers=professor_headers)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["title"] == "Lab Report"
    assert data["created_by"] == professor.id
    assert data["total_points"] == 50
    assert [c["name"] for c in data["rubric"]] == ["Method", "Discussion"]


def test_student_cannot_create_assignment(client, student_headers):
    response = client.post("/assignments", json=assignment_payload(), headers=student_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.parametrize("overrides", [
    {"title": ""},
    {"max_score": 0},
    {"rubric": [{"name": "Method", "points": 0, "description": "x"}]},
    {"rubric": [
        {"name": "Method", "points": 10, "description": "x"},
        {"name": "method", "points": 10, "description": "y"},
    ]},
])
def test_create_assignment_validation(client, professor_headers, overrides):
    response = client.post("/assignments", json=assignment_payload(**overrides), headers=professor_headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_due_date_stored_as_utc(client, professor_headers, db_session):
    response = client.post(
        "/assignments",
        json=assignment_payload(due_date="2026-11-01T17:00:00+02:00"),
        headers=professor_headers,
    )
    assignment = db_session.get(Assignment, response.json()["id"])
    assert assignment.due_date == datetime(2026, 11, 1, 15, 0)


def test_list_visibility_by_role(client, db_session, professor, other_professor, sample_assignment,
                                 student_headers, professor_headers, admin_headers):
    draft = Assignment(title="Draft", created_by=professor.id, is_published=False)
    foreign = Assignment(title="Other course", created_by=other_professor.id, is_published=True)
    db_session.add_all([draft, foreign])
    db_session.commit()

    student_titles = {a["title"] for a in client.get("/assignments", headers=student_headers).json()}
    assert student_titles == {"Persuasive Essay", "Other course"}

    professor_titles = {a["title"] for a in client.get("/assignments", headers=professor_headers).json()}
    assert professor_titles == {"Persuasive Essay", "Draft"}

    admin_titles = {a["title"] for a in client.get("/assignments", headers=admin_headers).json()}
    assert admin_titles == {"Persuasive Essay", "Draft", "Other course"}


def test_unpublished_assignment_hidden_from_students(client, db_session, professor, student_headers):
    draft = Assignment(title="Draft", created_by=professor.id, is_published=False)
    db_session.add(draft)
    db_session.commit()

    response = client.get(f"/assignments/{draft.id}", headers=student_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_get_assignment(client, sample_assignment, student_headers):
    response = client.get(f"/assignments/{sample_assignment.id}", headers=student_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["total_points"] == 100

    response = client.get("/assignments/does-not-exist", headers=student_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_update_assignment(client, sample_assignment, professor_headers):
    response = client.patch(
        f"/assignments/{sample_assignment.id}",
        json={"title": "Revised Essay", "is_published": False},
        headers=professor_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["title"] == "Revised Essay"
    assert data["is_published"] is False
    assert len(data["rubric"]) == 4


def test_update_assignment_clears_rubric(client, sample_assignment, professor_headers):
    response = client.patch(
        f"/assignments/{sample_assignment.id}",
        json={"rubric": [], "max_score": 20},
        headers=professor_headers,
    )
    assert response.json()["rubric"] == []
    assert response.json()["total_points"] == 20


@pytest.mark.parametrize("changes", [
    {"max_score": 50},
    {"rubric": [{"name": "Thesis", "points": 10, "description": "Clear claim"}]},
])
def test_scoring_fixed_after_feedback(client, sample_assignment, generated_feedback, professor_headers, changes):
    response = client.patch(f"/assignments/{sample_assignment.id}", json=changes, headers=professor_headers)
    assert response.status_code == status.HTTP_409_CONFLICT

    response = client.patch(
        f"/assignments/{sample_assignment.id}", json={"title": "Renamed"}, headers=professor_headers
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["total_points"] == 100


def test_only_owner_or_admin_updates(client, sample_assignment, other_professor_headers, admin_headers):
    response = client.patch(
        f"/assignments/{sample_assignment.id}",
        json={"title": "Hijacked"},
        headers=other_professor_headers,
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.patch(
        f"/assignments/{sample_assignment.id}", json={"title": "Admin edit"}, headers=admin_headers
    )
    assert response.status_code == status.HTTP_200_OK


def test_delete_assignment_cascades(client, db_session, sample_assignment, sample_submission,
                                    generated_feedback, professor_headers, student_headers):
    assert client.delete(
        f"/assignments/{sample_assignment.id}", headers=student_headers
    ).status_code == status.HTTP_403_FORBIDDEN

    response = client.delete(f"/assignments/{sample_assignment.id}", headers=professor_headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT

    db_session.expire_all()
    assert db_session.query(Assignment).count() == 0
    assert db_session.query(Submission).count() == 0


class TestAssignmentModel:
    def test_total_points_from_rubric(self, sample_assignment):
        assert sample_assignment.total_points == 100
        assert sample_assignment.criterion_count == 4
        assert sample_assignment.get_criterion_by_name("Thesis")["points"] == 25
        assert sample_assignment.get_criterion_by_name("Style") is None

    def test_total_points_without_rubric(self, db_session, professor):
        assignment = Assignment(title="Quiz", created_by=professor.id, max_score=10, rubric=[])
        db_session.add(assignment)
        db_session.commit()
        assert assignment.total_points == 10

    def test_is_past_due(self, sample_assignment):
        assert not sample_assignment.is_past_due()
        sample_assignment.due_date = datetime(2020, 1, 1)
        assert sample_assignment.is_past_due()
        assert not sample_assignment.is_past_due(at=datetime(2019, 12, 31))

    def test_to_naive_utc(self):
        assert to_naive_utc(None) is None
        naive = datetime(2026, 1, 1, 12)
        assert to_naive_utc(naive) == naive
        aware = AssignmentCreate(title="x", due_date="2026-01-01T12:00:00-05:00").due_date
        assert aware == datetime(2026, 1, 1, 17) and aware.tzinfo is None
        assert aware - naive == timedelta(hours=5)
