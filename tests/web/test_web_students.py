"""Tests for student endpoints."""


class TestStudentResults:
    """Tests for GET /api/students/{id}/results."""

    def test_results_empty(self, client, student):
        response = client.get(f"/api/students/{student.student_id}/results")

        assert response.status_code == 200
        data = response.json()
        assert data["results"] == []
        assert data["total_results"] == 0

    def test_results_after_submit(self, client, manager, student, sample_exam):
        attempt = manager.start(student.student_id, sample_exam.exam_id)
        manager.record_answer(attempt.attempt_id, sample_exam.question_ids[1], "B")
        manager.submit(attempt.attempt_id)

        data = client.get(f"/api/students/{student.student_id}/results").json()

        assert data["total_results"] == 1
        result = data["results"][0]
        assert result["exam_title"] == "Networking basics"
        assert result["obtained_marks"] == 3
        assert result["passed"] is False
        assert data["failed_count"] == 1

    def test_unknown_student(self, client, db):
        assert client.get("/api/students/999/results").status_code == 404


class TestAvailableExams:
    """Tests for GET /api/students/{id}/exams."""

    def test_lists_active_exams(self, client, student, sample_exam, other_exam):
        data = client.get(f"/api/students/{student.student_id}/exams").json()

        assert data["count"] == 2
        assert [e["title"] for e in data["exams"]] == ["Networking basics", "Databases"]
        assert data["exams"][0]["question_count"] == 3

    def test_unknown_student(self, client, db):
        assert client.get("/api/students/999/exams").status_code == 404
