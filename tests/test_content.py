"""
Tests for categories, tutorials and quiz authoring
"""
from tutorial_app.models import Category, Progress, Question, Quiz, QuizAttempt, Review, Tutorial


def _quiz_body(tutorial, **overrides):
    body = {
        "title": "Linear equations",
        "tutorial_id": str(tutorial.id),
        "questions": [
            {"question": "2x = 4, x = ?", "type": "short_answer", "correct_answer": 2, "points": 5},
            {"question": "Is 0 a solution of x + 1 = 0?", "type": "true_false", "correct_answer": False},
        ],
    }
    body.update(overrides)
    return body


class TestCategories:

    def test_admin_creates_category(self, client, admin):
        response = client.post(
            "/api/categories/",
            json={"name": "Physics", "description": "Mechanics and waves"},
            headers=admin.headers
        )
        assert response.status_code == 201
        assert response.json()["data"]["category"]["tutorial_count"] == 0

    def test_duplicate_name(self, client, admin, category):
        response = client.post(
            "/api/categories/",
            json={"name": category.name, "description": "Again"},
            headers=admin.headers
        )
        assert response.status_code == 409

    def test_teacher_cannot_create(self, client, teacher):
        response = client.post(
            "/api/categories/",
            json={"name": "Chemistry", "description": "Reactions"},
            headers=teacher.headers
        )
        assert response.status_code == 403

    def test_bad_color_is_rejected(self, client, admin):
        response = client.post(
            "/api/categories/",
            json={"name": "Biology", "description": "Cells", "color": "blue"},
            headers=admin.headers
        )
        assert response.status_code == 422
        assert response.json()["success"] is False


class TestCategoryLifecycle:

    def test_delete_empty_category(self, client, db_session, admin, category):
        response = client.delete(f"/api/categories/{category.id}", headers=admin.headers)

        assert response.status_code == 200
        assert db_session.query(Category).count() == 0

    def test_delete_refused_while_holding_tutorials(self, client, db_session, admin, category, tutorial):
        response = client.delete(f"/api/categories/{category.id}", headers=admin.headers)

        assert response.status_code == 400
        assert "1 tutorials" in response.json()["message"]
        assert db_session.query(Category).count() == 1

    def test_delete_requires_admin(self, client, teacher, category):
        assert client.delete(f"/api/categories/{category.id}", headers=teacher.headers).status_code == 403

    def test_status_toggle(self, client, admin, category):
        url = f"/api/categories/{category.id}/status"

        first = client.patch(url, headers=admin.headers)
        assert first.json()["data"]["category"]["is_active"] is False
        assert first.json()["message"] == "Category deactivated successfully"

        second = client.patch(url, headers=admin.headers)
        assert second.json()["data"]["category"]["is_active"] is True

    def test_stats(self, client, db_session, teacher, category, tutorial):
        draft = Tutorial(
            title="Matrices",
            description="Matrix multiplication",
            difficulty="advanced",
            teacher_id=teacher.id,
            category_id=category.id,
            is_published=False,
            rating=5.0,
            rating_count=3
        )
        tutorial.rating = 4.0
        tutorial.rating_count = 2
        db_session.add(draft)
        db_session.commit()

        response = client.get(f"/api/categories/{category.id}/stats")

        assert response.status_code == 200
        stats = response.json()["data"]["stats"]
        assert stats["total_tutorials"] == 2
        assert stats["published_tutorials"] == 1
        assert stats["draft_tutorials"] == 1
        assert stats["difficulty_distribution"] == {"beginner": 1, "advanced": 1}
        assert stats["average_rating"] == 4.0
        assert stats["total_ratings"] == 2
        assert len(stats["recent_tutorials"]) == 2

    def test_stats_for_missing_category(self, client):
        response = client.get("/api/categories/00000000-0000-0000-0000-000000000000/stats")
        assert response.status_code == 404


class TestTutorials:

    def test_create_counts_in_category(self, client, db_session, teacher, category):
        response = client.post(
            "/api/tutorials/",
            json={"title": "Vectors", "description": "Vector basics", "category_id": str(category.id)},
            headers=teacher.headers
        )
        assert response.status_code == 201
        tutorial = response.json()["data"]["tutorial"]
        assert tutorial["rating"] == 0
        assert tutorial["rating_count"] == 0

        db_session.refresh(category)
        assert category.tutorial_count == 1

    def test_student_cannot_create(self, client, student):
        response = client.post(
            "/api/tutorials/",
            json={"title": "Vectors", "description": "Vector basics"},
            headers=student.headers
        )
        assert response.status_code == 403

    def test_only_owner_updates(self, client, tutorial, teacher, other_teacher):
        response = client.put(f"/api/tutorials/{tutorial.id}", json={"title": "Mine now"}, headers=other_teacher.headers)
        assert response.status_code == 403

        ok = client.put(f"/api/tutorials/{tutorial.id}", json={"title": "Quadratics"}, headers=teacher.headers)
        assert ok.json()["data"]["tutorial"]["title"] == "Quadratics"

    def test_delete_cascades(self, client, db_session, tutorial, quiz, teacher, student, category):
        category.tutorial_count = 1
        db_session.commit()

        started = client.post(f"/api/quizzes/{quiz.id}/start", headers=student.headers)
        assert started.status_code == 200
        client.post(f"/api/tutorials/{tutorial.id}/progress", json={"progress": 20}, headers=student.headers)
        client.post(
            f"/api/reviews/tutorial/{tutorial.id}",
            json={"rating": 5, "comment": "Great"},
            headers=student.headers
        )

        response = client.delete(f"/api/tutorials/{tutorial.id}", headers=teacher.headers)
        assert response.status_code == 200

        for model in (Tutorial, Quiz, Question, QuizAttempt, Progress, Review):
            assert db_session.query(model).count() == 0
        assert db_session.query(Category).one().tutorial_count == 0

    def test_publish_toggle(self, client, tutorial, teacher, other_teacher):
        url = f"/api/tutorials/{tutorial.id}/publish"

        assert client.patch(url, headers=other_teacher.headers).status_code == 403

        response = client.patch(url, headers=teacher.headers)
        assert response.status_code == 200
        assert response.json()["data"]["tutorial"]["is_published"] is False
        assert response.json()["message"] == "Tutorial unpublished successfully"

        again = client.patch(url, headers=teacher.headers)
        assert again.json()["data"]["tutorial"]["is_published"] is True

    def test_clear_nullable_fields(self, client, db_session, tutorial, teacher, category):
        category.tutorial_count = 1
        db_session.commit()

        response = client.put(
            f"/api/tutorials/{tutorial.id}",
            json={"category_id": None, "duration": None},
            headers=teacher.headers
        )

        assert response.status_code == 200
        data = response.json()["data"]["tutorial"]
        assert data["category_id"] is None
        assert data["duration"] is None
        assert db_session.query(Category).one().tutorial_count == 0

    def test_null_for_required_field(self, client, tutorial, teacher):
        response = client.put(f"/api/tutorials/{tutorial.id}", json={"title": None}, headers=teacher.headers)

        assert response.status_code == 400
        assert response.json()["message"] == "title cannot be null"

    def test_clear_quiz_description(self, client, db_session, quiz, teacher):
        quiz.description = "Warm-up"
        db_session.commit()

        response = client.put(f"/api/quizzes/{quiz.id}", json={"description": None}, headers=teacher.headers)

        assert response.status_code == 200
        assert response.json()["data"]["quiz"]["description"] is None

    def test_get_missing(self, client):
        assert client.get("/api/tutorials/00000000-0000-0000-0000-000000000000").status_code == 404


class TestQuizAuthoring:

    def test_create_stores_answers_as_text(self, client, db_session, tutorial, teacher):
        response = client.post("/api/quizzes/", json=_quiz_body(tutorial), headers=teacher.headers)

        assert response.status_code == 201
        quiz = response.json()["data"]["quiz"]
        assert quiz["is_published"] is False
        assert quiz["passing_score"] == 70
        assert quiz["total_questions"] == 2
        assert [q["correct_answer"] for q in quiz["questions"]] == ["2", "false"]
        assert [q["order"] for q in quiz["questions"]] == [1, 2]

    def test_multiple_choice_needs_options(self, client, tutorial, teacher):
        body = _quiz_body(tutorial, questions=[
            {"question": "Pick one", "type": "multiple_choice", "options": ["A"], "correct_answer": "A"}
        ])
        assert client.post("/api/quizzes/", json=body, headers=teacher.headers).status_code == 422

    def test_time_limit_range(self, client, tutorial, teacher):
        body = _quiz_body(tutorial, time_limit=181)
        assert client.post("/api/quizzes/", json=body, headers=teacher.headers).status_code == 422

    def test_other_teachers_tutorial(self, client, tutorial, other_teacher):
        response = client.post("/api/quizzes/", json=_quiz_body(tutorial), headers=other_teacher.headers)
        assert response.status_code == 403

    def test_students_never_see_answers(self, client, quiz, student):
        response = client.get(f"/api/quizzes/{quiz.id}?includeAnswers=true", headers=student.headers)

        assert response.status_code == 200
        for question in response.json()["data"]["quiz"]["questions"]:
            assert "correct_answer" not in question

    def test_owner_sees_answers_on_request(self, client, quiz, teacher):
        response = client.get(f"/api/quizzes/{quiz.id}?includeAnswers=true", headers=teacher.headers)
        questions = response.json()["data"]["quiz"]["questions"]
        assert [q["correct_answer"] for q in questions] == ["B", "2"]

    def test_unpublished_hidden_from_students(self, client, make_quiz, student):
        quiz = make_quiz(published=False)
        assert client.get(f"/api/quizzes/{quiz.id}", headers=student.headers).status_code == 403

        listing = client.get("/api/quizzes/", headers=student.headers)
        assert listing.json()["pagination"]["total"] == 0

    def test_publish_toggle(self, client, make_quiz, teacher):
        quiz = make_quiz(published=False)

        response = client.patch(f"/api/quizzes/{quiz.id}/publish", headers=teacher.headers)
        assert response.json()["data"]["quiz"]["is_published"] is True
        response = client.patch(f"/api/quizzes/{quiz.id}/publish", headers=teacher.headers)
        assert response.json()["data"]["quiz"]["is_published"] is False

    def test_update_replaces_questions(self, client, db_session, quiz, teacher):
        response = client.put(
            f"/api/quizzes/{quiz.id}",
            json={"passing_score": 50, "questions": [
                {"question": "3 + 4?", "type": "short_answer", "correct_answer": "7"}
            ]},
            headers=teacher.headers
        )

        assert response.status_code == 200
        data = response.json()["data"]["quiz"]
        assert data["passing_score"] == 50
        assert data["total_questions"] == 1
        assert db_session.query(Question).count() == 1

    def test_delete_removes_questions_and_attempts(self, client, db_session, quiz, teacher, student):
        client.post(f"/api/quizzes/{quiz.id}/start", headers=student.headers)

        response = client.delete(f"/api/quizzes/{quiz.id}", headers=teacher.headers)
        assert response.status_code == 200
        assert db_session.query(Question).count() == 0
        assert db_session.query(QuizAttempt).count() == 0


class TestEnvelope:

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["cache"] == "disabled"

    def test_malformed_user_id_header(self, client, quiz):
        response = client.get(
            f"/api/quizzes/{quiz.id}",
            headers={"X-User-Id": "not-a-uuid", "X-User-Role": "student"}
        )
        assert response.status_code == 401
        assert response.json()["success"] is False
