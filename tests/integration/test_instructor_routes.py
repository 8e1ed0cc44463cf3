"""
Integration tests for instructor authoring: course, module, lesson and quiz.
"""
import pytest
from fastapi.testclient import TestClient

QUIZ_BODY = {
    "title": "Dough check",
    "passing_score": 50,
    "questions": [
        {
            "text": "Which flour suits fresh pasta?",
            "type": "SINGLE",
            "options": [{"text": "00", "is_correct": True}, {"text": "Cake flour"}],
        },
        {
            "text": "Pick the dough ingredients",
            "type": "MULTIPLE",
            "options": [
                {"text": "Eggs", "is_correct": True},
                {"text": "Flour", "is_correct": True},
                {"text": "Vinegar"},
            ],
        },
    ],
}


def _build_course(client) -> dict:
    course_id = client.post("/api/instructor/courses", json={"title": "Fresh pasta", "difficulty": "medium"}).json()["id"]
    first = client.post(f"/api/instructor/courses/{course_id}/modules", json={"title": "Dough"}).json()["id"]
    second = client.post(f"/api/instructor/courses/{course_id}/modules", json={"title": "Shapes"}).json()["id"]
    lesson = client.post(
        f"/api/instructor/courses/{course_id}/modules/{first}/lessons",
        json={
            "title": "Egg dough",
            "steps": ["Make a well", "Knead ten minutes"],
            "ingredients": [{"name": "Flour", "quantity": "200", "unit": "g"}, {"name": "Egg", "quantity": "2"}],
        },
    ).json()["id"]
    client.post(f"/api/instructor/courses/{course_id}/modules/{second}/lessons", json={"title": "Tagliatelle"})
    return {"course": course_id, "modules": [first, second], "lesson": lesson}


@pytest.mark.integration
class TestInstructorRoutes:
    def test_learner_cannot_author(self, api_client: TestClient, factory, login_as):
        response = login_as(factory.user()).post("/api/instructor/courses", json={"title": "Nope"})
        assert response.status_code == 403

    def test_build_and_publish_course(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        ids = _build_course(login_as(chef))

        client = login_as(chef)
        detail = client.get(f"/api/courses/{ids['course']}").json()
        assert [m["id"] for m in detail["modules"]] == ids["modules"]
        assert [m["order_index"] for m in detail["modules"]] == [1, 2]
        assert detail["course"]["difficulty"] == "MEDIUM"
        assert detail["course"]["published"] is False

        learner = factory.user()
        assert login_as(learner).get(f"/api/courses/{ids['course']}").status_code == 403

        published = login_as(chef).patch(f"/api/instructor/courses/{ids['course']}", json={"published": True})
        assert published.json()["published"] is True
        assert login_as(learner).get(f"/api/courses/{ids['course']}").status_code == 200

    def test_lesson_detail_after_authoring(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        ids = _build_course(login_as(chef))
        data = login_as(chef).get(f"/api/courses/{ids['course']}/lessons/{ids['lesson']}").json()
        assert data["steps"] == ["Make a well", "Knead ten minutes"]
        assert [i["name"] for i in data["ingredients"]] == ["Flour", "Egg"]

    def test_attach_and_replace_quiz(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        client = login_as(chef)
        ids = _build_course(client)

        created = client.put(f"/api/instructor/lessons/{ids['lesson']}/quiz", json=QUIZ_BODY)
        assert created.status_code == 200
        quiz_id = created.json()["id"]

        replaced = client.put(
            f"/api/instructor/lessons/{ids['lesson']}/quiz",
            json={**QUIZ_BODY, "passing_score": 100, "questions": QUIZ_BODY["questions"][:1]},
        )
        assert replaced.json()["id"] == quiz_id

        quiz = client.get(f"/api/quizzes/{quiz_id}").json()
        assert quiz["passing_score"] == 100
        assert len(quiz["questions"]) == 1

    def test_quiz_gates_next_module_after_publish(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        client = login_as(chef)
        ids = _build_course(client)
        client.put(f"/api/instructor/lessons/{ids['lesson']}/quiz", json=QUIZ_BODY)
        client.patch(f"/api/instructor/courses/{ids['course']}", json={"published": True})

        client = login_as(factory.user())
        client.post(f"/api/courses/{ids['course']}/enroll")
        assert client.get(f"/api/courses/{ids['course']}").json()["locked_modules"] == [ids["modules"][1]]

    def test_single_choice_needs_one_correct_option(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        client = login_as(chef)
        ids = _build_course(client)
        body = {
            "title": "Broken",
            "questions": [
                {"text": "?", "type": "SINGLE", "options": [{"text": "a", "is_correct": True}, {"text": "b", "is_correct": True}]}
            ],
        }
        assert client.put(f"/api/instructor/lessons/{ids['lesson']}/quiz", json=body).status_code == 400

    def test_other_instructor_cannot_edit(self, api_client: TestClient, factory, login_as):
        ids = _build_course(login_as(factory.instructor()))
        other = login_as(factory.instructor())
        assert other.patch(f"/api/instructor/courses/{ids['course']}", json={"title": "Mine"}).status_code == 403
        assert other.post(f"/api/instructor/courses/{ids['course']}/modules", json={"title": "X"}).status_code == 403

    def test_soft_delete_hides_course(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        client = login_as(chef)
        ids = _build_course(client)
        client.patch(f"/api/instructor/courses/{ids['course']}", json={"published": True})

        assert client.delete(f"/api/instructor/courses/{ids['course']}").status_code == 204
        assert client.get(f"/api/courses/{ids['course']}").status_code == 404
        assert client.get("/api/instructor/courses").json()["courses"] == []

    def test_unknown_module(self, api_client: TestClient, factory, login_as):
        client = login_as(factory.instructor())
        ids = _build_course(client)
        response = client.post(f"/api/instructor/courses/{ids['course']}/modules/nope/lessons", json={"title": "X"})
        assert response.status_code == 404


@pytest.mark.integration
class TestInstructorEditing:
    def test_reordering_modules_moves_the_gate(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        course = factory.course(chef, [[{"passing_score": 70, "questions": 2}], [None]])
        quiz_module, plain_module = course.modules
        learner = factory.user()
        factory.enroll(learner, course)

        assert login_as(learner).get(f"/api/courses/{course.id}").json()["locked_modules"] == [plain_module.id]

        response = login_as(chef).patch(
            f"/api/instructor/courses/{course.id}/modules/reorder", json={"ids": [plain_module.id, quiz_module.id]}
        )
        assert response.status_code == 204

        data = login_as(learner).get(f"/api/courses/{course.id}").json()
        assert [m["id"] for m in data["modules"]] == [plain_module.id, quiz_module.id]
        assert data["locked_modules"] == []

    def test_reorder_must_name_every_module_once(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        course = factory.course(chef, [[None], [None]])
        first, second = course.modules
        client = login_as(chef)
        url = f"/api/instructor/courses/{course.id}/modules/reorder"

        assert client.patch(url, json={"ids": [first.id]}).status_code == 400
        assert client.patch(url, json={"ids": [first.id, first.id]}).status_code == 400
        assert client.patch(url, json={"ids": [first.id, "nope"]}).status_code == 400

    def test_reorder_lessons(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        course = factory.course(chef, [[None, None, None]])
        module = course.modules[0]
        ids = [lesson.id for lesson in module.lessons]
        client = login_as(chef)

        response = client.patch(
            f"/api/instructor/courses/{course.id}/modules/{module.id}/lessons/reorder", json={"ids": ids[::-1]}
        )
        assert response.status_code == 204
        lessons = client.get(f"/api/courses/{course.id}").json()["modules"][0]["lessons"]
        assert [lesson["id"] for lesson in lessons] == ids[::-1]
        assert [lesson["order_index"] for lesson in lessons] == [1, 2, 3]

    def test_update_module_and_lesson(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        course = factory.course(chef, [[None]])
        module = course.modules[0]
        lesson = module.lessons[0]
        client = login_as(chef)
        base = f"/api/instructor/courses/{course.id}/modules/{module.id}"

        assert client.patch(base, json={"title": "Sauces"}).status_code == 200
        updated = client.patch(
            f"{base}/lessons/{lesson.id}",
            json={"title": "Beurre blanc", "steps": ["Reduce", "Mount"], "ingredients": [{"name": "Butter"}]},
        )
        assert updated.status_code == 200

        detail = client.get(f"/api/courses/{course.id}/lessons/{lesson.id}").json()
        assert detail["title"] == "Beurre blanc"
        assert detail["module"]["title"] == "Sauces"
        assert detail["steps"] == ["Reduce", "Mount"]
        assert [i["name"] for i in detail["ingredients"]] == ["Butter"]

    def test_delete_lesson_and_module(self, api_client: TestClient, factory, login_as, db_session):
        from gurmania.models import Lesson, Progress

        chef = factory.instructor()
        course = factory.course(chef, [[None, None], [None]])
        first, second = course.modules
        doomed_id, survivor_id = first.lessons[0].id, first.lessons[1].id
        learner = factory.user()
        factory.enroll(learner, course)
        login_as(learner).post(
            "/api/progress", json={"course_id": course.id, "lesson_id": doomed_id, "completed": True}
        )

        client = login_as(chef)
        base = f"/api/instructor/courses/{course.id}/modules"
        assert client.delete(f"{base}/{first.id}/lessons/{doomed_id}").status_code == 204
        assert client.delete(f"{base}/{second.id}").status_code == 204

        data = client.get(f"/api/courses/{course.id}").json()
        assert [m["id"] for m in data["modules"]] == [first.id]
        assert [lesson["id"] for lesson in data["modules"][0]["lessons"]] == [survivor_id]

        db_session.expire_all()
        assert db_session.query(Lesson).filter(Lesson.id == doomed_id).count() == 0
        assert db_session.query(Progress).filter(Progress.lesson_id == doomed_id).count() == 0

    def test_quiz_edit_and_delete_removes_gate(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        course = factory.course(chef, [[{"passing_score": 70, "questions": 2}], [None]])
        quiz_id = course.modules[0].lessons[0].quiz.id
        learner = factory.user()
        factory.enroll(learner, course)
        client = login_as(chef)

        detail = client.get(f"/api/instructor/quizzes/{quiz_id}").json()
        assert all("is_correct" in o for q in detail["questions"] for o in q["options"])

        patched = client.patch(f"/api/instructor/quizzes/{quiz_id}", json={"title": "Renamed", "passing_score": None})
        assert patched.json()["title"] == "Renamed"
        assert patched.json()["passing_score"] is None
        assert len(patched.json()["questions"]) == 2

        assert client.delete(f"/api/instructor/quizzes/{quiz_id}").status_code == 204
        assert client.get(f"/api/instructor/quizzes/{quiz_id}").status_code == 404
        assert login_as(learner).get(f"/api/courses/{course.id}").json()["locked_modules"] == []

    def test_quiz_editing_requires_ownership(self, api_client: TestClient, factory, login_as):
        course = factory.course(factory.instructor(), [[{"passing_score": 70, "questions": 1}]])
        quiz = course.modules[0].lessons[0].quiz
        other = login_as(factory.instructor())
        assert other.get(f"/api/instructor/quizzes/{quiz.id}").status_code == 403
        assert other.delete(f"/api/instructor/quizzes/{quiz.id}").status_code == 403
