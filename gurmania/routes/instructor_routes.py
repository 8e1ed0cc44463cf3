"""
Instructor authoring endpoints: courses, modules, lessons and lesson quizzes.
"""

from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from gurmania.config import get_db
from gurmania.models.models import (
    Course,
    Difficulty,
    Lesson,
    LessonIngredient,
    Module,
    Progress,
    Question,
    QuestionOption,
    Quiz,
    User,
)
from gurmania.models.workshop import WorkshopLessonRequirement
from gurmania.routes.course_routes import course_response
from gurmania.schemas.course_schemas import (
    CourseListResponse,
    CourseResponse,
    CreateCourseRequest,
    CreatedResponse,
    CreateLessonRequest,
    CreateModuleRequest,
    IngredientInput,
    OptionDetail,
    QuestionDetail,
    QuestionInput,
    QuizDetailResponse,
    QuizInput,
    ReorderRequest,
    UpdateCourseRequest,
    UpdateLessonRequest,
    UpdateModuleRequest,
    UpdateQuizRequest,
)
from gurmania.services.course_service import is_course_staff, load_course_tree, load_quiz
from gurmania.utils.auth import require_instructor
from gurmania.utils.dates import utcnow
from gurmania.utils.errors import ForbiddenError, GurmaniaError, NotFoundError
from gurmania.utils.logger import get_logger

logger = get_logger("instructor")

instructor_routes = APIRouter()

QUESTION_TYPES = ("SINGLE", "MULTIPLE")


def _owned_course(db: Session, course_id: str, user: User) -> Course:
    course = load_course_tree(db, course_id)
    if course is None:
        raise NotFoundError("Course not found")
    if not is_course_staff(course, user):
        raise ForbiddenError("Insufficient permissions")
    return course


def _owned_module(db: Session, course_id: str, module_id: str, user: User) -> tuple[Course, Module]:
    course = _owned_course(db, course_id, user)
    for module in course.modules:
        if module.id == module_id:
            return course, module
    raise NotFoundError("Module not found")


def _owned_lesson(db: Session, course_id: str, module_id: str, lesson_id: str, user: User) -> tuple[Module, Lesson]:
    _, module = _owned_module(db, course_id, module_id, user)
    for lesson in module.lessons:
        if lesson.id == lesson_id:
            return module, lesson
    raise NotFoundError("Lesson not found")


def _owned_quiz(db: Session, quiz_id: str, user: User) -> Quiz:
    quiz = load_quiz(db, quiz_id)
    if quiz is None:
        raise NotFoundError("Quiz not found")
    _owned_course(db, quiz.lesson.module.course_id, user)
    return quiz


def _difficulty(value: str) -> Difficulty:
    try:
        return Difficulty(value.upper())
    except ValueError:
        raise GurmaniaError(f"Invalid difficulty: {value}")


def _next_order(db: Session, column, *criteria) -> int:
    current = db.query(func.max(column)).filter(*criteria).scalar()
    return (current or 0) + 1


def _apply_order(items: list, ids: list[str], label: str) -> None:
    """Renumber ``items`` 1..n following ``ids``, which must name each item once."""
    by_id = {item.id: item for item in items}
    if len(ids) != len(set(ids)) or set(ids) != set(by_id):
        raise GurmaniaError(f"Order must list every {label} exactly once")
    for index, item_id in enumerate(ids, start=1):
        by_id[item_id].order_index = index


def _ingredients(items: list[IngredientInput]) -> list[LessonIngredient]:
    return [
        LessonIngredient(id=str(uuid4()), name=i.name, quantity=i.quantity, unit=i.unit, optional=i.optional)
        for i in items
    ]


def _purge_lesson_refs(db: Session, lesson_ids: list[str]) -> None:
    """Drop rows in other tables that point at lessons about to be deleted."""
    if not lesson_ids:
        return
    db.query(Progress).filter(Progress.lesson_id.in_(lesson_ids)).delete(synchronize_session=False)
    db.query(WorkshopLessonRequirement).filter(
        WorkshopLessonRequirement.lesson_id.in_(lesson_ids)
    ).delete(synchronize_session=False)


@instructor_routes.get("/instructor/courses", response_model=CourseListResponse)
async def list_own_courses(
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> CourseListResponse:
    courses = (
        db.query(Course)
        .filter(Course.instructor_id == current_user.id, Course.deleted_at.is_(None))
        .order_by(Course.created_at.desc())
        .all()
    )
    return CourseListResponse(courses=[course_response(c) for c in courses])


@instructor_routes.post("/instructor/courses", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_course(
    req: CreateCourseRequest,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> CreatedResponse:
    """New courses start unpublished."""
    course = Course(
        id=str(uuid4()),
        instructor_id=current_user.id,
        title=req.title,
        description=req.description,
        difficulty=_difficulty(req.difficulty),
        published=False,
    )
    db.add(course)
    db.commit()
    logger.info("course created id=%s instructor_id=%s", course.id, current_user.id)
    return CreatedResponse(id=course.id)


@instructor_routes.patch("/instructor/courses/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: str,
    req: UpdateCourseRequest,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> CourseResponse:
    course = _owned_course(db, course_id, current_user)
    if req.title is not None:
        course.title = req.title
    if req.description is not None:
        course.description = req.description
    if req.difficulty is not None:
        course.difficulty = _difficulty(req.difficulty)
    if req.published is not None:
        course.published = req.published
    db.add(course)
    db.commit()
    return course_response(course)


@instructor_routes.delete("/instructor/courses/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(
    course_id: str,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> Response:
    """Soft delete; learner progress and certificates stay in place."""
    course = _owned_course(db, course_id, current_user)
    course.deleted_at = utcnow()
    course.published = False
    db.add(course)
    db.commit()
    logger.info("course soft-deleted id=%s by user_id=%s", course_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@instructor_routes.post(
    "/instructor/courses/{course_id}/modules",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_module(
    course_id: str,
    req: CreateModuleRequest,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> CreatedResponse:
    course = _owned_course(db, course_id, current_user)
    module = Module(
        id=str(uuid4()),
        course_id=course.id,
        title=req.title,
        description=req.description,
        order_index=_next_order(db, Module.order_index, Module.course_id == course.id),
    )
    db.add(module)
    db.commit()
    return CreatedResponse(id=module.id)


# Registered before the {module_id} routes so "reorder" is not taken for an id.
@instructor_routes.patch("/instructor/courses/{course_id}/modules/reorder", status_code=status.HTTP_204_NO_CONTENT)
async def reorder_modules(
    course_id: str,
    req: ReorderRequest,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> Response:
    """Module order is gating order: later modules unlock after earlier quizzes."""
    course = _owned_course(db, course_id, current_user)
    _apply_order(course.modules, req.ids, "module")
    db.commit()
    logger.info("modules reordered course_id=%s order=%s", course.id, req.ids)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@instructor_routes.patch("/instructor/courses/{course_id}/modules/{module_id}", response_model=CreatedResponse)
async def update_module(
    course_id: str,
    module_id: str,
    req: UpdateModuleRequest,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> CreatedResponse:
    _, module = _owned_module(db, course_id, module_id, current_user)
    if req.title is not None:
        module.title = req.title.strip()
    if "description" in req.model_fields_set:
        module.description = req.description or None
    db.add(module)
    db.commit()
    return CreatedResponse(id=module.id)


@instructor_routes.delete(
    "/instructor/courses/{course_id}/modules/{module_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_module(
    course_id: str,
    module_id: str,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> Response:
    """Hard delete of the module with its lessons, quizzes and submissions."""
    _, module = _owned_module(db, course_id, module_id, current_user)
    _purge_lesson_refs(db, [lesson.id for lesson in module.lessons])
    db.delete(module)
    db.commit()
    logger.info("module deleted id=%s course_id=%s by user_id=%s", module_id, course_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@instructor_routes.post(
    "/instructor/courses/{course_id}/modules/{module_id}/lessons",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_lesson(
    course_id: str,
    module_id: str,
    req: CreateLessonRequest,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> CreatedResponse:
    _owned_module(db, course_id, module_id, current_user)
    lesson = Lesson(
        id=str(uuid4()),
        module_id=module_id,
        title=req.title,
        description=req.description,
        video_url=req.video_url,
        steps=list(req.steps),
        duration_min=req.duration_min,
        order_index=_next_order(db, Lesson.order_index, Lesson.module_id == module_id),
        ingredients=_ingredients(req.ingredients),
    )
    db.add(lesson)
    db.commit()
    return CreatedResponse(id=lesson.id)


@instructor_routes.patch(
    "/instructor/courses/{course_id}/modules/{module_id}/lessons/reorder",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def reorder_lessons(
    course_id: str,
    module_id: str,
    req: ReorderRequest,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> Response:
    _, module = _owned_module(db, course_id, module_id, current_user)
    _apply_order(module.lessons, req.ids, "lesson")
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@instructor_routes.patch(
    "/instructor/courses/{course_id}/modules/{module_id}/lessons/{lesson_id}",
    response_model=CreatedResponse,
)
async def update_lesson(
    course_id: str,
    module_id: str,
    lesson_id: str,
    req: UpdateLessonRequest,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> CreatedResponse:
    _, lesson = _owned_lesson(db, course_id, module_id, lesson_id, current_user)
    fields = req.model_fields_set
    if req.title is not None:
        lesson.title = req.title.strip()
    for name in ("description", "video_url", "duration_min"):
        if name in fields:
            setattr(lesson, name, getattr(req, name))
    if req.steps is not None:
        lesson.steps = list(req.steps)
    if req.ingredients is not None:
        lesson.ingredients = _ingredients(req.ingredients)
    db.add(lesson)
    db.commit()
    return CreatedResponse(id=lesson.id)


@instructor_routes.delete(
    "/instructor/courses/{course_id}/modules/{module_id}/lessons/{lesson_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_lesson(
    course_id: str,
    module_id: str,
    lesson_id: str,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> Response:
    module, lesson = _owned_lesson(db, course_id, module_id, lesson_id, current_user)
    _purge_lesson_refs(db, [lesson.id])
    module.lessons.remove(lesson)
    db.commit()
    logger.info("lesson deleted id=%s module_id=%s by user_id=%s", lesson_id, module_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _build_questions(questions: list[QuestionInput]) -> list[Question]:
    built = []
    for q_index, q in enumerate(questions, start=1):
        kind = q.type.upper()
        if kind not in QUESTION_TYPES:
            raise GurmaniaError(f"Invalid question type: {q.type}")
        correct = sum(1 for o in q.options if o.is_correct)
        if correct == 0:
            raise GurmaniaError("Every question needs at least one correct option")
        if kind == "SINGLE" and correct != 1:
            raise GurmaniaError("Single choice questions need exactly one correct option")
        built.append(
            Question(
                id=str(uuid4()),
                text=q.text,
                type=kind,
                order_index=q_index,
                options=[
                    QuestionOption(id=str(uuid4()), text=o.text, is_correct=o.is_correct, order_index=o_index)
                    for o_index, o in enumerate(q.options, start=1)
                ],
            )
        )
    return built


def _replace_questions(db: Session, quiz: Quiz, questions: Optional[list[Question]]) -> None:
    if questions is None:
        return
    if quiz.questions:
        quiz.questions = []
        db.flush()
    quiz.questions = questions


def quiz_detail(quiz: Quiz) -> QuizDetailResponse:
    return QuizDetailResponse(
        id=quiz.id,
        lesson_id=quiz.lesson_id,
        title=quiz.title,
        passing_score=quiz.passing_score,
        randomized=bool(quiz.randomized),
        questions=[
            QuestionDetail(
                id=q.id,
                text=q.text,
                type=q.type,
                options=[OptionDetail(id=o.id, text=o.text, is_correct=bool(o.is_correct)) for o in q.options],
            )
            for q in quiz.questions
        ],
    )


@instructor_routes.put("/instructor/lessons/{lesson_id}/quiz", response_model=CreatedResponse)
async def put_lesson_quiz(
    lesson_id: str,
    req: QuizInput,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> CreatedResponse:
    """Attach a quiz to a lesson or replace its questions. Past submissions are kept."""
    lesson = db.query(Lesson).filter(Lesson.id == lesson_id).first()
    if lesson is None:
        raise NotFoundError("Lesson not found")
    _owned_course(db, lesson.module.course_id, current_user)

    questions = _build_questions(req.questions)
    quiz = lesson.quiz
    if quiz is None:
        quiz = Quiz(id=str(uuid4()), lesson_id=lesson.id)
    quiz.title = req.title
    quiz.passing_score = req.passing_score
    quiz.randomized = req.randomized
    _replace_questions(db, quiz, questions)
    db.add(quiz)
    db.commit()
    logger.info("quiz saved id=%s lesson_id=%s questions=%s", quiz.id, lesson.id, len(questions))
    return CreatedResponse(id=quiz.id)


@instructor_routes.get("/instructor/quizzes/{quiz_id}", response_model=QuizDetailResponse)
async def get_quiz_for_editing(
    quiz_id: str,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> QuizDetailResponse:
    return quiz_detail(_owned_quiz(db, quiz_id, current_user))


@instructor_routes.patch("/instructor/quizzes/{quiz_id}", response_model=QuizDetailResponse)
async def update_quiz(
    quiz_id: str,
    req: UpdateQuizRequest,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> QuizDetailResponse:
    """Partial update. An explicit ``passing_score: null`` makes any submission pass."""
    quiz = _owned_quiz(db, quiz_id, current_user)
    questions = _build_questions(req.questions) if req.questions is not None else None
    if req.title is not None:
        quiz.title = req.title
    if "passing_score" in req.model_fields_set:
        quiz.passing_score = req.passing_score
    if req.randomized is not None:
        quiz.randomized = req.randomized
    _replace_questions(db, quiz, questions)
    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    return quiz_detail(quiz)


@instructor_routes.delete("/instructor/quizzes/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quiz(
    quiz_id: str,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> Response:
    """Removes the gate: the lesson becomes a plain lesson and its submissions go with the quiz."""
    quiz = _owned_quiz(db, quiz_id, current_user)
    lesson_id = quiz.lesson_id
    db.delete(quiz)
    db.commit()
    logger.info("quiz deleted id=%s lesson_id=%s by user_id=%s", quiz_id, lesson_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
