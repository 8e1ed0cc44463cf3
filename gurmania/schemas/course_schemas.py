"""
Course, module and lesson schemas (catalogue, detail and instructor authoring).
"""

from pydantic import BaseModel, Field
from typing import Optional


class CourseResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    difficulty: str
    published: bool
    instructor_id: int
    instructor_name: Optional[str] = None
    module_count: int = 0
    lesson_count: int = 0
    created_at: str


class CourseListResponse(BaseModel):
    courses: list[CourseResponse]


class LessonSummary(BaseModel):
    id: str
    title: str
    order_index: int
    duration_min: Optional[int] = None
    has_quiz: bool = False
    completed: bool = False


class ModuleResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    order_index: int
    locked: bool
    lessons: list[LessonSummary]


class CourseDetailResponse(BaseModel):
    course: CourseResponse
    modules: list[ModuleResponse]
    is_enrolled: bool
    completed_lessons: list[str]
    progress_percentage: float
    locked_modules: list[str]


class EnrollResponse(BaseModel):
    message: str
    enrolled: bool


# ----- instructor authoring -----

class CreateCourseRequest(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    difficulty: str = "EASY"


class UpdateCourseRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    difficulty: Optional[str] = None
    published: Optional[bool] = None


class CreateModuleRequest(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None


class IngredientInput(BaseModel):
    name: str
    quantity: Optional[str] = None
    unit: Optional[str] = None
    optional: bool = False


class CreateLessonRequest(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    video_url: Optional[str] = None
    steps: list[str] = []
    duration_min: Optional[int] = None
    ingredients: list[IngredientInput] = []


class OptionInput(BaseModel):
    text: str
    is_correct: bool = False


class QuestionInput(BaseModel):
    text: str
    type: str = "SINGLE"
    options: list[OptionInput] = Field(min_length=2)


class QuizInput(BaseModel):
    title: str
    passing_score: Optional[int] = Field(default=None, ge=0, le=100)
    randomized: bool = False
    questions: list[QuestionInput] = Field(min_length=1)


class CreatedResponse(BaseModel):
    id: str


class UpdateModuleRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


class UpdateLessonRequest(BaseModel):
    """Fields left out stay as they are; ``ingredients`` replaces the whole list."""
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    video_url: Optional[str] = None
    steps: Optional[list[str]] = None
    duration_min: Optional[int] = None
    ingredients: Optional[list[IngredientInput]] = None


class ReorderRequest(BaseModel):
    """Every sibling id exactly once, in the new order."""
    ids: list[str] = Field(min_length=1)


class UpdateQuizRequest(BaseModel):
    title: Optional[str] = None
    passing_score: Optional[int] = Field(default=None, ge=0, le=100)
    randomized: Optional[bool] = None
    questions: Optional[list[QuestionInput]] = Field(default=None, min_length=1)


class OptionDetail(BaseModel):
    id: str
    text: str
    is_correct: bool


class QuestionDetail(BaseModel):
    id: str
    text: str
    type: str
    options: list[OptionDetail]


class QuizDetailResponse(BaseModel):
    """Instructor view of a quiz, correctness included."""
    id: str
    lesson_id: str
    title: str
    passing_score: Optional[int] = None
    randomized: bool
    questions: list[QuestionDetail]
