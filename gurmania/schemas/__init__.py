"""
API schemas package. Import from submodules or from this package.

Example:
    from gurmania.schemas import CourseResponse, QuizSubmissionResponse
    from gurmania.schemas.course_schemas import CourseResponse
"""

from gurmania.schemas.auth_schemas import (
    AuthTokenPayload,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RegisterRequest,
    RegisterResponse,
)
from gurmania.schemas.user_schemas import UserResponse
from gurmania.schemas.course_schemas import (
    CourseResponse,
    CourseListResponse,
    LessonSummary,
    ModuleResponse,
    CourseDetailResponse,
    EnrollResponse,
    CreateCourseRequest,
    UpdateCourseRequest,
    CreateModuleRequest,
    IngredientInput,
    CreateLessonRequest,
    OptionInput,
    QuestionInput,
    QuizInput,
    CreatedResponse,
    UpdateModuleRequest,
    UpdateLessonRequest,
    ReorderRequest,
    UpdateQuizRequest,
    OptionDetail,
    QuestionDetail,
    QuizDetailResponse,
)
from gurmania.schemas.lesson_schemas import (
    IngredientResponse,
    LessonLink,
    LessonNavigation,
    QuizSummary,
    LessonDetailResponse,
    UpdateProgressRequest,
    CompletionOutcome,
    ProgressUpdateResponse,
    CourseProgressResponse,
)
from gurmania.schemas.quiz_schemas import (
    QuizOptionResponse,
    QuizQuestionResponse,
    QuizResponse,
    QuizSubmissionResponse,
    QuizSubmitRequest,
)
from gurmania.schemas.certificate_schemas import (
    CertificateResponse,
    ReviewRequest,
    ReviewResponse,
    ReviewListResponse,
    ReviewStatusRequest,
    CourseReviews,
    InstructorReviewsResponse,
)
from gurmania.schemas.workshop_schemas import (
    LessonRef,
    CreateWorkshopRequest,
    UpdateWorkshopRequest,
    WorkshopResponse,
    WorkshopListResponse,
    ReservationResponse,
    StartWorkshopResponse,
    JoinWorkshopResponse,
    JitsiTokenResponse,
)

__all__ = [
    # auth
    "AuthTokenPayload",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "RegisterRequest",
    "RegisterResponse",
    # user
    "UserResponse",
    # course
    "CourseResponse",
    "CourseListResponse",
    "LessonSummary",
    "ModuleResponse",
    "CourseDetailResponse",
    "EnrollResponse",
    "CreateCourseRequest",
    "UpdateCourseRequest",
    "CreateModuleRequest",
    "IngredientInput",
    "CreateLessonRequest",
    "OptionInput",
    "QuestionInput",
    "QuizInput",
    "CreatedResponse",
    "UpdateModuleRequest",
    "UpdateLessonRequest",
    "ReorderRequest",
    "UpdateQuizRequest",
    "OptionDetail",
    "QuestionDetail",
    "QuizDetailResponse",
    # lesson / progress
    "IngredientResponse",
    "LessonLink",
    "LessonNavigation",
    "QuizSummary",
    "LessonDetailResponse",
    "UpdateProgressRequest",
    "CompletionOutcome",
    "ProgressUpdateResponse",
    "CourseProgressResponse",
    # quiz
    "QuizOptionResponse",
    "QuizQuestionResponse",
    "QuizResponse",
    "QuizSubmissionResponse",
    "QuizSubmitRequest",
    # certificate / review
    "CertificateResponse",
    "ReviewRequest",
    "ReviewResponse",
    "ReviewListResponse",
    "ReviewStatusRequest",
    "CourseReviews",
    "InstructorReviewsResponse",
    # workshop
    "LessonRef",
    "CreateWorkshopRequest",
    "UpdateWorkshopRequest",
    "WorkshopResponse",
    "WorkshopListResponse",
    "ReservationResponse",
    "StartWorkshopResponse",
    "JoinWorkshopResponse",
    "JitsiTokenResponse",
]
