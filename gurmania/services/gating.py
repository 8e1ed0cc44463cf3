"""
Progressive unlocking of course modules.

Pure functions over rows that were already fetched: an ordered list of modules
(each with ``.id`` and ``.lessons``; each lesson with ``.id`` and an optional
``.quiz``) and the learner's state. Nothing here touches the database.

Policy:
- the first module is always open;
- a module is locked while any lesson of the module before it carries a quiz
  the learner has not passed, and a locked module locks everything after it;
- lessons without a quiz never gate the next module;
- a learner with no progress and no submissions at all sees every module after
  the first as locked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from gurmania.utils.errors import LessonLockedError, NotFoundError


def quiz_passed(passing_score: Optional[int], score: Optional[int]) -> bool:
    """A submission passes when it meets the quiz threshold; a quiz without one accepts any submission."""
    if score is None:
        return False
    if passing_score is None:
        return True
    return score >= passing_score


@dataclass(frozen=True)
class LearnerState:
    completed_lesson_ids: frozenset[str] = field(default_factory=frozenset)
    passed_quiz_lesson_ids: frozenset[str] = field(default_factory=frozenset)
    has_activity: bool = False  # any Progress or QuizSubmission row for the course

    @classmethod
    def build(
        cls,
        completed: Iterable[str] = (),
        passed: Iterable[str] = (),
        has_activity: Optional[bool] = None,
    ) -> "LearnerState":
        completed_ids = frozenset(completed)
        passed_ids = frozenset(passed)
        if has_activity is None:
            has_activity = bool(completed_ids or passed_ids)
        return cls(completed_ids, passed_ids, has_activity)


def _module_gate_open(module: Any, state: LearnerState) -> bool:
    """True when every quiz in ``module`` has been passed."""
    for lesson in module.lessons:
        if getattr(lesson, "quiz", None) is not None and lesson.id not in state.passed_quiz_lesson_ids:
            return False
    return True


def locked_module_ids(modules: Sequence[Any], state: LearnerState) -> set[str]:
    locked: set[str] = set()
    if not modules:
        return locked

    if not state.has_activity:
        return {m.id for m in modules[1:]}

    blocked = False
    for previous, module in zip(modules, modules[1:]):
        if blocked or not _module_gate_open(previous, state):
            blocked = True
            locked.add(module.id)
    return locked


class GatingEvaluator:
    """Answers lock questions for one learner on one course tree."""

    def __init__(self, modules: Sequence[Any], state: LearnerState):
        self.modules = list(modules)
        self.state = state
        self._locked = locked_module_ids(self.modules, state)
        self._module_by_lesson = {lesson.id: m for m in self.modules for lesson in m.lessons}

    def locked_module_ids(self) -> set[str]:
        return set(self._locked)

    def is_module_locked(self, module_id: str) -> bool:
        return module_id in self._locked

    def is_lesson_locked(self, lesson_id: str) -> bool:
        module = self._module_by_lesson.get(lesson_id)
        if module is None:
            raise NotFoundError("Lesson not found in course")
        return module.id in self._locked

    def ensure_lesson_accessible(self, lesson_id: str) -> None:
        if self.is_lesson_locked(lesson_id):
            raise LessonLockedError("Pass every quiz in the previous modules before opening this lesson")


def lesson_completed(lesson: Any, progress_completed: bool, latest_score: Optional[int]) -> bool:
    """
    Completion rule for a single lesson.

    Quiz lessons are complete only while the newest submission passes; the stored
    progress flag is ignored for them. Other lessons follow the explicit flag.
    """
    quiz = getattr(lesson, "quiz", None)
    if quiz is None:
        return bool(progress_completed)
    return quiz_passed(quiz.passing_score, latest_score)
