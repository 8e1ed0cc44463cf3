"""
Unit test fixtures. Plain stand-in objects; no app, no HTTP.
"""
from types import SimpleNamespace

import pytest


def make_module(module_id: str, *lessons):
    return SimpleNamespace(id=module_id, lessons=list(lessons))


def make_lesson(lesson_id: str, passing_score=None, has_quiz: bool = False):
    quiz = SimpleNamespace(id=f"quiz-{lesson_id}", passing_score=passing_score) if has_quiz else None
    return SimpleNamespace(id=lesson_id, quiz=quiz)


@pytest.fixture
def three_module_course():
    """m1: l1 (quiz, pass 70) + l2 plain; m2: l3 (quiz, pass 50); m3: l4 plain."""
    return [
        make_module("m1", make_lesson("l1", 70, has_quiz=True), make_lesson("l2")),
        make_module("m2", make_lesson("l3", 50, has_quiz=True)),
        make_module("m3", make_lesson("l4")),
    ]


@pytest.fixture
def make():
    return SimpleNamespace(module=make_module, lesson=make_lesson)
