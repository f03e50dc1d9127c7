from __future__ import annotations

import re
from typing import List, Optional, Sequence, Union

from tutor_ai.learning.models import Difficulty, QuizQuestion, QuizResult

UNANSWERED = -1


def score_quiz(questions: Sequence[QuizQuestion], answers: Sequence[Optional[int]]) -> QuizResult:
    """
    Score submitted option indices against the answer key.

    `None`, `-1` and out-of-range indices count as unanswered (and therefore wrong).
    The score is a rounded percentage.
    """
    if not questions:
        raise ValueError("Cannot score an empty quiz.")
    if len(answers) != len(questions):
        raise ValueError("Answer count must match number of quiz questions.")

    correct = 0
    incorrect: List[int] = []
    for idx, (question, selected) in enumerate(zip(questions, answers)):
        if selected is not None and 0 <= selected < len(question.options) and selected == question.correct_answer:
            correct += 1
        else:
            incorrect.append(idx)

    total = len(questions)
    return QuizResult(
        total_questions=total,
        correct_count=correct,
        score=round(correct / total * 100),
        incorrect=incorrect,
    )


def answer_text(question: QuizQuestion, selected: Optional[int]) -> str:
    """Human-readable label for a chosen option, used when asking for a walkthrough."""
    if selected is None or not 0 <= selected < len(question.options):
        return "No answer"
    return question.options[selected]


def lesson_id_for(topic: str, difficulty: Union[str, Difficulty]) -> str:
    """Stable lesson identifier so progress can be filtered by topic substring."""
    level = difficulty.value if isinstance(difficulty, Difficulty) else str(difficulty)
    slug = re.sub(r"[^a-z0-9]+", "-", topic.lower()).strip("-")
    return f"{slug or 'lesson'}-{level}"


def quiz_to_markdown(topic: str, questions: Sequence[QuizQuestion]) -> str:
    """Convert a generated quiz to markdown for export."""
    lines: List[str] = [f"# {topic} - {len(questions)} Question{'s' if len(questions) != 1 else ''}", ""]
    for idx, question in enumerate(questions):
        lines.append(f"## Question {idx + 1}")
        lines.append(question.question)
        lines.append("")
        for choice_idx, choice in enumerate(question.options):
            lines.append(f"{chr(65 + choice_idx)}. {choice}")
        lines.append("")
        correct_letter = chr(65 + question.correct_answer)
        lines.append(f"**Answer: {correct_letter}. {question.options[question.correct_answer]}**")
        lines.append("")
        if question.explanation:
            lines.append(f"**Explanation:** {question.explanation}")
            lines.append("")
        lines.append("---")
        lines.append("")
    return "\n".join(lines)
