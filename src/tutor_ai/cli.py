from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import NoReturn, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from tutor_ai.config import load_settings
from tutor_ai.errors import GenerationFailed, PersistenceError
from tutor_ai.learning import Difficulty, LessonContent, ProgressGateway, QuizResult, summarize_progress
from tutor_ai.learning.quiz import quiz_to_markdown
from tutor_ai.session import TutorSession
from tutor_ai.system import TutorSystem

app = typer.Typer(help="Generate lessons and quizzes on any topic and track quiz progress.")
console = Console()

load_dotenv(override=False)


def _load_system(config: Optional[Path], api_key: Optional[str]) -> TutorSystem:
    """Instantiate `TutorSystem` with optional config overrides and API key."""
    return TutorSystem.from_config(config, api_key=api_key)


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]{message}[/bold red]")
    raise typer.Exit(code=1)


def _render_lesson(lesson: LessonContent) -> None:
    console.print(f"[bold]{lesson.title}[/bold] ({lesson.difficulty.value})\n")
    console.print(Markdown(lesson.content))
    if lesson.key_points:
        console.print("\n[bold]Key points[/bold]")
        for point in lesson.key_points:
            console.print(f"- {point}")
    if lesson.examples:
        console.print("\n[bold]Examples[/bold]")
        for example in lesson.examples:
            console.print(Markdown(example))


@app.command()
def lesson(
    topic: str = typer.Argument(..., help="What to learn about."),
    difficulty: Difficulty = typer.Option(Difficulty.BEGINNER, help="Lesson level."),
    level: Optional[str] = typer.Option(None, help="Short description of the learner's background."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
    api_key: Optional[str] = typer.Option(None, help="OpenAI API key."),
):
    """Generate and print a lesson."""
    system = _load_system(config, api_key)
    session = TutorSession()

    async def run() -> LessonContent:
        try:
            return await system.start_lesson(session, topic, difficulty, user_level=level)
        finally:
            await system.close()

    try:
        generated = asyncio.run(run())
    except GenerationFailed as exc:
        _fail(str(exc))
    _render_lesson(generated)


@app.command()
def quiz(
    topic: str = typer.Argument(..., help="Topic to study and be quizzed on."),
    difficulty: Difficulty = typer.Option(Difficulty.BEGINNER, help="Lesson and quiz level."),
    user_id: Optional[str] = typer.Option(None, help="Save progress under this user id."),
    explain: bool = typer.Option(True, help="Offer walkthroughs for missed questions."),
    export: Optional[Path] = typer.Option(None, help="Write the quiz with answers to this markdown file."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
    api_key: Optional[str] = typer.Option(None, help="OpenAI API key."),
):
    """
    Run an interactive lesson and quiz.

    Generates a lesson, then a quiz from its content, collects an answer per question,
    reports the score, saves progress when a user id and store are available, and
    optionally generates a walkthrough for each missed question. `--export` writes the
    quiz and its answer key as markdown.
    """
    system = _load_system(config, api_key)
    session = system.sessions.load(user_id) if user_id else TutorSession()

    async def run() -> QuizResult:
        try:
            generated = await system.start_lesson(session, topic, difficulty)
            _render_lesson(generated)
            console.print("\n[dim]Generating quiz...[/dim]")
            questions = await system.start_quiz(session)

            started = time.monotonic()
            for idx, question in enumerate(questions):
                console.print(f"\n[bold]Question {idx + 1}[/bold]: {question.question}")
                for choice_idx, option in enumerate(question.options):
                    console.print(f"  {chr(65 + choice_idx)}. {option}")
                choice = typer.prompt("Your answer (A-D)").strip().upper()
                selected = ord(choice[0]) - 65 if choice and "A" <= choice[0] <= "D" else -1
                session.record_answer(idx, selected)

            result = system.submit_quiz(session, int(time.monotonic() - started))
            console.print(
                f"\n[bold]You scored {result.score}%[/bold] ({result.correct_count}/{result.total_questions})"
            )
            if export:
                export.parent.mkdir(parents=True, exist_ok=True)
                export.write_text(quiz_to_markdown(topic, questions), encoding="utf-8")
                console.print(f"[dim]Quiz saved to {export}[/dim]")
            if explain:
                for idx in result.incorrect:
                    steps = await system.explain_answer(session, idx)
                    console.print(f"\n[bold]Review of question {idx + 1}[/bold]")
                    for step in steps:
                        console.print(f"[bold]{step.title}[/bold]")
                        console.print(Markdown(step.content))
                        console.print(f"[dim]{step.explanation}[/dim]")
            return result
        finally:
            await system.close()

    try:
        asyncio.run(run())
    except (GenerationFailed, PersistenceError) as exc:
        _fail(str(exc))
    finally:
        if user_id:
            system.sessions.save(session)


@app.command()
def progress(
    user_id: str = typer.Argument(..., help="Learner id whose progress to show."),
    topic: Optional[str] = typer.Option(None, help="Only show lessons whose id contains this text."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """Show stored quiz results and summary statistics."""
    settings = load_settings(config)
    gateway = ProgressGateway.from_config(settings.supabase)
    try:
        if topic:
            records = gateway.get_topic_progress(user_id, topic)
        else:
            records = gateway.get_user_progress(user_id)
    except PersistenceError as exc:
        _fail(str(exc))

    stats = summarize_progress(records)
    console.print(
        f"[bold]Lessons:[/bold] {stats.total_lessons}  "
        f"[bold]Average score:[/bold] {stats.average_score}%  "
        f"[bold]Time:[/bold] {stats.total_time_minutes}m  "
        f"[bold]Streak:[/bold] {stats.streak_days} day(s)"
    )
    table = Table("Lesson", "Score", "Time", "Completed")
    for record in records:
        table.add_row(
            record.lesson_id,
            f"{record.quiz_score}%",
            f"{round(record.time_spent / 60)}m",
            record.completed_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


if __name__ == "__main__":
    app()
