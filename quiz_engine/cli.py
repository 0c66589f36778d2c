import argparse
import asyncio
import json
import sys
from pathlib import Path

from quiz_engine.config import LOG_LEVEL, SERVER_HOST, SERVER_PORT
from quiz_engine.database import init_db
from quiz_engine.errors import QuizEngineError
from quiz_engine.logging_setup import setup_console_logging
from quiz_engine.models import QuizCreate
from quiz_engine.models.quiz import QuestionDraft, QuizDefinition
from quiz_engine.services.attempt_service import AttemptLifecycleManager, summarize_scores
from quiz_engine.services.identity import Identity, StaticIdentityProvider
from quiz_engine.services.quiz_builder import build_quiz
from quiz_engine.services.sql_store import open_store
from quiz_engine.utils import format_remaining


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="quiz-engine",
        description="Author, take and score timed quizzes",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=SERVER_HOST, help="Bind address")
    serve.add_argument("--port", type=int, default=SERVER_PORT, help="Bind port")

    commands.add_parser("init-db", help="Create the database tables")

    import_quiz = commands.add_parser("import-quiz", help="Create a quiz from a JSON file")
    import_quiz.add_argument("file", type=Path, help="Path to the quiz JSON file")
    import_quiz.add_argument("--author", required=True, help="Author user id")

    scores = commands.add_parser("scores", help="Show a user's completed attempts")
    scores.add_argument("user_id", help="User id")

    return parser.parse_args(argv)


def _manager(identity: Identity | None) -> AttemptLifecycleManager:
    return AttemptLifecycleManager(open_store(), StaticIdentityProvider(identity))


def load_quiz_file(path: Path) -> QuizCreate:
    """Read an authoring payload; same shape as the POST /api/quizzes body."""
    return QuizCreate(**json.loads(path.read_text(encoding="utf-8")))


async def import_quiz(path: Path, author_id: str) -> QuizDefinition:
    payload = load_quiz_file(path)
    questions = [
        QuestionDraft(
            text=item.question_text,
            type=item.question_type,
            options=list(item.options),
            correct_answer=item.correct_answer,
            explanation=item.explanation,
            points=item.points,
        )
        for item in payload.questions
    ]
    return await build_quiz(
        _manager(Identity(author_id)),
        title=payload.title,
        subject=payload.subject,
        questions=questions,
        description=payload.description,
        time_limit_minutes=payload.time_limit,
    )


async def print_scores(user_id: str) -> None:
    scores = await _manager(None).list_user_scores(user_id)
    if not scores:
        print(f"No completed attempts for {user_id}")
        return
    for item in scores:
        taken = (
            format_remaining(item.time_taken_seconds)
            if item.time_taken_seconds is not None
            else "-"
        )
        print(
            f"{item.completed_at:%Y-%m-%d %H:%M}  {item.quiz_title or item.quiz_id}  "
            f"{item.score}/{item.max_score} ({item.percentage}%)  {taken}"
        )
    summary = summarize_scores(scores)
    print(
        f"{summary.attempts_count} attempts, average {summary.average_percentage}%, "
        f"best {summary.best_percentage}%"
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_console_logging(LOG_LEVEL)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("quiz_engine.app:app", host=args.host, port=args.port)
        return 0

    init_db()
    if args.command == "init-db":
        print("Database ready")
        return 0

    try:
        if args.command == "import-quiz":
            quiz = asyncio.run(import_quiz(args.file, args.author))
            print(f"Imported quiz {quiz.id} ({len(quiz.questions)} questions)")
        else:
            asyncio.run(print_scores(args.user_id))
    except QuizEngineError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
