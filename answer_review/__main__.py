#!/usr/bin/env python3
"""
Command-line entry point: python -m answer_review

Feeds a typed answer through the capture pipeline as if it had been spoken,
prints the evaluation and optionally saves it.
"""

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from answer_review.capture.speech_engine import ScriptedSpeechEngine
from answer_review.config.settings import DEFAULT_PIPELINE_CONFIG_PATH, load_pipeline_config
from answer_review.core.errors import AnswerReviewError, ConfigError
from answer_review.core.events import EventBus, EventLogger, NotificationLevel, PipelineEvent
from answer_review.core.models import Question, SaveOutcome
from answer_review.factory import build_controller
from answer_review.llm.config import DEFAULT_MODEL_CONFIG_PATH
from answer_review.llm.exceptions import LLMConfigError
from answer_review.utils.logger import setup_logger

LEVEL_ICONS = {
    NotificationLevel.INFO: "ℹ️ ",
    NotificationLevel.SUCCESS: "✅",
    NotificationLevel.ERROR: "❌",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="answer_review",
        description="Evaluate an interview answer against the expected answer",
    )
    parser.add_argument("--question", required=True, help="Interview question")
    parser.add_argument("--reference", required=True, help="Expected (reference) answer")
    parser.add_argument("--answer", required=True, help="Your answer, as it would be transcribed")
    parser.add_argument("--user-id", default="local-user", help="User the answer belongs to")
    parser.add_argument("--interview-id", default="local-interview", help="Interview session id")
    parser.add_argument("--save", action="store_true", help="Save the evaluated answer")
    parser.add_argument("--database-url", default=None, help="Override storage.database_url")
    parser.add_argument("--config", default=str(DEFAULT_PIPELINE_CONFIG_PATH), help="Pipeline config YAML")
    parser.add_argument("--model-config", default=str(DEFAULT_MODEL_CONFIG_PATH), help="Model config YAML")
    parser.add_argument("--quiet", action="store_true", help="Do not print pipeline events")
    return parser


def print_event(event: PipelineEvent) -> None:
    print(f"{LEVEL_ICONS[event.level]} {event.title}: {event.description}")


async def run(args: argparse.Namespace) -> int:
    pipeline_config = load_pipeline_config(args.config)
    if args.database_url:
        pipeline_config.storage.database_url = args.database_url

    event_bus = EventBus()
    event_bus.subscribe_all(EventLogger().handle_event)
    if not args.quiet:
        event_bus.subscribe_all(print_event)

    engine = ScriptedSpeechEngine.from_text(args.answer)
    controller = build_controller(
        question=Question(prompt=args.question, reference_answer=args.reference),
        user_id=args.user_id,
        interview_id=args.interview_id,
        engine=engine,
        pipeline_config=pipeline_config,
        event_bus=event_bus,
        model_config_path=args.model_config,
    )

    try:
        await controller.toggle_recording()
        await engine.replay()
        await controller.toggle_recording()

        result = controller.ai_response
        print(f"\nYour answer: {controller.user_answer}")
        print(f"Rating: {result.rating}/10 ({result.band})")
        print(f"Feedback: {result.feedback}")

        if args.save:
            outcome = await controller.save()
            if outcome is SaveOutcome.ALREADY_ANSWERED:
                print("Answer was not saved: this question is already answered.")
    except AnswerReviewError as e:
        print(f"❌ {type(e).__name__}: {e}", file=sys.stderr)
        return 1
    finally:
        await controller.close()

    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line interface for answer evaluation."""
    load_dotenv()
    args = build_parser().parse_args(list(argv) if argv is not None else None)
    setup_logger("answer_review", log_to_console=False)

    try:
        return asyncio.run(run(args))
    except (ConfigError, LLMConfigError) as e:
        print(f"❌ Configuration Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
