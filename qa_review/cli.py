"""Command line entry point: review one message and print the result as JSON."""

import argparse
import json
import sys
from collections.abc import Sequence

from dotenv import load_dotenv

from qa_review.config.logging_config import get_logger, setup_logging
from qa_review.config.settings import get_settings
from qa_review.domain.exceptions import QAReviewFailedError
from qa_review.domain.models import LinkValidationResult, TaskContext
from qa_review.use_cases.perform_qa_review import build_engine

logger = get_logger(__name__)


class SkippedLinkValidator:
    """Link validator used with --no-links: reports nothing, probes nothing."""

    def validate_links(self, urls: Sequence[str]) -> list[LinkValidationResult]:
        return []


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Review a support message against the QA rules"
    )
    parser.add_argument(
        "message",
        nargs="?",
        default=None,
        help="Message text (read from stdin when omitted)",
    )
    parser.add_argument("--task-title", default=None, help="Task title")
    parser.add_argument("--task-status", default=None, help="Task status")
    parser.add_argument("--task-priority", default=None, help="Task priority")
    parser.add_argument("--requester", default=None, help="Requester name")
    parser.add_argument(
        "--no-links",
        action="store_true",
        help="Skip probing links found in the message",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON logs",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level, including HTTP and SDK loggers",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run a single review.

    Returns:
        Process exit code (0 on success, 1 on a failed review, 2 on bad input)
    """
    load_dotenv()
    args = build_parser().parse_args(argv)

    settings = get_settings()
    setup_logging(
        log_level="DEBUG" if args.verbose else settings.log_level,
        json_logs=args.json_logs or settings.json_logs,
        verbose=args.verbose,
        stream=sys.stderr,
    )

    message = args.message if args.message is not None else sys.stdin.read()
    message = message.strip()
    if not message:
        print("Error: message is empty", file=sys.stderr)
        return 2

    task_fields = {
        "title": args.task_title,
        "status": args.task_status,
        "priority": args.task_priority,
        "requester_name": args.requester,
    }
    task_context = TaskContext.model_validate(
        {key: value for key, value in task_fields.items() if value is not None}
    )

    engine = build_engine(
        settings,
        link_validator=SkippedLinkValidator() if args.no_links else None,
    )

    try:
        result = engine.review(message, task_context)
    except QAReviewFailedError as e:
        logger.error("cli_review_failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result.to_payload(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
