"""
Inkpost API: Operator Command Line
====================================

What:  The `inkpost` console script.
How:   argparse subcommands. The database commands run one coroutine with
       asyncio.run() inside their own transaction; queue-work hands the
       process over to the Celery worker.

Commands:
    inkpost send-welcome-email --id 42
    inkpost send-welcome-email --email ada@example.com
        Queues a welcome email. Prints
        "Welcome email job dispatched for user ID 42 (ada@example.com)."
        On a missing/duplicate selector, an unknown user or an unreachable
        broker, prints the error on stderr and exits with status 1.

    inkpost queue-work [--queue NAME] [--concurrency N]
        Starts a Celery worker consuming the welcome-email queue until
        interrupted.

    inkpost create-category NAME
        Adds a category and prints its id.
"""

import argparse
import asyncio
import logging
import sys
from typing import Awaitable, Callable, List, Optional

from app.config import settings
from app.database import dispose_engine, session_scope
from app.exceptions import InkpostError
from app.main import setup_logging
from app.services.category_service import category_service
from app.services.welcome_email import dispatch_welcome_email
from app.worker import celery_app

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


async def send_welcome_email_command(user_id: Optional[str], email: Optional[str]) -> str:
    async with session_scope() as db:
        user = await dispatch_welcome_email(db, user_id=user_id, email=email)
        return f"Welcome email job dispatched for user ID {user.id} ({user.email})."


async def create_category_command(name: str) -> str:
    async with session_scope() as db:
        category = await category_service.create_category(db, name)
        return f"Category {category.id} created: {category.name}"


def queue_work_command(queue: str, concurrency: Optional[int], log_level: str) -> None:
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        raise InkpostError(str(e))

    argv = ["worker", f"--loglevel={log_level}", "-Q", queue]
    if concurrency:
        argv.append(f"--concurrency={concurrency}")
    logger.info("Starting Celery worker on queue %s", queue)
    celery_app.worker_main(argv)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="inkpost", description="Inkpost API operator commands")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL for this command (DEBUG, INFO, WARNING, ...)",
    )
    subcommands = parser.add_subparsers(dest="command", metavar="COMMAND")
    subcommands.required = True

    welcome = subcommands.add_parser(
        "send-welcome-email",
        help="Queue the welcome email for a user",
    )
    # Kept as strings: an id like "abc" is reported as "No user found with ID abc."
    welcome.add_argument("--id", dest="user_id", default=None, help="The ID of the user")
    welcome.add_argument("--email", default=None, help="The email of the user")

    worker = subcommands.add_parser("queue-work", help="Run the Celery worker")
    worker.add_argument("--queue", default=settings.queue_name, help="Queue to consume")
    worker.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Worker processes (default: one per CPU)",
    )

    category = subcommands.add_parser("create-category", help="Create a post category")
    category.add_argument("name", help="Category name")

    return parser


def _command_for(args: argparse.Namespace) -> Callable[[], Awaitable[str]]:
    if args.command == "send-welcome-email":
        return lambda: send_welcome_email_command(args.user_id, args.email)
    return lambda: create_category_command(args.name)


async def _run(command: Callable[[], Awaitable[str]]) -> str:
    try:
        return await command()
    finally:
        await dispose_engine()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    log_level = args.log_level.upper() if args.log_level else None
    setup_logging(log_level)

    try:
        if args.command == "queue-work":
            # The worker owns the process until it is stopped
            queue_work_command(args.queue, args.concurrency, log_level or settings.log_level)
            return EXIT_OK
        output = asyncio.run(_run(_command_for(args)))
    except InkpostError as e:
        logger.debug("Command %s failed: %r", args.command, e.context)
        print(e.message, file=sys.stderr)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        return EXIT_FAILURE

    print(output)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
