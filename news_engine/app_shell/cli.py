import argparse
import logging
import sys
import time
from pathlib import Path

from news_engine.app_shell.config import (
    configure_logging,
    resolve_rules_path,
    validate_ops_rules,
)
from news_engine.context import ServiceContext
from news_engine.rules.loader import load_rules

logger = logging.getLogger("cli")

DB_PATH = "news.db"
MIGRATIONS_DIR = "migrations"


def get_context(args: argparse.Namespace) -> ServiceContext:
    rules_path = resolve_rules_path(args.rules)
    if not rules_path.exists():
        logger.error(f"Rules file {rules_path} not found.")
        sys.exit(1)

    rules = load_rules(rules_path)
    configure_logging(rules)
    validate_ops_rules(rules)

    migrations = args.migrations if Path(args.migrations).is_dir() else None
    return ServiceContext.create(rules, db_path=args.db, migrations_dir=migrations)


def handle_run_due(ctx: ServiceContext, args: argparse.Namespace) -> None:
    report = ctx.job.run_due()
    print(f"Posted {len(report.posted)} articles.")
    print(f"Unpublished {len(report.unpublished)} articles.")
    for failure in report.failed:
        print(f"Failed to {failure.action} {failure.article_id}: {failure.error}")
    if report.failed:
        sys.exit(1)


def handle_poll(ctx: ServiceContext, args: argparse.Namespace) -> None:
    scheduler = ctx.job_scheduler()
    scheduler.start()
    try:
        while scheduler.is_running:
            time.sleep(1.0)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        scheduler.stop()
        ctx.shutdown()


def handle_check_rules(ctx: ServiceContext, args: argparse.Namespace) -> None:
    rules = ctx.rules
    print(f"Rules {rules.project.slug} v{rules.project.rules_version} are valid.")
    for name, queue in sorted(rules.deletion.queues.items()):
        print(f"  delete queue {name}: {queue.pool_size} workers, {queue.default_delay_seconds}s")


def main() -> None:
    parser = argparse.ArgumentParser(description="News lifecycle engine CLI")
    parser.add_argument("--rules", help="Path to rules.yaml")
    parser.add_argument("--db", default=DB_PATH, help="SQLite property store path")
    parser.add_argument("--migrations", default=MIGRATIONS_DIR, help="Migrations directory")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # run-due
    subparsers.add_parser("run-due", help="Post and unpublish due scheduled articles once")

    # poll
    subparsers.add_parser("poll", help="Run the scheduled article job in the background")

    # check-rules
    subparsers.add_parser("check-rules", help="Validate the rules file")

    args = parser.parse_args()

    ctx = get_context(args)

    if args.command == "run-due":
        handle_run_due(ctx, args)
    elif args.command == "poll":
        handle_poll(ctx, args)
    elif args.command == "check-rules":
        handle_check_rules(ctx, args)


if __name__ == "__main__":
    main()
