#!/usr/bin/env python3
"""
Helm Command Line Interface

Main entry point for the `helm` command. Every command prints a JSON result
and exits non-zero when the result is not successful.

Usage:
    helm task create --user alice --text "write launch post" --category writing
    helm task complete --task-id abc123
    helm journal add --user alice --content "Good call with Sarah" --mood hopeful --energy 7
    helm report analyze --user alice
    helm report insights --user alice
    helm --version
"""

import argparse
import json
import sys

from helm.journal import ENTRY_TYPES, LINK_TYPES, MOOD_OPTIONS
from helm.logging_config import bind_user, setup_logging
from helm.tasks import FOCUS_LEVELS, TASK_STATUSES


def cmd_task(args):
    """Handle task subcommands."""
    from helm.tasks import manager

    action = args.task_command

    if action == "create":
        return manager.create_task(
            user_id=args.user,
            text=args.text,
            priority=args.priority,
            category=args.category,
            focus_level=args.focus,
            due_date=args.due,
            parent_task_id=args.parent_id,
            recurrence=args.recurrence,
        )

    if action == "list":
        return manager.list_tasks(
            user_id=args.user,
            status=args.status,
            category=args.category,
            include_snoozed=args.include_snoozed,
            limit=args.limit,
            offset=args.offset,
        )

    if action == "get":
        return manager.get_task(args.task_id)

    if action == "update":
        return manager.update_task(
            task_id=args.task_id,
            text=args.text,
            priority=args.priority,
            category=args.category,
            focus_level=args.focus,
            due_date=args.due,
            recurrence=args.recurrence,
        )

    if action == "complete":
        return manager.complete_task(args.task_id)

    if action == "snooze":
        return manager.snooze_task(args.task_id, days=args.days, until=args.until)

    if action == "delete":
        return manager.delete_task(args.task_id)

    if action == "progress":
        return manager.log_progress(
            user_id=args.user,
            description=args.description,
            task_id=args.task_id,
            minutes_spent=args.minutes,
        )

    if action == "breakdown":
        return manager.break_down_task(args.task_id, args.subtasks)

    if action == "catchup":
        from helm.tasks.recurring import catchup_recurring_tasks

        return catchup_recurring_tasks(args.user, dry_run=args.dry_run)

    return None


def cmd_journal(args):
    """Handle journal subcommands."""
    from helm.journal import entries, insights

    action = args.journal_command

    if action == "add":
        return entries.add_entry(
            user_id=args.user,
            content=args.content,
            entry_type=args.type,
            mood=args.mood,
            energy=args.energy,
        )

    if action == "list":
        return entries.list_entries(args.user, days=args.days, mood=args.mood, entry_type=args.type)

    if action == "get":
        return entries.get_entry(args.user, args.entry_id)

    if action == "search":
        return entries.search_entries(args.user, args.query, days=args.days, limit=args.limit)

    if action == "update":
        return entries.update_entry(
            args.user, args.entry_id, content=args.content, mood=args.mood, energy=args.energy
        )

    if action == "delete":
        return entries.delete_entry(args.user, args.entry_id)

    if action == "link":
        return entries.link_entry(args.user, args.entry_id, args.link_type, args.link_id)

    if action == "insights":
        return insights.journal_insights(args.user, days=args.days)

    if action == "streak":
        return insights.journal_streak(args.user)

    return None


def cmd_report(args):
    """Handle report subcommands."""
    from helm.tasks import reporting

    handlers = {
        "summary": reporting.get_daily_summary,
        "recap": reporting.weekly_recap,
        "stats": reporting.get_stats,
        "challenges": reporting.get_challenges,
        "analyze": reporting.analyze_patterns,
        "insights": reporting.get_insights,
    }
    handler = handlers.get(args.report_command)
    return handler(args.user) if handler else None


def cmd_version(args):
    """Show version information."""
    from helm import __version__

    print(f"Helm version {__version__}")


def _add_task_parsers(subparsers):
    task_parser = subparsers.add_parser("task", help="Create, complete and manage tasks")
    task_sub = task_parser.add_subparsers(dest="task_command", help="Task commands")

    create = task_sub.add_parser("create", help="Create a task")
    create.add_argument("--user", required=True, help="User ID")
    create.add_argument("--text", required=True, help="What needs doing")
    create.add_argument("--priority", type=int, default=3, help="Priority (1-5)")
    create.add_argument("--category", help="Category (e.g. admin, writing)")
    create.add_argument("--focus", choices=FOCUS_LEVELS, help="Focus level (inferred when omitted)")
    create.add_argument("--due", help="Due date (YYYY-MM-DD)")
    create.add_argument("--parent-id", help="Parent task ID for subtasks")
    create.add_argument("--recurrence", help="daily, weekdays, weekly, biweekly, monthly, yearly, or days like mon,thu")

    list_parser = task_sub.add_parser("list", help="List tasks")
    list_parser.add_argument("--user", required=True, help="User ID")
    list_parser.add_argument("--status", choices=TASK_STATUSES, default="open", help="Task status")
    list_parser.add_argument("--category", help="Filter by category")
    list_parser.add_argument("--include-snoozed", action="store_true", help="Include snoozed tasks")
    list_parser.add_argument("--limit", type=int, default=50, help="Max results")
    list_parser.add_argument("--offset", type=int, default=0, help="Pagination offset")

    get = task_sub.add_parser("get", help="Show a task and its subtasks")
    get.add_argument("--task-id", required=True)

    update = task_sub.add_parser("update", help="Update task fields")
    update.add_argument("--task-id", required=True)
    update.add_argument("--text", help="New text")
    update.add_argument("--priority", type=int, help="Priority (1-5)")
    update.add_argument("--category", help="Category")
    update.add_argument("--focus", choices=FOCUS_LEVELS, help="Focus level")
    update.add_argument("--due", help="Due date (YYYY-MM-DD, empty to clear)")
    update.add_argument("--recurrence", help="Recurrence (empty to stop recurring)")

    complete = task_sub.add_parser("complete", help="Mark a task done")
    complete.add_argument("--task-id", required=True)

    snooze = task_sub.add_parser("snooze", help="Hide a task for a while")
    snooze.add_argument("--task-id", required=True)
    snooze.add_argument("--days", type=int, help="Days to snooze (default 1)")
    snooze.add_argument("--until", help="Snooze until date (YYYY-MM-DD)")

    delete = task_sub.add_parser("delete", help="Delete a task")
    delete.add_argument("--task-id", required=True)

    progress = task_sub.add_parser("progress", help="Log work done")
    progress.add_argument("--user", required=True, help="User ID")
    progress.add_argument("--description", required=True, help="What was done")
    progress.add_argument("--task-id", help="Related task")
    progress.add_argument("--minutes", type=int, help="Minutes spent")

    breakdown = task_sub.add_parser("breakdown", help="Split a task into subtasks")
    breakdown.add_argument("--task-id", required=True)
    breakdown.add_argument("subtasks", nargs="+", help="Subtask texts")

    catchup = task_sub.add_parser("catchup", help="Move overdue recurring tasks to their next due date")
    catchup.add_argument("--user", required=True, help="User ID")
    catchup.add_argument("--dry-run", action="store_true", help="Preview without changing anything")

    task_parser.set_defaults(func=cmd_task)


def _add_journal_parsers(subparsers):
    journal_parser = subparsers.add_parser("journal", help="Journal entries, insights and streaks")
    journal_sub = journal_parser.add_subparsers(dest="journal_command", help="Journal commands")

    add = journal_sub.add_parser("add", help="Write a journal entry")
    add.add_argument("--user", required=True, help="User ID")
    add.add_argument("--content", required=True, help="Entry text")
    add.add_argument("--type", choices=ENTRY_TYPES, default="freeform", help="Entry type")
    add.add_argument("--mood", choices=MOOD_OPTIONS, help="Current mood")
    add.add_argument("--energy", type=int, help="Energy level (1-10)")

    list_parser = journal_sub.add_parser("list", help="List recent entries")
    list_parser.add_argument("--user", required=True, help="User ID")
    list_parser.add_argument("--days", type=int, default=7, help="How many days back")
    list_parser.add_argument("--mood", choices=MOOD_OPTIONS, help="Filter by mood")
    list_parser.add_argument("--type", choices=ENTRY_TYPES, help="Filter by entry type")

    get = journal_sub.add_parser("get", help="Show one entry")
    get.add_argument("--user", required=True, help="User ID")
    get.add_argument("--entry-id", required=True)

    search = journal_sub.add_parser("search", help="Search entries by keyword, mood or mention")
    search.add_argument("--user", required=True, help="User ID")
    search.add_argument("query", help="Search text")
    search.add_argument("--days", type=int, default=30, help="How many days back")
    search.add_argument("--limit", type=int, default=10, help="Max results")

    update = journal_sub.add_parser("update", help="Update an entry")
    update.add_argument("--user", required=True, help="User ID")
    update.add_argument("--entry-id", required=True)
    update.add_argument("--content", help="New text")
    update.add_argument("--mood", choices=MOOD_OPTIONS, help="New mood")
    update.add_argument("--energy", type=int, help="New energy level (1-10)")

    delete = journal_sub.add_parser("delete", help="Delete an entry")
    delete.add_argument("--user", required=True, help="User ID")
    delete.add_argument("--entry-id", required=True)

    link = journal_sub.add_parser("link", help="Link an entry to a task, launch or project")
    link.add_argument("--user", required=True, help="User ID")
    link.add_argument("--entry-id", required=True)
    link.add_argument("--link-type", required=True, choices=LINK_TYPES)
    link.add_argument("--link-id", required=True)

    insights = journal_sub.add_parser("insights", help="Mood, energy and mention summary")
    insights.add_argument("--user", required=True, help="User ID")
    insights.add_argument("--days", type=int, default=30, help="How many days back")

    streak = journal_sub.add_parser("streak", help="Journaling streak and weekly goal")
    streak.add_argument("--user", required=True, help="User ID")

    journal_parser.set_defaults(func=cmd_journal)


def _add_report_parsers(subparsers):
    report_parser = subparsers.add_parser("report", help="Summaries, stats and learned patterns")
    report_sub = report_parser.add_subparsers(dest="report_command", help="Report commands")

    for name, help_text in (
        ("summary", "Today at a glance, with nudges"),
        ("recap", "This week's completed and added tasks"),
        ("stats", "Task counts and completion rate"),
        ("challenges", "Cold, vague and oversized tasks"),
        ("analyze", "Analyze history and store productivity patterns"),
        ("insights", "Learned patterns and nudges for right now"),
    ):
        report = report_sub.add_parser(name, help=help_text)
        report.add_argument("--user", required=True, help="User ID")

    report_parser.set_defaults(func=cmd_report)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="helm",
        description="Helm - productivity intelligence for tasks and journaling",
    )
    parser.add_argument(
        "--version", "-V", action="store_true", help="Show version and exit"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    _add_task_parsers(subparsers)
    _add_journal_parsers(subparsers)
    _add_report_parsers(subparsers)
    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle --version at top level
    if args.version:
        cmd_version(args)
        return

    # If no command given, show help
    if not args.command:
        parser.print_help()
        return

    setup_logging()
    bind_user(getattr(args, "user", None))
    result = args.func(args)

    if result is None:
        parser.print_help()
        sys.exit(1)

    print(json.dumps(result, indent=2, default=str))
    if not result.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
