"""Tasks - capture, complete and report on tasks

Philosophy:
    Capturing a task should cost nothing. The system infers how much focus
    a task needs and whether it is too big or too vague, so the user never
    fills in a form. Every change is written to the event log, which is
    what the pattern analyzer learns from.

Components:
    manager.py: Task CRUD, snooze, progress logging and breakdown
    recurring.py: Recurrence rules and overdue catch-up for recurring tasks
    reporting.py: Daily summary, weekly recap, stats, challenges, insights

Usage:
    from helm.tasks.manager import create_task, complete_task

    task = create_task(user_id="alice", text="write the launch blog post")
    complete_task(task["data"]["task_id"])
"""

# Valid statuses
TASK_STATUSES = ("open", "done")

FOCUS_LEVELS = ("low", "medium", "high")

# 1 = lowest, 5 = highest
PRIORITY_RANGE = (1, 5)
DEFAULT_PRIORITY = 3

# Open tasks at least this old are "cold" in the challenges report
COLD_TASK_DAYS = 7

__all__ = [
    "COLD_TASK_DAYS",
    "DEFAULT_PRIORITY",
    "FOCUS_LEVELS",
    "PRIORITY_RANGE",
    "TASK_STATUSES",
]
