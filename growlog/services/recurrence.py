import logging
from datetime import timedelta
from dateutil.relativedelta import relativedelta

from growlog.extensions import db
from growlog.models import Task

logger = logging.getLogger(__name__)

REPEAT_INTERVALS = {
    'DAILY': timedelta(days=1),
    'WEEKLY': timedelta(days=7),
    'EVERY_3_DAYS': timedelta(days=3),
    'MONTHLY': relativedelta(months=1),
}

# fields carried over from a completed task to its successor
COPIED_FIELDS = (
    'owner_user_id', 'grow_id', 'plant_id', 'title', 'description',
    'repeat_rule', 'notify', 'notify_before_minutes', 'priority',
)


def next_due_date(due_at, repeat_rule):
    """Shift due_at by the interval named by repeat_rule.

    The interval is anchored to the original due date, not to the completion
    time. An unknown rule returns due_at unchanged.
    """
    interval = REPEAT_INTERVALS.get((repeat_rule or '').strip().upper())
    if interval is None:
        return due_at
    return due_at + interval


def build_successor(task):
    successor = Task(**{field: getattr(task, field) for field in COPIED_FIELDS})
    successor.due_at = next_due_date(task.due_at, task.repeat_rule)
    successor.status = 'OPEN'
    return successor


def complete_task(task):
    """Mark task DONE and, for repeating tasks, add the next occurrence.

    Both writes share one commit. Returns (task, successor or None).
    """
    successor = None
    try:
        task.status = 'DONE'
        if task.repeat_rule:
            successor = build_successor(task)
            db.session.add(successor)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    if successor is not None:
        logger.info("Task %s completed, next occurrence %s due %s", task.id, successor.id, successor.due_at)
    else:
        logger.info("Task %s completed", task.id)
    return task, successor
