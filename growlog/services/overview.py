"""
Dashboard overview aggregation.

Every section is computed on its own. A database failure in one section is
logged and that section falls back to its empty value so the rest of the
dashboard still renders.
"""
import logging
from datetime import datetime, timedelta
from sqlalchemy.exc import SQLAlchemyError

from growlog.extensions import db
from growlog.models import (EnvironmentMetric, Grow, Plant, PlantLog, PlantMetric,
                            PlantPhoto, Task, utcnow)
from growlog.services.progress import js_round

logger = logging.getLogger(__name__)

INACTIVE_STATUSES = ('HARVESTED', 'DEAD')
WASTE_STATUSES = ('DEAD', 'SICK')

DEFAULT_ENVIRONMENT = {'temperature': 24, 'humidity': 60, 'co2': 400}

WEEKS = 5
WEEK = timedelta(days=7)
ACTIVITY_PER_SOURCE = 5
ACTIVITY_LIMIT = 10
OVERDUE_LIMIT = 5


def _section(name, builder, fallback):
    try:
        return builder()
    except SQLAlchemyError:
        logger.exception("Overview section '%s' failed, using fallback", name)
        db.session.rollback()
        return fallback() if callable(fallback) else fallback


def plant_stats(user_id):
    owned = Plant.query.filter_by(owner_user_id=user_id)
    return {
        'total': owned.count(),
        'active': owned.filter(Plant.status.notin_(INACTIVE_STATUSES)).count(),
        'healthy': owned.filter(Plant.status == 'HEALTHY').count(),
        'waste': owned.filter(Plant.status.in_(WASTE_STATUSES)).count(),
    }


def _with_defaults(values):
    return {key: values.get(key) if values.get(key) is not None else default
            for key, default in DEFAULT_ENVIRONMENT.items()}


def latest_environment(user_id, now=None):
    """Latest climate reading with fallback precedence.

    EnvironmentMetric of any of the user's grows first, then the latest
    temperature/humidity PlantMetric of an active plant, then fixed defaults.
    """
    now = now or utcnow()

    env_metric = (EnvironmentMetric.query
                  .join(Grow, EnvironmentMetric.grow_id == Grow.id)
                  .filter(Grow.owner_user_id == user_id)
                  .order_by(EnvironmentMetric.recorded_at.desc(), EnvironmentMetric.id.desc())
                  .first())
    if env_metric:
        snapshot = _with_defaults({'temperature': env_metric.temperature,
                                   'humidity': env_metric.humidity,
                                   'co2': env_metric.co2})
        snapshot.update(vpd=env_metric.vpd, last_updated=env_metric.recorded_at, source='environment')
        return snapshot

    plant_metric = (PlantMetric.query
                    .join(Plant, PlantMetric.plant_id == Plant.id)
                    .filter(Plant.owner_user_id == user_id,
                            Plant.status.notin_(INACTIVE_STATUSES),
                            db.or_(PlantMetric.temperature_c.isnot(None), PlantMetric.humidity_pct.isnot(None)))
                    .order_by(PlantMetric.recorded_at.desc(), PlantMetric.id.desc())
                    .first())
    if plant_metric:
        snapshot = _with_defaults({'temperature': plant_metric.temperature_c,
                                   'humidity': plant_metric.humidity_pct})
        snapshot.update(vpd=None, last_updated=plant_metric.recorded_at, source='plant_metric')
        return snapshot

    return default_environment(now)


def default_environment(now=None):
    snapshot = dict(DEFAULT_ENVIRONMENT)
    snapshot.update(vpd=None, last_updated=now or utcnow(), source='default')
    return snapshot


def bucket_heights(samples, now):
    """Average (recorded_at, height) samples into five 7-day buckets.

    Bucket 4 covers the last seven days, bucket 0 the days 29-35 ago. Empty
    buckets report 0.
    """
    sums = [0.0] * WEEKS
    counts = [0] * WEEKS
    for recorded_at, height in samples:
        index = WEEKS - 1 - int((now - recorded_at) // WEEK)
        if 0 <= index < WEEKS:
            sums[index] += height
            counts[index] += 1

    chart = []
    for index in range(WEEKS):
        label = (now - WEEK * (WEEKS - 1 - index)).date().isoformat()
        height = js_round(sums[index] / counts[index]) if counts[index] else 0
        chart.append({'label': label, 'height': height})
    return chart


def growth_chart(user_id, now=None):
    now = now or utcnow()
    since = now - WEEK * WEEKS
    rows = (db.session.query(PlantMetric.recorded_at, PlantMetric.height_cm)
            .join(Plant, PlantMetric.plant_id == Plant.id)
            .filter(Plant.owner_user_id == user_id,
                    PlantMetric.recorded_at >= since,
                    PlantMetric.height_cm.isnot(None))
            .all())
    return bucket_heights(rows, now)


def recent_activity(user_id):
    logs = (PlantLog.query.filter_by(created_by=user_id)
            .order_by(PlantLog.logged_at.desc()).limit(ACTIVITY_PER_SOURCE).all())
    photos = (PlantPhoto.query.filter_by(uploaded_by=user_id)
              .order_by(PlantPhoto.created_at.desc()).limit(ACTIVITY_PER_SOURCE).all())

    activity = [{'type': 'LOG', 'id': log.id, 'date': log.logged_at,
                 'title': log.title or log.type, 'subtitle': log.plant.name} for log in logs]
    activity += [{'type': 'PHOTO', 'id': photo.id, 'date': photo.created_at,
                  'title': 'New Photo', 'subtitle': photo.plant.name} for photo in photos]

    activity.sort(key=lambda item: item['date'] or datetime.min, reverse=True)
    return activity[:ACTIVITY_LIMIT]


def overdue_tasks(user_id, now=None):
    now = now or utcnow()
    return (Task.query
            .filter(Task.owner_user_id == user_id, Task.status == 'OPEN', Task.due_at < now)
            .order_by(Task.due_at.asc())
            .limit(OVERDUE_LIMIT)
            .all())


def tasks_today_count(user_id, now=None):
    now = now or utcnow()
    day_start = datetime(now.year, now.month, now.day)
    day_end = day_start + timedelta(days=1)
    return (Task.query
            .filter(Task.owner_user_id == user_id, Task.status == 'OPEN',
                    Task.due_at >= day_start, Task.due_at < day_end)
            .count())


def build_overview(user_id, now=None):
    now = now or utcnow()
    empty_stats = {'total': 0, 'active': 0, 'healthy': 0, 'waste': 0}

    return {
        'stats': _section('stats', lambda: plant_stats(user_id), empty_stats),
        'environment': _section('environment', lambda: latest_environment(user_id, now),
                                lambda: default_environment(now)),
        'chart_data': _section('chart_data', lambda: growth_chart(user_id, now),
                               lambda: bucket_heights([], now)),
        'tasks_today_count': _section('tasks_today_count', lambda: tasks_today_count(user_id, now), 0),
        'recent_activity': _section('recent_activity', lambda: recent_activity(user_id), list),
        'overdue_tasks': _section('overdue_tasks', lambda: overdue_tasks(user_id, now), list),
    }
