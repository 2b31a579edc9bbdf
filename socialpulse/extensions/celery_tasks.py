# socialpulse/extensions/celery_tasks.py

import os
from datetime import timedelta

from celery import Celery
from celery.schedules import crontab

from ..utils.logger import Log

celery = Celery(
    'socialpulse',
    broker=os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0"),
)

_app = None


def _flask_app():
    # built lazily so importing this module does not open Mongo connections
    global _app
    if _app is None:
        from .. import create_app
        _app = create_app()
    return _app


@celery.task(name="socialpulse.sync_all_accounts")
def sync_all_accounts():
    app = _flask_app()
    with app.app_context():
        result = app.extensions["socialpulse"].dispatcher.sync_all()
    Log.info(f"[celery_tasks.py][sync_all_accounts] {result}")
    return result


def _sync_schedule(minutes):
    minutes = max(1, int(minutes))
    if minutes < 60 and 60 % minutes == 0:
        return crontab(minute=f"*/{minutes}")
    if minutes % 60 == 0 and minutes <= 24 * 60:
        return crontab(minute=0, hour=f"*/{minutes // 60}")
    return timedelta(minutes=minutes)


# Schedule
celery.conf.beat_schedule = {
    'sync-all-accounts': {
        'task': 'socialpulse.sync_all_accounts',
        'schedule': _sync_schedule(os.getenv("SYNC_INTERVAL_MINUTES", "60")),
    },
}
