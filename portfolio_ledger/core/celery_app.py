from celery import Celery
from celery.schedules import crontab
from portfolio_ledger.core.config import settings


def make_celery() -> Celery:
    celery = Celery(
        "portfolio_ledger",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=[
            "portfolio_ledger.tasks.refresh",
        ],
    )

    celery.conf.update(
        timezone=settings.CELERY_TIMEZONE,
        enable_utc=settings.CELERY_ENABLE_UTC,
        broker_connection_retry_on_startup=True,
        worker_concurrency=settings.CELERY_WORKER_CONCURRENCY,
    )

    if settings.CELERY_BEAT_ENABLED:
        celery.conf.beat_schedule = {
            'refresh-market-data-daily': {
                'task': 'portfolio_ledger.tasks.refresh.refresh_market_data_task',
                'schedule': crontab(minute=settings.REFRESH_CRON_MINUTE, hour=settings.REFRESH_CRON_HOUR),
            },
        }
        celery.conf.beat_max_loop_interval = 10

    return celery


celery = make_celery()
