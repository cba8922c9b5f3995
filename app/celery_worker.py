# app/celery_worker.py
from celery import Celery

from app.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, TOKEN_PURGE_INTERVAL_SECONDS

celery_app = Celery(
    "market",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# Explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "app.tasks.expire",
)

# Konfiguracja beat schedule
celery_app.conf.beat_schedule = {
    "expire-refresh-tokens": {
        "task": "app.tasks.expire.expire_refresh_tokens_task",
        "schedule": float(TOKEN_PURGE_INTERVAL_SECONDS),
    },
}

celery_app.conf.timezone = "UTC"
