# sales_league/celery_worker.py
import logging
import os
import re
from celery import Celery
from celery.signals import worker_ready
from dotenv import load_dotenv

from sales_league import config
from sales_league.achievements_job import run_achievements_job
from sales_league.database import init_db

load_dotenv()

logger = logging.getLogger(__name__)

def parse_azure_redis_url(azure_url: str) -> str:
    if not azure_url or not azure_url.startswith('redis-'): return azure_url
    try:
        host, params = azure_url.split(',', 1)
        password_match = re.search(r'password=([^,]+)', params)
        password = password_match.group(1) if password_match else ''
        return f"rediss://:{password}@{host}?ssl_cert_reqs=CERT_NONE"
    except (ValueError, AttributeError):
        logger.warning("Could not parse Azure Redis URL, falling back to original value.")
        return azure_url

raw_redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
parsed_redis_url = parse_azure_redis_url(raw_redis_url)
celery_app = Celery("sales_league", broker=parsed_redis_url, backend=parsed_redis_url)

celery_app.conf.beat_schedule = {
    "refresh-achievements": {
        "task": "sales_league.celery_worker.refresh_achievements",
        "schedule": float(config.ACHIEVEMENTS_JOB_INTERVAL_SECONDS),
    },
}

@worker_ready.connect
def _create_tables(**kwargs):
    init_db()

@celery_app.task
def refresh_achievements():
    logger.info("Running scheduled task: refreshing achievements...")
    result = run_achievements_job()
    if result.errors:
        logger.error("Achievements refresh finished with errors: %s", result.errors)
    return result.model_dump()
