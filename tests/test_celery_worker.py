from sales_league import celery_worker
from sales_league.achievements_job import JobResult


def test_plain_redis_url_is_kept():
    assert celery_worker.parse_azure_redis_url("redis://localhost:6379/0") == "redis://localhost:6379/0"


def test_azure_connection_string():
    url = celery_worker.parse_azure_redis_url("redis-league.redis.cache.windows.net:6380,password=abc123,ssl=True")
    assert url == "rediss://:abc123@redis-league.redis.cache.windows.net:6380?ssl_cert_reqs=CERT_NONE"


def test_beat_schedule_runs_refresh():
    entry = celery_worker.celery_app.conf.beat_schedule["refresh-achievements"]
    assert entry["task"] == "sales_league.celery_worker.refresh_achievements"


def test_refresh_task_returns_job_summary(monkeypatch):
    monkeypatch.setattr(
        celery_worker, "run_achievements_job",
        lambda: JobResult(rows_read=3, rows_filtered=2, achievements_updated=26, errors=[]),
    )
    assert celery_worker.refresh_achievements() == {
        "rows_read": 3, "rows_filtered": 2, "achievements_updated": 26, "errors": [],
    }
