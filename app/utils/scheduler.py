"""
Scheduler Service
Runs periodic housekeeping jobs in-process using APScheduler
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.core.rate_limit import limiter

logger = logging.getLogger(__name__)

RATE_LIMIT_SWEEP_JOB_ID = "rate_limit_sweep"

scheduler: BackgroundScheduler = None


def rate_limit_sweep_job():
    """Drop expired rate-limit windows so idle users do not accumulate in memory"""
    removed = limiter.sweep()
    if removed:
        logger.info(f"Rate-limit sweep removed {removed} expired windows")
    return removed


def start_scheduler():
    """Start the background scheduler with the housekeeping jobs"""
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler is already running")
        return

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        rate_limit_sweep_job,
        trigger=IntervalTrigger(seconds=settings.RATE_LIMIT_SWEEP_SECONDS),
        id=RATE_LIMIT_SWEEP_JOB_ID,
        name="Rate limit sweep",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(f"Scheduler started; rate-limit sweep every {settings.RATE_LIMIT_SWEEP_SECONDS}s")


def stop_scheduler():
    """Stop the background scheduler"""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("Scheduler stopped")


def get_scheduler_status():
    """Get current scheduler status"""
    if scheduler is None:
        return {"running": False, "jobs": []}

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run": str(job.next_run_time) if job.next_run_time else None
        })

    return {
        "running": scheduler.running,
        "jobs": jobs
    }
