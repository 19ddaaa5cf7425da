# taskflow/services/scheduler.py
"""
Periodic alert refresh.

Recomputes due-date alerts for every owner with open dated tasks and keeps the
per-owner bucket counts of the latest run for the status endpoint.
"""

from collections import Counter, defaultdict
from datetime import datetime
from typing import Any, Dict

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session
import logging

from taskflow.config.settings import Settings
from taskflow.database import get_db
from taskflow.models import Task, TaskStatus
from taskflow.services.notifications import derive

logger = logging.getLogger(__name__)


def collect_alert_summary(db: Session, now: datetime = None) -> Dict[str, Dict[str, int]]:
    """Bucket counts of derived alerts per owner"""
    now = now or datetime.utcnow()
    tasks = db.query(Task).filter(
        Task.status != TaskStatus.DONE.value,
        Task.due_date.isnot(None)
    ).all()

    by_owner = defaultdict(list)
    for task in tasks:
        by_owner[task.owner_id].append(task)

    summary = {}
    for owner_id, owner_tasks in by_owner.items():
        counts = Counter(n.type for n in derive(owner_tasks, now))
        if counts:
            summary[owner_id] = dict(counts)
    return summary


class AlertScheduler:
    """Scheduler for due-date alert refreshes"""

    def __init__(self):
        self.scheduler = AsyncIOScheduler()
        self.is_running = False
        self.last_run = None
        self.last_summary: Dict[str, Dict[str, int]] = {}

    def start(self):
        """Start the scheduler"""
        if not self.is_running:
            self.scheduler.add_job(
                self.refresh_alerts,
                trigger=IntervalTrigger(minutes=Settings.SCHEDULER["alert_refresh_minutes"]),
                id='refresh_alerts',
                name='Refresh Due-Date Alerts',
                replace_existing=True
            )

            self.scheduler.start()
            self.is_running = True
            logger.info("Alert scheduler started successfully")

    def stop(self):
        """Stop the scheduler"""
        if self.is_running:
            self.scheduler.shutdown()
            self.is_running = False
            logger.info("Alert scheduler stopped")

    async def refresh_alerts(self):
        db_gen = get_db()
        db = next(db_gen)
        try:
            self.last_summary = collect_alert_summary(db)
            self.last_run = datetime.utcnow()
            overdue = sum(counts.get("overdue", 0) for counts in self.last_summary.values())
            logger.info(f"Refreshed alerts for {len(self.last_summary)} owners ({overdue} overdue)")
        except Exception as e:
            # Keep the job alive; the next interval retries
            logger.error(f"Error refreshing alerts: {e}")
        finally:
            db_gen.close()

    async def get_scheduler_status(self) -> Dict[str, Any]:
        """Get scheduler status and job information"""
        if not self.is_running:
            return {"status": "stopped", "jobs": [], "last_run": None, "owners_with_alerts": 0}

        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger)
            })

        return {
            "status": "running",
            "jobs": jobs,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "owners_with_alerts": len(self.last_summary),
        }


# Global scheduler instance
alert_scheduler = AlertScheduler()
