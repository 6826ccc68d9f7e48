"""
Automatic grading scheduler

Periodically grades games whose results have arrived but whose picks are not
graded yet, using APScheduler in the background.
"""

import atexit
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from poolkeeper.services.grading_service import grading_service

logger = logging.getLogger(__name__)


class SchedulerService:
    """Manages the background grading job"""

    def __init__(self, app=None):
        self.scheduler = None
        self.app = app
        self.is_running = False
        self.run_stats = {
            "last_run": None,
            "total_runs": 0,
            "successful_runs": 0,
            "failed_runs": 0,
            "last_error": None,
            "games_graded": 0,
        }

        if app:
            self.init_app(app)

    def init_app(self, app):
        """Initialize scheduler with Flask app"""
        self.app = app
        self.scheduler = BackgroundScheduler(daemon=True, timezone="UTC")

        # Register shutdown
        atexit.register(self.shutdown)

        # Start scheduler if enabled
        if app.config.get("SCHEDULER_ENABLED", True):
            self.start()

    def start(self):
        """Start the background scheduler"""
        if self.is_running:
            return

        try:
            self.scheduler.remove_all_jobs()
            self._add_core_jobs()
            self.scheduler.start()
            self.is_running = True

            logger.info("Scheduler started successfully")

        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")
            raise

    def stop(self):
        """Stop the background scheduler"""
        if not self.is_running:
            return

        try:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Scheduler stopped")

        except Exception as e:
            logger.error(f"Error stopping scheduler: {e}")

    def shutdown(self):
        """Graceful shutdown"""
        self.stop()

    def _add_core_jobs(self):
        """Add core scheduled jobs"""
        interval = self.app.config.get("GRADING_INTERVAL_MINUTES", 5)

        self.scheduler.add_job(
            func=self._grade_pending_games,
            trigger=IntervalTrigger(minutes=interval),
            id="grade_pending_games",
            name="Grade Finished Games",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=60,
        )

    def _grade_pending_games(self):
        """Grade games that have results but ungraded picks"""
        with self.app.app_context():
            try:
                graded = grading_service.grade_pending_games()
                self._update_stats(True, games_graded=len(graded))
            except Exception as e:
                from poolkeeper import db

                db.session.rollback()
                logger.error(f"Pending game grading failed: {e}")
                self._update_stats(False, error=str(e))

    def _update_stats(self, success, games_graded=0, error=None):
        """Update run statistics"""
        self.run_stats["last_run"] = datetime.now(timezone.utc)
        self.run_stats["total_runs"] += 1

        if success:
            self.run_stats["successful_runs"] += 1
            self.run_stats["games_graded"] += games_graded
        else:
            self.run_stats["failed_runs"] += 1
            self.run_stats["last_error"] = error

    def get_status(self):
        """Get scheduler status and statistics"""
        jobs = []
        if self.scheduler:
            for job in self.scheduler.get_jobs():
                jobs.append(
                    {
                        "id": job.id,
                        "name": job.name,
                        "next_run": (
                            job.next_run_time.isoformat() if job.next_run_time else None
                        ),
                    }
                )

        last_run = self.run_stats["last_run"]
        return {
            "is_running": self.is_running,
            "jobs": jobs,
            "stats": {
                **self.run_stats,
                "last_run": last_run.isoformat() if last_run else None,
            },
        }

    def force_run(self):
        """Run the grading job immediately in the calling thread"""
        self._grade_pending_games()
        return self.get_status()


# Global scheduler instance
scheduler_service = SchedulerService()
