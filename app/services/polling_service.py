import atexit
from typing import Dict
from apscheduler.schedulers.background import BackgroundScheduler
from config.config import Config
from app.services.background_check_service import BackgroundCheckService
from app.utils.exceptions import BackgroundCheckError
from app.utils.logger import get_logger

logger = get_logger(__name__)

JOB_ID = 'refresh_pending_background_checks'


class PollingService:
    """Periodically refreshes every pending background check.

    Purely a convenience on top of ``BackgroundCheckService.refresh``; nothing
    in the workflow depends on it running.
    """

    def __init__(self, background_check_service: BackgroundCheckService = None,
                 interval_minutes: int = None):
        self.background_check_service = background_check_service or BackgroundCheckService()
        self.interval_minutes = interval_minutes or Config.STATUS_POLL_INTERVAL_MINUTES
        self.scheduler = None

    def start(self):
        if self.scheduler is not None:
            return
        self.scheduler = BackgroundScheduler()
        self.scheduler.add_job(
            self.refresh_pending,
            'interval',
            minutes=self.interval_minutes,
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )
        self.scheduler.start()
        atexit.register(self.stop)
        logger.info(f"Background check polling every {self.interval_minutes} minutes")

    def stop(self):
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.scheduler = None

    def refresh_pending(self) -> Dict:
        """Refresh each pending check once; one failing check does not stop the pass"""
        pending_ids = self.background_check_service.list_pending_ids()
        logger.info(f"Refreshing {len(pending_ids)} pending background checks")

        summary = {'checked': 0, 'changed': 0, 'failed': 0}
        for check_id in pending_ids:
            summary['checked'] += 1
            try:
                check = self.background_check_service.refresh(check_id)
            except BackgroundCheckError as e:
                summary['failed'] += 1
                logger.warning(f"Refresh of background check {check_id} failed ({e.kind.value}): {e.message}")
                continue

            if check.is_terminal:
                summary['changed'] += 1

        logger.info(
            f"Polling pass done: {summary['checked']} checked, "
            f"{summary['changed']} completed, {summary['failed']} failed"
        )
        return summary
