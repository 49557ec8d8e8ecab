import logging
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.config import Settings, settings as default_settings
from core.exceptions import SetupError
from harvest.runner import HarvestRunner

logger = logging.getLogger(__name__)


class HarvestScheduler:
    """Run a full harvest on a fixed interval"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        runner_factory: Optional[Callable[[], HarvestRunner]] = None,
    ):
        self.settings = settings or default_settings
        self.runner_factory = runner_factory or (lambda: HarvestRunner(self.settings))
        self.scheduler = AsyncIOScheduler()

    async def run_harvest_job(self):
        """Job to run the harvest pipeline"""
        logger.info("Scheduler: Starting harvest job")
        try:
            report = await self.runner_factory().run()
            logger.info(f"Scheduler: Harvest job finished with status {report.status.value}")
        except SetupError as e:
            logger.error(f"Scheduler: Harvest job could not start - {e}")
        except Exception as e:
            logger.exception(f"Scheduler: Harvest job failed - {e}")

    def start(self, run_now: bool = True):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_harvest_job,
            trigger=IntervalTrigger(minutes=self.settings.HARVEST_INTERVAL_MINUTES),
            id="harvest_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        if run_now:
            self.scheduler.add_job(self.run_harvest_job, id="harvest_job_initial")
        self.scheduler.start()
        logger.info(
            f"Harvest scheduler started (every {self.settings.HARVEST_INTERVAL_MINUTES} minutes)"
        )

    def stop(self):
        self.scheduler.shutdown()
        logger.info("Harvest scheduler stopped")
