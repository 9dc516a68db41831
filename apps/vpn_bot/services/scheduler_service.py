import logging
from telegram.ext import ContextTypes

from .maintenance_service import MaintenanceService

logger = logging.getLogger(__name__)


class SchedulerService:
    """Job queue entry points for the periodic maintenance jobs."""

    def __init__(self, maintenance_service: MaintenanceService):
        self.maintenance_service = maintenance_service

    async def expiry_sweep_task(self, context: ContextTypes.DEFAULT_TYPE):
        """Task to delete expired accounts."""
        try:
            await self.maintenance_service.run_expiry_sweep()
        except Exception as e:
            logger.error(f"[MAINTENANCE] Expiry sweep job failed: {e}", exc_info=True)

    async def backup_task(self, context: ContextTypes.DEFAULT_TYPE):
        """Task to back up the account list."""
        try:
            await self.maintenance_service.run_backup_cycle()
        except Exception as e:
            logger.error(f"[MAINTENANCE] Backup job failed: {e}", exc_info=True)
