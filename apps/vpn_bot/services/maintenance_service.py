# vpn_bot/services/maintenance_service.py - Expiry sweep, backups and restore
import json
import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional

from pydantic import ValidationError

from config.services_config import MaintenanceConfig
from exceptions import ExternalAPIError, PersistenceWarning, TransientNetworkError, UserInputError
from utils.cleanup import cleanup_old_files

from ..interfaces.chat_transport_interface import IChatTransport
from ..interfaces.provisioning_interface import IProvisioningClient
from ..models.api_models import AccountRecord, AccountSnapshot
from ..translations import get_message as default_get_message
from ..utils.formatting_utils import format_list

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".json"


@dataclass(frozen=True)
class RestoreResult:
    restored: int = 0
    skipped: int = 0
    failed: int = 0


class MaintenanceService:
    """Periodic jobs over the account fleet. Reports go to the administrator."""

    def __init__(self, provisioning: IProvisioningClient, transport: IChatTransport, config: MaintenanceConfig,
                 admin_id: int, lang: str = "en", get_message: Callable = default_get_message,
                 today: Callable[[], date] = date.today):
        self.provisioning = provisioning
        self.transport = transport
        self.config = config
        self.admin_id = admin_id
        self.lang = lang
        self.get_message = get_message
        self.today = today

    async def run_expiry_sweep(self) -> int:
        """Deletes every account that expired before today; returns how many were deleted."""
        try:
            accounts = await self.provisioning.list_accounts()
        except (TransientNetworkError, ExternalAPIError) as e:
            logger.error(f"[MAINTENANCE] Expiry sweep could not list accounts: {e.message}")
            return 0

        today = self.today()
        deleted: List[str] = []
        for account in accounts:
            expiry = account.expiry_date()
            if expiry is None:
                logger.warning(f"[MAINTENANCE] Unparsable expiry {account.expired!r}, account left alone")
                continue
            if expiry >= today:
                continue
            try:
                await self.provisioning.delete_account(account.password)
            except (TransientNetworkError, ExternalAPIError) as e:
                logger.error(f"[MAINTENANCE] Failed to delete expired account: {e.message}")
                continue
            deleted.append(account.password)

        if deleted:
            logger.info(f"[MAINTENANCE] Deleted {len(deleted)} expired accounts")
            if self.admin_id:
                await self.transport.send_text(
                    self.admin_id,
                    self.get_message("sweep_report", self.lang, count=len(deleted), accounts=format_list(deleted)),
                )
        return len(deleted)

    async def run_backup_cycle(self) -> Optional[str]:
        """Writes a snapshot of all accounts and sends it to the administrator.

        Returns the snapshot path, or None when the cycle was aborted.
        """
        try:
            accounts = await self.provisioning.list_accounts()
        except (TransientNetworkError, ExternalAPIError) as e:
            logger.error(f"[MAINTENANCE] Backup could not list accounts: {e.message}")
            await self._notify_admin("backup_failed", error=e.message)
            return None

        created_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        snapshot = AccountSnapshot(created_at=created_at, accounts=accounts)
        path = os.path.join(self.config.backup_dir, f"backup-{datetime.now():%Y%m%d-%H%M%S}{BACKUP_SUFFIX}")
        try:
            self._write_snapshot(path, snapshot)
        except PersistenceWarning as e:
            logger.error(f"[MAINTENANCE] {e.message}")
            await self._notify_admin("backup_failed", error=e.error)
            return None

        logger.info(f"[MAINTENANCE] Backup of {len(accounts)} accounts written to {path}")
        cleanup_old_files(self.config.backup_dir, self.config.backup_retention_days, suffix=BACKUP_SUFFIX)
        if self.admin_id:
            caption = self.get_message("backup_caption", self.lang, count=len(accounts), created_at=created_at)
            await self.transport.send_document(self.admin_id, path, caption=caption)
        return path

    def _write_snapshot(self, path: str, snapshot: AccountSnapshot) -> None:
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(snapshot.model_dump_json(indent=2))
        except OSError as e:
            raise PersistenceWarning(path, str(e))

    async def restore_from_snapshot(self, payload: bytes) -> RestoreResult:
        """Recreates accounts from an uploaded snapshot.

        Accounts that already exist or have expired are skipped; the rest are
        created with their remaining days. Raises UserInputError when the
        payload is not a snapshot.
        """
        records = self._parse_snapshot(payload)
        try:
            existing = {account.password for account in await self.provisioning.list_accounts()}
        except (TransientNetworkError, ExternalAPIError) as e:
            logger.warning(f"[MAINTENANCE] Restore could not list existing accounts: {e.message}")
            existing = set()

        today = self.today()
        restored = skipped = failed = 0
        for record in records:
            expiry = record.expiry_date()
            if record.password in existing or expiry is None or expiry <= today:
                skipped += 1
                continue
            try:
                await self.provisioning.create_account(record.password, (expiry - today).days)
            except (TransientNetworkError, ExternalAPIError) as e:
                logger.error(f"[MAINTENANCE] Restore of one account failed: {e.message}")
                failed += 1
                continue
            existing.add(record.password)
            restored += 1

        logger.info(f"[MAINTENANCE] Restore finished: {restored} restored, {skipped} skipped, {failed} failed")
        return RestoreResult(restored=restored, skipped=skipped, failed=failed)

    def _parse_snapshot(self, payload: bytes) -> List[AccountRecord]:
        try:
            data = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise UserInputError("backup", "<file>", f"not a JSON document ({e})")

        # A bare account list is accepted as well as a full snapshot
        if isinstance(data, list):
            data = {"created_at": "", "accounts": data}
        try:
            return AccountSnapshot.model_validate(data).accounts
        except ValidationError as e:
            raise UserInputError("backup", "<file>", f"unexpected structure ({e.error_count()} errors)")

    async def _notify_admin(self, key: str, **kwargs) -> None:
        if self.admin_id:
            await self.transport.send_text(self.admin_id, self.get_message(key, self.lang, **kwargs))
