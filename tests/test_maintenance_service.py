import json
import os
from datetime import date

import pytest
from unittest.mock import AsyncMock, MagicMock

from config.services_config import MaintenanceConfig
from exceptions import ExternalAPIError, TransientNetworkError, UserInputError
from apps.vpn_bot.models.api_models import AccountRecord, AccountResult
from apps.vpn_bot.services.maintenance_service import MaintenanceService

from conftest import ADMIN_ID

TODAY = date(2025, 1, 10)


@pytest.fixture
def provisioning():
    mock = MagicMock()
    mock.list_accounts = AsyncMock(return_value=[
        AccountRecord(password="old", expired="2025-01-05"),
        AccountRecord(password="today", expired="2025-01-10"),
        AccountRecord(password="future", expired="2025-02-01 23:59:59"),
        AccountRecord(password="weird", expired="never"),
    ])
    mock.delete_account = AsyncMock(return_value=None)
    mock.create_account = AsyncMock(
        side_effect=lambda password, days: AccountResult(password=password, expired_at="2025-02-01")
    )
    return mock


@pytest.fixture
def maintenance(provisioning, transport, tmp_path):
    config = MaintenanceConfig(backup_dir=str(tmp_path / "backups"), backup_retention_days=7)
    return MaintenanceService(provisioning, transport, config, admin_id=ADMIN_ID, today=lambda: TODAY)


class TestExpirySweep:
    @pytest.mark.asyncio
    async def test_deletes_only_accounts_expired_before_today(self, maintenance, provisioning, transport):
        deleted = await maintenance.run_expiry_sweep()

        assert deleted == 1
        provisioning.delete_account.assert_awaited_once_with("old")
        report = transport.texts_to(ADMIN_ID)[-1]
        assert "Deleted 1 expired" in report and "old" in report

    @pytest.mark.asyncio
    async def test_nothing_expired_sends_no_report(self, maintenance, provisioning, transport):
        provisioning.list_accounts.return_value = [AccountRecord(password="future", expired="2030-01-01")]
        assert await maintenance.run_expiry_sweep() == 0
        transport.send_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_failure_is_logged_not_raised(self, maintenance, provisioning):
        provisioning.list_accounts.side_effect = TransientNetworkError("provisioning", "refused")
        assert await maintenance.run_expiry_sweep() == 0
        provisioning.delete_account.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_delete_is_skipped(self, maintenance, provisioning):
        provisioning.delete_account.side_effect = ExternalAPIError("provisioning", "locked")
        assert await maintenance.run_expiry_sweep() == 0


class TestBackupCycle:
    @pytest.mark.asyncio
    async def test_writes_snapshot_and_sends_it(self, maintenance, transport, tmp_path):
        path = await maintenance.run_backup_cycle()

        assert path is not None and path.startswith(str(tmp_path / "backups"))
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        assert [a["password"] for a in data["accounts"]] == ["old", "today", "future", "weird"]
        assert data["created_at"]
        transport.send_document.assert_awaited_once()
        assert transport.send_document.await_args.args[:2] == (ADMIN_ID, path)

    @pytest.mark.asyncio
    async def test_old_snapshots_are_pruned(self, maintenance, tmp_path):
        backup_dir = tmp_path / "backups"
        backup_dir.mkdir()
        stale = backup_dir / "backup-20000101-000000.json"
        stale.write_text("{}")
        os.utime(stale, (0, 0))

        await maintenance.run_backup_cycle()

        assert not stale.exists()
        assert len(list(backup_dir.iterdir())) == 1

    @pytest.mark.asyncio
    async def test_write_failure_aborts_cycle(self, maintenance, transport, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        maintenance.config.backup_dir = str(blocker / "backups")

        assert await maintenance.run_backup_cycle() is None
        transport.send_document.assert_not_awaited()
        assert "Backup failed" in transport.texts_to(ADMIN_ID)[-1]


class TestRestore:
    @pytest.mark.asyncio
    async def test_restores_missing_unexpired_accounts(self, maintenance, provisioning):
        provisioning.list_accounts.return_value = [AccountRecord(password="exists", expired="2025-03-01")]
        payload = json.dumps({
            "created_at": "2025-01-01 00:00:00",
            "accounts": [
                {"password": "exists", "expired": "2025-03-01"},
                {"password": "expired", "expired": "2025-01-01"},
                {"password": "back", "expired": "2025-01-20"},
            ],
        }).encode()

        result = await maintenance.restore_from_snapshot(payload)

        assert (result.restored, result.skipped, result.failed) == (1, 2, 0)
        provisioning.create_account.assert_awaited_once_with("back", 10)

    @pytest.mark.asyncio
    async def test_bare_list_accepted(self, maintenance, provisioning):
        provisioning.list_accounts.return_value = []
        payload = json.dumps([{"password": "a", "expired": "2025-01-11"}]).encode()
        result = await maintenance.restore_from_snapshot(payload)
        assert result.restored == 1
        provisioning.create_account.assert_awaited_once_with("a", 1)

    @pytest.mark.asyncio
    async def test_failed_creation_is_counted(self, maintenance, provisioning):
        provisioning.list_accounts.return_value = []
        provisioning.create_account.side_effect = ExternalAPIError("provisioning", "no")
        payload = json.dumps([{"password": "a", "expired": "2025-02-01"}]).encode()
        result = await maintenance.restore_from_snapshot(payload)
        assert result.failed == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [b"not json", b'{"accounts": "nope"}', b"\xff\xfe"])
    async def test_invalid_payload(self, maintenance, payload):
        with pytest.raises(UserInputError):
            await maintenance.restore_from_snapshot(payload)
