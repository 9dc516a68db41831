import pytest

from config.services_config import ProvisioningConfig
from exceptions import ExternalAPIError, MalformedResponseError, TransientNetworkError
from apps.vpn_bot.services.provisioning_service import ProvisioningService

from conftest import make_http_session, make_response


def make_client(*responses):
    config = ProvisioningConfig(api_url="http://127.0.0.1:8080/api", api_key="apikey")
    session = make_http_session(*responses)
    return ProvisioningService(session, config), session


class TestProvisioningService:
    @pytest.mark.asyncio
    async def test_create_account_success(self):
        client, session = make_client(
            make_response(body={"success": True, "message": "ok", "data": {"expired": "2025-01-02"}})
        )
        result = await client.create_account("abc123", 1)

        assert result.password == "abc123"
        assert result.expired_at == "2025-01-02"
        method, url = session.request.call_args.args
        assert (method, url) == ("POST", "http://127.0.0.1:8080/api/user/create")
        assert session.request.call_args.kwargs["json"] == {"password": "abc123", "days": 1}
        assert session.request.call_args.kwargs["headers"]["X-API-Key"] == "apikey"

    @pytest.mark.asyncio
    async def test_create_account_failure_keeps_backend_message(self):
        client, _ = make_client(make_response(body={"success": False, "message": "User sudah ada"}))
        with pytest.raises(ExternalAPIError) as exc_info:
            await client.create_account("abc123", 1)
        assert exc_info.value.api_message == "User sudah ada"

    @pytest.mark.asyncio
    async def test_create_account_is_not_retried(self):
        client, session = make_client(make_response(status=503, text="down"), make_response(body={"success": True}))
        with pytest.raises(TransientNetworkError):
            await client.create_account("abc123", 1)
        assert session.request.call_count == 1

    @pytest.mark.asyncio
    async def test_create_account_without_expiry_is_malformed(self):
        client, _ = make_client(make_response(body={"success": True, "data": None}))
        with pytest.raises(MalformedResponseError):
            await client.create_account("abc123", 1)

    @pytest.mark.asyncio
    async def test_list_accounts(self):
        client, session = make_client(make_response(body={
            "success": True,
            "data": [{"password": "a", "expired": "2025-01-01"}, {"password": "b", "expired": "2030-05-05", "extra": 1}],
        }))
        accounts = await client.list_accounts()

        assert [a.password for a in accounts] == ["a", "b"]
        assert session.request.call_args.args == ("GET", "http://127.0.0.1:8080/api/users")

    @pytest.mark.asyncio
    async def test_list_accounts_retries_transient_error(self):
        client, session = make_client(
            make_response(status=500, text="busy"),
            make_response(body={"success": True, "data": []}),
        )
        assert await client.list_accounts() == []
        assert session.request.call_count == 2

    @pytest.mark.asyncio
    async def test_list_accounts_rejects_non_list(self):
        client, _ = make_client(make_response(body={"success": True, "data": {"password": "a"}}))
        with pytest.raises(MalformedResponseError):
            await client.list_accounts()

    @pytest.mark.asyncio
    async def test_delete_account(self):
        client, session = make_client(make_response(body={"success": True}))
        await client.delete_account("old")
        assert session.request.call_args.kwargs["json"] == {"password": "old"}
