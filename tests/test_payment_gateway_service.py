import asyncio

import aiohttp
import pytest

from config.services_config import PaymentConfig
from exceptions import ExternalAPIError, MalformedResponseError, TransientNetworkError
from apps.vpn_bot.models.api_models import PaymentStatus
from apps.vpn_bot.services.payment_gateway_service import PaymentGatewayService

from conftest import AsyncContextManagerMock, make_http_session, make_response


def make_gateway(*responses, api_key="key"):
    config = PaymentConfig(base_url="https://pay.example/api", project="zivpn", api_key=api_key)
    session = make_http_session(*responses)
    return PaymentGatewayService(session, config), session


class TestInitiateCharge:
    @pytest.mark.asyncio
    async def test_qris_image_returned(self):
        gateway, session = make_gateway(
            make_response(body={"payment": {"qris_image": "https://pay.example/qr.png", "expired_at": "soon"}})
        )
        result = await gateway.initiate_charge("ZIVPN_1_5", 10000)

        assert result.payment_code == "https://pay.example/qr.png"
        assert result.is_image is True
        assert result.amount == 10000
        method, url = session.request.call_args.args
        assert method == "POST"
        assert url == "https://pay.example/api/transactioncreate/qris"
        kwargs = session.request.call_args.kwargs
        assert kwargs["json"] == {"project": "zivpn", "order_id": "ZIVPN_1_5", "amount": 10000, "api_key": "key"}
        assert kwargs["headers"]["Authorization"] == "Bearer key"

    @pytest.mark.asyncio
    async def test_payment_number_used_when_no_image(self):
        gateway, _ = make_gateway(make_response(body={"payment": {"payment_number": "00020101021226"}}), api_key=None)
        result = await gateway.initiate_charge("o", 7000)
        assert result.payment_code == "00020101021226"
        assert result.is_image is False

    @pytest.mark.asyncio
    async def test_error_payload_raises_external_api_error(self):
        gateway, _ = make_gateway(make_response(status=400, body={"error": "project not found"}))
        with pytest.raises(ExternalAPIError) as exc_info:
            await gateway.initiate_charge("o", 7000)
        assert exc_info.value.api_message == "project not found"
        assert not isinstance(exc_info.value, MalformedResponseError)

    @pytest.mark.asyncio
    async def test_payment_without_code_is_malformed(self):
        gateway, _ = make_gateway(make_response(body={"payment": {}}))
        with pytest.raises(MalformedResponseError):
            await gateway.initiate_charge("o", 7000)

    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self):
        gateway, _ = make_gateway(make_response(text="<html>bad gateway</html>"))
        with pytest.raises(MalformedResponseError):
            await gateway.initiate_charge("o", 7000)

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self):
        gateway, _ = make_gateway(make_response(status=502, text="oops"))
        with pytest.raises(TransientNetworkError):
            await gateway.initiate_charge("o", 7000)

    @pytest.mark.asyncio
    async def test_connection_error_is_transient(self):
        gateway, _ = make_gateway(AsyncContextManagerMock(enter_exception=aiohttp.ClientConnectionError("refused")))
        with pytest.raises(TransientNetworkError):
            await gateway.initiate_charge("o", 7000)

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self):
        gateway, _ = make_gateway(AsyncContextManagerMock(enter_exception=asyncio.TimeoutError()))
        with pytest.raises(TransientNetworkError):
            await gateway.initiate_charge("o", 7000)


class TestQueryStatus:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw, expected", [
        ("completed", PaymentStatus.SETTLED),
        ("PAID", PaymentStatus.SETTLED),
        ("pending", PaymentStatus.PENDING),
        ("expired", PaymentStatus.FAILED),
        ("something-new", PaymentStatus.UNKNOWN),
    ])
    async def test_status_mapping(self, raw, expected):
        gateway, session = make_gateway(make_response(body={"transaction": {"status": raw}}))
        result = await gateway.query_status("ZIVPN_1_5", amount=10000)

        assert result.status == expected
        assert result.raw_status == raw
        assert session.request.call_args.kwargs["params"] == {
            "project": "zivpn", "order_id": "ZIVPN_1_5", "amount": 10000, "api_key": "key",
        }

    @pytest.mark.asyncio
    async def test_top_level_status_accepted(self):
        gateway, _ = make_gateway(make_response(body={"status": "pending"}))
        result = await gateway.query_status("o")
        assert result.status == PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_error_without_status(self):
        gateway, _ = make_gateway(make_response(status=404, body={"message": "transaction not found"}))
        with pytest.raises(ExternalAPIError) as exc_info:
            await gateway.query_status("o")
        assert exc_info.value.api_message == "transaction not found"

    @pytest.mark.asyncio
    async def test_transaction_without_status_is_malformed(self):
        gateway, _ = make_gateway(make_response(body={"transaction": {"amount": 1}}))
        with pytest.raises(MalformedResponseError):
            await gateway.query_status("o")
