import pytest
from unittest.mock import AsyncMock, MagicMock

from telegram.error import BadRequest, Forbidden, NetworkError

from exceptions import TransientNetworkError
from apps.vpn_bot.services.telegram_service import TelegramChatTransport


@pytest.fixture
def bot():
    bot = MagicMock()
    bot.send_message = AsyncMock(return_value=MagicMock(message_id=10))
    bot.send_photo = AsyncMock(return_value=MagicMock(message_id=11))
    bot.send_document = AsyncMock(return_value=MagicMock(message_id=12))
    return bot


class TestTelegramChatTransport:
    @pytest.mark.asyncio
    async def test_send_text_with_buttons(self, bot):
        transport = TelegramChatTransport(bot)
        assert await transport.send_text(1, "hi", buttons=[[("Trial", "trial")]]) == 10
        kwargs = bot.send_message.await_args.kwargs
        assert kwargs["parse_mode"] == "HTML"
        assert kwargs["reply_markup"].inline_keyboard[0][0].callback_data == "trial"

    @pytest.mark.asyncio
    async def test_blocked_user_is_not_an_error(self, bot):
        bot.send_message.side_effect = Forbidden("bot was blocked by the user")
        assert await TelegramChatTransport(bot).send_text(1, "hi") is None

    @pytest.mark.asyncio
    async def test_photo_failure_falls_back_to_text(self, bot):
        bot.send_photo.side_effect = BadRequest("wrong file identifier")
        result = await TelegramChatTransport(bot).send_photo(1, "https://pay.example/qr.png", caption="Pay")
        assert result == 10
        assert "https://pay.example/qr.png" in bot.send_message.await_args.kwargs["text"]

    @pytest.mark.asyncio
    async def test_photo_fallback_escapes_url_query(self, bot):
        bot.send_photo.side_effect = BadRequest("wrong file identifier")
        url = "https://pay.example/qr?order=1&amount=7000"
        await TelegramChatTransport(bot).send_photo(1, url, caption="<b>Pay</b>")
        kwargs = bot.send_message.await_args.kwargs
        assert kwargs["parse_mode"] == "HTML"
        assert kwargs["text"] == "<b>Pay</b>\n\nhttps://pay.example/qr?order=1&amp;amount=7000"

    @pytest.mark.asyncio
    async def test_send_missing_document(self, bot, tmp_path):
        assert await TelegramChatTransport(bot).send_document(1, str(tmp_path / "missing.json")) is None
        bot.send_document.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_download_document(self, bot):
        telegram_file = MagicMock()
        telegram_file.download_as_bytearray = AsyncMock(return_value=bytearray(b"[]"))
        bot.get_file = AsyncMock(return_value=telegram_file)
        assert await TelegramChatTransport(bot).download_document("file-1") == b"[]"

    @pytest.mark.asyncio
    async def test_download_network_error_is_transient(self, bot):
        bot.get_file = AsyncMock(side_effect=NetworkError("reset"))
        transport = TelegramChatTransport(bot)
        with pytest.raises(TransientNetworkError):
            await transport.download_document.__wrapped__(transport, "file-1")
