import pytest

from apps.vpn_bot.models.api_models import AccountRecord, AccountResult, PaymentStatus
from apps.vpn_bot.services.server_info_service import IpInfo
from apps.vpn_bot.translations import get_message
from apps.vpn_bot.utils.formatting_utils import deadline_minutes, format_account_message, format_duration, format_list
from apps.vpn_bot.utils.keyboard_utils import build_inline_keyboard, get_main_menu_buttons


class TestFormatting:
    @pytest.mark.parametrize("seconds, expected", [
        (0, "0s"),
        (59, "59s"),
        (61, "1m 1s"),
        (3600, "1h 0m 0s"),
        (90061, "1d 1h 1m 1s"),
    ])
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_deadline_minutes_rounds_up(self):
        assert deadline_minutes(300) == 5
        assert deadline_minutes(301) == 6
        assert deadline_minutes(0) == 1

    def test_format_list_truncates(self):
        assert format_list(["a", "b"]) == "• a\n• b"
        assert format_list([str(i) for i in range(5)], limit=2) == "• 0\n• 1\n… +3"

    def test_account_message_escapes_password(self):
        account = AccountResult(password="<b>&x", expired_at="2025-01-02")
        message = format_account_message(account, IpInfo(city="Jakarta", isp="AS1 Net"), trial=True)
        assert "&lt;b&gt;&amp;x" in message
        assert "2025-01-02" in message
        assert "once per Telegram account" in message

    def test_paid_account_message_has_no_trial_note(self):
        account = AccountResult(password="p", expired_at="2025-01-02")
        message = format_account_message(account, IpInfo(city="c", isp="i"))
        assert "PAYMENT RECEIVED" in message
        assert "once per Telegram account" not in message


class TestTranslations:
    def test_falls_back_to_english(self):
        assert get_message("cancelled", "fr") == get_message("cancelled", "en")

    def test_indonesian(self):
        assert get_message("trial_already_used", "id") == "❌ Anda sudah menggunakan trial sekali."

    def test_unknown_key_is_empty(self):
        assert get_message("no_such_key") == ""


class TestKeyboards:
    def test_menu_layout(self):
        rows = get_main_menu_buttons("en", is_admin=False, trial_days=1)
        assert [[d for _, d in row] for row in rows] == [["trial", "create_paid"], ["system_info"]]

    def test_inline_keyboard(self):
        markup = build_inline_keyboard(get_main_menu_buttons("en", is_admin=True))
        assert markup.inline_keyboard[2][0].callback_data == "admin_backup"
        assert build_inline_keyboard(None) is None


class TestApiModels:
    @pytest.mark.parametrize("raw, expected", [
        ("settlement", PaymentStatus.SETTLED),
        ("Success", PaymentStatus.SETTLED),
        (" pending ", PaymentStatus.PENDING),
        ("cancelled", PaymentStatus.FAILED),
        (None, PaymentStatus.UNKNOWN),
    ])
    def test_payment_status_from_raw(self, raw, expected):
        assert PaymentStatus.from_raw(raw) == expected

    def test_account_expiry_date(self):
        assert AccountRecord(password="a", expired="2025-01-02").expiry_date().isoformat() == "2025-01-02"
        assert AccountRecord(password="a", expired="2025-01-02 10:00:00").expiry_date().isoformat() == "2025-01-02"
        assert AccountRecord(password="a", expired="unknown").expiry_date() is None
