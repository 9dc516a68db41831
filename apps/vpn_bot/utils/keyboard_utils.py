# vpn_bot/utils/keyboard_utils.py - Keyboard creation utilities
from typing import Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from ..interfaces.chat_transport_interface import Buttons
from ..translations import get_message

# Callback data of the inline buttons
BUTTON_TRIAL = "trial"
BUTTON_PAID = "create_paid"
BUTTON_INFO = "system_info"
BUTTON_ADMIN_BACKUP = "admin_backup"
BUTTON_ADMIN_RESTORE = "admin_restore"


def get_main_menu_buttons(lang: str = "en", is_admin: bool = False, trial_days: int = 1) -> Buttons:
    """Main menu layout; administrators get an extra row."""
    rows = [
        [
            (get_message("btn_trial", lang, days=trial_days), BUTTON_TRIAL),
            (get_message("btn_paid", lang), BUTTON_PAID),
        ],
        [(get_message("btn_info", lang), BUTTON_INFO)],
    ]
    if is_admin:
        rows.append([
            (get_message("btn_admin_backup", lang), BUTTON_ADMIN_BACKUP),
            (get_message("btn_admin_restore", lang), BUTTON_ADMIN_RESTORE),
        ])
    return rows


def build_inline_keyboard(buttons: Optional[Buttons]) -> Optional[InlineKeyboardMarkup]:
    """Converts (label, callback data) rows into a Telegram inline keyboard."""
    if not buttons:
        return None
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(label, callback_data=data) for label, data in row] for row in buttons]
    )
