# vpn_bot/utils/formatting_utils.py - Message formatting utilities
from typing import Iterable

from ..models.api_models import AccountResult
from ..services.server_info_service import IpInfo
from ..translations import get_message

SEPARATOR = "━" * 25


def format_account_message(account: AccountResult, ip_info: IpInfo, lang: str = "en", trial: bool = False) -> str:
    """Formats the message announcing a freshly created account."""
    header = get_message("account_header_trial" if trial else "account_header_paid", lang)
    body = get_message(
        "account_body", lang,
        password=account.password, expired=account.expired_at, city=ip_info.city, isp=ip_info.isp,
    )
    parts = [header, SEPARATOR, body, SEPARATOR]
    if trial:
        parts.append(get_message("trial_note", lang))
    return "\n".join(parts)


def format_duration(seconds: int) -> str:
    """Formats seconds as ``1d 2h 3m 4s``, omitting leading zero units."""
    seconds = max(int(seconds), 0)
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if days:
        parts.append(f"{days}d")
    if days or hours:
        parts.append(f"{hours}h")
    if days or hours or minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{secs}s")
    return " ".join(parts)


def deadline_minutes(deadline_seconds: int) -> int:
    """Rounds a polling deadline up to whole minutes for display."""
    return max(1, -(-deadline_seconds // 60))


def format_list(items: Iterable[str], limit: int = 30) -> str:
    """Formats plain-text items as a bulleted list, truncated after ``limit`` items."""
    items = list(items)
    lines = [f"• {item}" for item in items[:limit]]
    if len(items) > limit:
        lines.append(f"… +{len(items) - limit}")
    return "\n".join(lines)
