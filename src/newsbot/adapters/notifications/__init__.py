"""Notification adapters."""

from typing import Optional

from newsbot.adapters.notifications.slack_notifier import SlackNotifier
from newsbot.adapters.notifications.telegram_notifier import TelegramNotifier
from newsbot.config import Settings
from newsbot.core import Notifier


def create_notifier(settings: Settings) -> Optional[Notifier]:
    """Telegram if configured, else Slack, else no delivery channel."""
    if settings.telegram.is_configured:
        return TelegramNotifier(settings.telegram.bot_token, settings.telegram.chat_id)
    if settings.slack.is_configured:
        return SlackNotifier(settings.slack.webhook_url)
    return None


__all__ = ["SlackNotifier", "TelegramNotifier", "create_notifier"]
