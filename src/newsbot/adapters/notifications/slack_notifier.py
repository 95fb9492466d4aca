"""Slack notification adapter."""

import logging
import re

import httpx

from newsbot.adapters.notifications.chunking import split_message
from newsbot.core import DeliveryError, Notifier

logger = logging.getLogger(__name__)

# Slack truncates message text beyond 40k characters
MAX_MESSAGE_LEN = 39000


class SlackNotifier(Notifier):
    """Send notifications to Slack via webhook."""

    markup = "markdown"

    def __init__(self, webhook_url: str, timeout: float = 30.0) -> None:
        """Initialize Slack notifier.

        Args:
            webhook_url: Slack incoming webhook URL.
            timeout: Per-request timeout in seconds.
        """
        if not webhook_url:
            raise ValueError("Slack webhook URL is required")
        self.webhook_url = webhook_url
        self.timeout = timeout

    def _convert_markdown_to_mrkdwn(self, text: str) -> str:
        """Convert markdown to Slack mrkdwn format.

        Args:
            text: Markdown text

        Returns:
            Text in Slack mrkdwn format
        """
        # Convert markdown links [text](url) to Slack format <url|text>
        text = re.sub(r'\[([^\]]+)\]\(([^)]+)\)', r'<\2|\1>', text)

        # Convert markdown bold **text** to Slack bold *text*
        text = re.sub(r'\*\*([^*]+)\*\*', r'*\1*', text)

        return text

    async def send(self, title: str, body: str) -> None:
        """Send a digest to Slack.

        Args:
            title: Message headline
            body: Digest text (in markdown)

        Raises:
            DeliveryError: if Slack rejects the message or is unreachable.
        """
        message = self._convert_markdown_to_mrkdwn(body)
        if title:
            message = f"📡 *{title}*\n\n{message}"

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for chunk in split_message(message, MAX_MESSAGE_LEN):
                try:
                    response = await client.post(
                        self.webhook_url, json={"text": chunk, "mrkdwn": True}
                    )
                    response.raise_for_status()
                except httpx.HTTPError as e:
                    raise DeliveryError(f"slack webhook: {e}") from e

        logger.info("Sent digest to Slack")
