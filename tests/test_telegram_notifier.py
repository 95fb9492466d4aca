"""Tests for Telegram notifier adapter."""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from newsbot.adapters.notifications import TelegramNotifier
from newsbot.core import DeliveryError


def ok_response() -> Mock:
    response = Mock()
    response.status_code = 200
    return response


@pytest.mark.asyncio
async def test_send_success() -> None:
    """Test successful Telegram message."""
    notifier = TelegramNotifier("123:abc", "-10042")

    with patch("httpx.AsyncClient") as mock_client:
        mock_post = AsyncMock(return_value=ok_response())
        mock_client.return_value.__aenter__.return_value.post = mock_post

        await notifier.send("Digest <today>", "<b>1.</b> Post")

        call_args = mock_post.call_args
        assert call_args.args[0] == "https://api.telegram.org/bot123:abc/sendMessage"
        payload = call_args.kwargs["json"]
        assert payload["chat_id"] == "-10042"
        assert payload["parse_mode"] == "HTML"
        assert payload["disable_web_page_preview"] is True
        assert payload["text"] == "<b>Digest &lt;today&gt;</b>\n\n<b>1.</b> Post"


@pytest.mark.asyncio
async def test_long_message_is_chunked() -> None:
    notifier = TelegramNotifier("123:abc", "-10042")
    body = "\n\n".join("entry " + "x" * 1000 for _ in range(10))

    with patch("httpx.AsyncClient") as mock_client:
        mock_post = AsyncMock(return_value=ok_response())
        mock_client.return_value.__aenter__.return_value.post = mock_post

        await notifier.send("", body)

        assert mock_post.call_count == 3
        for call in mock_post.call_args_list:
            assert len(call.kwargs["json"]["text"]) <= 4096


@pytest.mark.asyncio
async def test_api_error_raises() -> None:
    notifier = TelegramNotifier("123:abc", "-10042")

    with patch("httpx.AsyncClient") as mock_client:
        response = Mock()
        response.status_code = 400
        response.json.return_value = {"ok": False, "description": "Bad Request: can't parse entities"}
        mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=response)

        with pytest.raises(DeliveryError, match="can't parse entities"):
            await notifier.send("t", "body")


@pytest.mark.asyncio
async def test_transport_error_raises() -> None:
    notifier = TelegramNotifier("123:abc", "-10042")

    with patch("httpx.AsyncClient") as mock_client:
        mock_client.return_value.__aenter__.return_value.post = AsyncMock(
            side_effect=httpx.ConnectTimeout("timed out")
        )

        with pytest.raises(DeliveryError):
            await notifier.send("t", "body")


def test_requires_credentials() -> None:
    with pytest.raises(ValueError):
        TelegramNotifier("", "-10042")


def test_markup_is_html() -> None:
    assert TelegramNotifier("123:abc", "1").markup == "html"
