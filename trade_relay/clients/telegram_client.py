"""
Telegram Bot API client.
Long-polls updates and sends chat messages.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import aiohttp

from ..utils.logger import get_logger

logger = get_logger("telegram")

TELEGRAM_MAX_LEN = 4000  # API limit is 4096


@dataclass
class ChatMessage:
    """Incoming text message."""
    update_id: int
    chat_id: str
    user_id: str
    text: str
    username: Optional[str] = None


def split_long_message(text: str, max_len: int = TELEGRAM_MAX_LEN) -> list[str]:
    """Split text on line boundaries so each chunk fits one message."""
    if len(text) <= max_len:
        return [text]

    chunks = []
    current = ""
    for line in text.split("\n"):
        while len(line) > max_len:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:max_len])
            line = line[max_len:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > max_len:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


class TelegramClient:
    """
    Minimal async client for the Telegram Bot API.

    Doubles as the notification sink for the order monitor: notify()
    never raises, failures are logged and dropped.
    """

    def __init__(
        self,
        bot_token: str,
        api_url: str = "https://api.telegram.org",
        poll_timeout_seconds: int = 25
    ):
        """
        Initialize Telegram client.

        Args:
            bot_token: Bot token from @BotFather
            api_url: Bot API base URL
            poll_timeout_seconds: Long-poll timeout for getUpdates
        """
        self.base_url = f"{api_url}/bot{bot_token}"
        self.poll_timeout_seconds = poll_timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None
        self._offset = 0

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if not self._session:
            self._session = aiohttp.ClientSession()
        logger.info("Telegram client initialized")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def _request(self, method: str, payload: dict, timeout: float = 10.0) -> dict:
        """Call a Bot API method and return its result."""
        if not self._session:
            await self.initialize()

        url = f"{self.base_url}/{method}"
        async with self._session.post(
            url,
            json=payload,
            timeout=aiohttp.ClientTimeout(total=timeout)
        ) as response:
            data = await response.json(content_type=None)
            if not data.get("ok"):
                raise aiohttp.ClientResponseError(
                    response.request_info,
                    response.history,
                    status=response.status,
                    message=str(data.get("description", "Telegram API error"))
                )
            return data.get("result")

    async def get_updates(self) -> list[ChatMessage]:
        """
        Long-poll for new text messages.

        Returns:
            Messages received since the last call
        """
        result = await self._request(
            "getUpdates",
            {
                "offset": self._offset,
                "timeout": self.poll_timeout_seconds,
                "allowed_updates": ["message"]
            },
            timeout=self.poll_timeout_seconds + 10
        )

        messages = []
        for update in result or []:
            self._offset = max(self._offset, update["update_id"] + 1)
            message = self._parse_message(update)
            if message:
                messages.append(message)
        return messages

    async def send_message(self, chat_id: str, text: str) -> None:
        """Send a message, splitting it when it exceeds the API limit."""
        for chunk in split_long_message(text):
            await self._request(
                "sendMessage",
                {
                    "chat_id": chat_id,
                    "text": chunk,
                    "disable_web_page_preview": True
                }
            )

    async def notify(self, channel: str, message: str) -> None:
        """Best-effort send. Failures are logged and swallowed."""
        try:
            await self.send_message(channel, message)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(
                f"Failed to deliver notification: {e}",
                extra={"chat_id": channel}
            )
        except Exception as e:
            logger.error(
                f"Unexpected notification error: {e}",
                extra={"chat_id": channel},
                exc_info=True
            )

    @staticmethod
    def _parse_message(update: dict) -> Optional[ChatMessage]:
        message = update.get("message") or {}
        text = message.get("text")
        sender = message.get("from") or {}
        chat = message.get("chat") or {}
        if not text or "id" not in sender or "id" not in chat:
            return None
        return ChatMessage(
            update_id=update["update_id"],
            chat_id=str(chat["id"]),
            user_id=str(sender["id"]),
            text=text.strip(),
            username=sender.get("username")
        )
