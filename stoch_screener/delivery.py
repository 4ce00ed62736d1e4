"""
Hand finished reports and scan progress to chat subscribers.

The Telegram client is blocking, so every call runs in a worker thread.
Delivery failures are logged and counted; they never reach the scan.
"""
import asyncio

from .constants import PROGRESS_EVERY
from .exceptions import TelegramError
from .logger import logger
from .models import ScanReport
from .telegram_client import TelegramClient


def progress_text(title: str, processed: int, total: int) -> str:
    pct = processed / total * 100 if total else 100.0
    icon = "✅" if processed >= total else "⏳"
    return f"{icon} *{title}*\nProgress: {processed}/{total} ({pct:.0f}%)"


class ProgressMessage:
    """
    One chat message that follows a scan's progress.

    Calling the instance never waits on Telegram: the post or edit runs in a
    background task. While a call is in flight, newer updates replace the
    pending one, so only the latest state is sent next. ``flush()`` waits for
    the outstanding call; run it after the scan so the final state lands.
    """

    def __init__(self, client: TelegramClient, chat_id: str, title: str, every: int = PROGRESS_EVERY):
        self.client = client
        self.chat_id = chat_id
        self.title = title
        self.every = every
        self.started = False
        self.posted = False
        self.message_id: int | None = None
        self._pending: tuple[int, int] | None = None
        self._task: asyncio.Task | None = None

    def __call__(self, processed: int, total: int):
        if self.started and (processed % self.every and processed != total):
            return
        # Initial post failed; nothing to edit
        if self.posted and self.message_id is None:
            return
        self.started = True

        self._pending = (processed, total)
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._send_pending())

    async def _send_pending(self):
        while self._pending is not None:
            processed, total = self._pending
            self._pending = None
            text = progress_text(self.title, processed, total)

            try:
                if not self.posted:
                    self.posted = True
                    self.message_id = await asyncio.to_thread(self.client.send, self.chat_id, text)
                elif self.message_id is not None:
                    await asyncio.to_thread(self.client.edit, self.chat_id, self.message_id, text)
            except TelegramError as e:
                logger.error("delivery.progress_failed", chat_id=self.chat_id, error=e.message[:100])

            if self.message_id is None:
                self._pending = None

    async def flush(self):
        """Wait until the latest update has been sent"""
        if self._task is not None:
            await self._task


class ReportDelivery:
    """Send reports to every subscribed chat"""

    def __init__(self, client: TelegramClient, chat_ids: list[str]):
        self.client = client
        self.chat_ids = list(chat_ids)

    async def deliver(self, report: ScanReport) -> dict:
        """
        Send report text to all chats, split to the message size limit.

        Returns:
            {"delivered": n, "failed": n} counted per chat
        """
        delivered = 0
        failed = 0

        for chat_id in self.chat_ids:
            try:
                sent = await asyncio.to_thread(self.client.send_long, chat_id, report.text)
            except TelegramError as e:
                logger.error("delivery.failed", chat_id=chat_id, error=e.message[:100])
                failed += 1
                continue

            if sent:
                delivered += 1
            else:
                failed += 1

        logger.info("delivery.completed", mode=report.mode.value, delivered=delivered, failed=failed)
        return {"delivered": delivered, "failed": failed}

    def progress_reporter(self, chat_id: str, title: str, every: int = PROGRESS_EVERY) -> ProgressMessage:
        """
        Build an on_progress handler that keeps one chat message up to date.

        The message is posted on the first call and edited every ``every``
        completions and once more at 100%.
        """
        return ProgressMessage(self.client, chat_id, title, every)
