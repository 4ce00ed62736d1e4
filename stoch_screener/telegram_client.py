import time
from collections.abc import Callable

import requests

from .constants import MAX_RETRY_ATTEMPTS, MESSAGE_CHUNK_SIZE, TELEGRAM_TIMEOUT
from .exceptions import TelegramError
from .logger import logger
from .rate_limiter import RateLimiter


def split_message(text: str, max_length: int = MESSAGE_CHUNK_SIZE) -> list[str]:
    """
    Split text into chunks no longer than max_length, breaking at line ends.

    A single line longer than max_length is cut into max_length pieces.
    Chunk edges are stripped of surrounding whitespace.
    """
    if len(text) <= max_length:
        return [text]

    chunks = []
    current = ""

    for line in text.split("\n"):
        if len(current) + len(line) + 1 > max_length:
            if current.strip():
                chunks.append(current.strip())
            current = ""

            if len(line) > max_length:
                chunks.extend(line[i:i + max_length] for i in range(0, len(line), max_length))
            else:
                current = line + "\n"
        else:
            current += line + "\n"

    if current.strip():
        chunks.append(current.strip())

    return chunks


class TelegramClient:
    """
    Telegram Bot API client with retry, connection pooling, and proper error handling.

    Uses requests.Session for TCP connection reuse.
    Critical errors are NOT swallowed - they propagate up.
    Transient errors are retried with exponential backoff.
    Blocking; async callers run it in a worker thread.
    """

    # Shared session for connection pooling
    _session: requests.Session | None = None

    @classmethod
    def _get_session(cls) -> requests.Session:
        """Get or create shared requests session for connection pooling."""
        if cls._session is None:
            cls._session = requests.Session()
            adapter = requests.adapters.HTTPAdapter(
                pool_connections=2,
                pool_maxsize=10,
                max_retries=0
            )
            cls._session.mount('https://', adapter)
            logger.debug("telegram.session_created")
        return cls._session

    def __init__(self, token: str, rate_limiter: RateLimiter | None = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.base = f"https://api.telegram.org/bot{token}"
        self.rate_limiter = rate_limiter or RateLimiter()
        self._sleep = sleep
        self._consecutive_failures = 0
        self._max_consecutive_failures = 5

    def _call(self, method: str, payload: dict, critical: bool = False) -> dict | None:
        """
        POST one Bot API method with retry logic.

        Returns:
            The API "result" object, or None on failure (only when critical=False)

        Raises:
            TelegramError: If the call fails and critical=True, or after max consecutive failures
        """
        self.rate_limiter.wait(f"telegram:{payload.get('chat_id')}")

        url = f"{self.base}/{method}"
        session = self._get_session()
        last_error = None

        for attempt in range(1, MAX_RETRY_ATTEMPTS + 1):
            try:
                logger.debug("telegram.calling", method=method, attempt=attempt)

                r = session.post(url, json=payload, timeout=TELEGRAM_TIMEOUT)

                # Handle rate limiting (429)
                if r.status_code == 429:
                    retry_after = int(r.headers.get('Retry-After', 5))
                    logger.warning("telegram.rate_limited", retry_after=retry_after)
                    last_error = TelegramError("Rate limited", context={"retry_after": retry_after})
                    if attempt < MAX_RETRY_ATTEMPTS:
                        self._sleep(retry_after)
                        continue
                    break

                if 400 <= r.status_code < 500:
                    description = r.json().get("description", r.text) if r.content else r.reason
                    raise TelegramError(f"Telegram rejected {method}: {description}",
                                        context={"status": r.status_code})

                r.raise_for_status()

                result = r.json()
                if not result.get("ok"):
                    raise TelegramError(f"Telegram API error: {result}")

                # Success - reset failure counter
                self._consecutive_failures = 0
                return result.get("result") or {}

            except requests.Timeout as e:
                last_error = e
                logger.warning("telegram.timeout", attempt=attempt)
                if attempt < MAX_RETRY_ATTEMPTS:
                    self._sleep(2 ** attempt)  # Exponential backoff
                    continue

            except requests.RequestException as e:
                last_error = e
                logger.error("telegram.network_error", attempt=attempt, error=str(e)[:50])
                if attempt < MAX_RETRY_ATTEMPTS:
                    self._sleep(2 ** attempt)
                    continue

            except (TelegramError, ValueError) as e:
                last_error = e
                logger.error("telegram.error", method=method, attempt=attempt, error=str(e)[:80])
                break  # Don't retry API rejections

        # All attempts failed
        self._consecutive_failures += 1

        # Check if we've hit max consecutive failures
        if self._consecutive_failures >= self._max_consecutive_failures:
            logger.error(
                "telegram.critical_failure",
                consecutive_failures=self._consecutive_failures,
                error=str(last_error)
            )
            raise TelegramError(
                f"Telegram critically failed: {self._consecutive_failures} consecutive failures. "
                f"Last error: {last_error}"
            )

        if critical:
            raise TelegramError(f"Failed to call {method}: {last_error}")

        logger.warning(
            "telegram.call_failed",
            method=method,
            consecutive_failures=self._consecutive_failures,
            error=str(last_error)[:100]
        )
        return None

    def send(self, chat_id: str, text: str, parse_mode: str = "Markdown", critical: bool = False) -> int | None:
        """
        Send a message.

        Returns:
            Telegram message id, or None if sending failed (only when critical=False)
        """
        result = self._call(
            "sendMessage",
            {"chat_id": chat_id, "text": text, "parse_mode": parse_mode},
            critical=critical,
        )
        if result is None:
            return None
        logger.info("telegram.sent", chat_id=chat_id, chars=len(text))
        return result.get("message_id")

    def edit(self, chat_id: str, message_id: int, text: str, parse_mode: str = "Markdown") -> bool:
        """Replace the text of a previously sent message"""
        result = self._call(
            "editMessageText",
            {"chat_id": chat_id, "message_id": message_id, "text": text, "parse_mode": parse_mode},
        )
        return result is not None

    def send_long(self, chat_id: str, text: str, parse_mode: str = "Markdown") -> int:
        """
        Send text of any length as consecutive messages.

        Returns:
            Number of chunks delivered
        """
        chunks = split_message(text)
        sent = 0
        for chunk in chunks:
            if self.send(chat_id, chunk, parse_mode=parse_mode) is not None:
                sent += 1
        if sent < len(chunks):
            logger.warning("telegram.partial_delivery", chat_id=chat_id, sent=sent, total=len(chunks))
        return sent
