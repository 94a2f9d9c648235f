"""Token bucket rate limiting for outbound API calls."""
import asyncio
import time
from threading import Lock


class RateLimiter:
    """
    Token bucket rate limiter shared by the outbound integrations.

    The Gmail client waits synchronously (the Google client library blocks),
    the Firecrawl client waits on the event loop.
    """

    def __init__(self, requests_per_minute: int = 60):
        self.rate = requests_per_minute
        self.tokens = float(requests_per_minute)
        self.last_update = time.monotonic()
        self.lock = Lock()

    def acquire(self, tokens: int = 1) -> bool:
        """Take tokens from the bucket if enough are available."""
        with self.lock:
            now = time.monotonic()
            refill = (now - self.last_update) * (self.rate / 60)
            self.tokens = min(float(self.rate), self.tokens + refill)
            self.last_update = now

            if self.tokens < tokens:
                return False
            self.tokens -= tokens
            return True

    def wait(self, tokens: int = 1) -> None:
        """Block until tokens are available."""
        while not self.acquire(tokens):
            time.sleep(0.1)

    async def async_wait(self, tokens: int = 1) -> None:
        """Yield to the event loop until tokens are available."""
        while not self.acquire(tokens):
            await asyncio.sleep(0.1)
