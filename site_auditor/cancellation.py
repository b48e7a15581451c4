"""Cancellation token threaded through the crawl and the analyzer fan-out."""
from __future__ import annotations

import asyncio

from site_auditor.exceptions import RunCancelledError

__all__ = ["CancelToken"]


class CancelToken:
    """One-shot cancellation flag checked before every fetch and before fan-out."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "Cancelled by request") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RunCancelledError(self.reason)

    async def wait(self) -> None:
        await self._event.wait()
