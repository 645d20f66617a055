from __future__ import annotations

import asyncio
import json
from typing import Set

from rental_safety.models import AnalysisResult


class ResultHub:
    """In-process fan-out of analysis results as server-sent events.

    Each subscriber gets its own bounded queue of encoded SSE frames. A full
    queue means the client is not reading; its frames are dropped.
    """

    def __init__(self, maxsize: int = 100) -> None:
        self._subs: Set[asyncio.Queue[bytes]] = set()
        self._maxsize = maxsize

    def subscribe(self) -> asyncio.Queue[bytes]:
        q: asyncio.Queue[bytes] = asyncio.Queue(maxsize=self._maxsize)
        self._subs.add(q)
        return q

    def unsubscribe(self, q: asyncio.Queue[bytes]) -> None:
        self._subs.discard(q)

    @staticmethod
    def frame(event: str, analysis_id: str, result: AnalysisResult) -> bytes:
        data = json.dumps({"id": analysis_id, "result": result.model_dump(mode="json")})
        return f"event: {event}\ndata: {data}\n\n".encode("utf-8")

    def publish(self, event: str, analysis_id: str, result: AnalysisResult) -> int:
        """Send ``result`` to every subscriber; returns how many got it."""
        payload = self.frame(event, analysis_id, result)
        delivered = 0
        for q in list(self._subs):
            try:
                q.put_nowait(payload)
                delivered += 1
            except asyncio.QueueFull:
                pass
        return delivered


hub = ResultHub()
