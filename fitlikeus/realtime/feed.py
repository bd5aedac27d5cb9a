"""
Live workout feed.

Bridges store subscriptions (synchronous callbacks, fired from whichever
thread performed the write) onto per-socket asyncio queues.
"""

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from fastapi.encoders import jsonable_encoder

from fitlikeus.core.metrics import ws_active_connections, ws_connections_total
from fitlikeus.core.store import Document, DocumentStore, Query
from fitlikeus.models.workout import Workout

logger = logging.getLogger(__name__)

DEFAULT_FEED_LIMIT = 20


def workouts_query(user_id: str, limit: int = DEFAULT_FEED_LIMIT) -> Query:
    return (
        Query("workouts")
        .where("user_id", "==", user_id)
        .order_by("timestamp", descending=True)
        .limit(limit)
    )


def snapshot_message(docs: List[Document]) -> dict:
    return {
        "type": "workouts.snapshot",
        "workouts": jsonable_encoder([Workout.from_document(doc) for doc in docs]),
    }


class FeedSubscription:
    """One socket's view of a user's recent workouts."""

    def __init__(self, store: DocumentStore, user_id: str, limit: int = DEFAULT_FEED_LIMIT):
        self.user_id = user_id
        self.queue: asyncio.Queue = asyncio.Queue()
        self._store = store
        self._limit = limit
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._unsubscribe = self._store.subscribe(workouts_query(self.user_id, self._limit), self._on_change)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_change(self, docs: List[Document]) -> None:
        message = snapshot_message(docs)
        self._loop.call_soon_threadsafe(self.queue.put_nowait, message)


class FeedHub:
    """Tracks open feed sockets for metrics."""

    def __init__(self):
        self._subscriptions: Dict[int, FeedSubscription] = {}
        self._lock = asyncio.Lock()

    async def open(self, store: DocumentStore, user_id: str, limit: int = DEFAULT_FEED_LIMIT) -> FeedSubscription:
        subscription = FeedSubscription(store, user_id, limit)
        subscription.start()
        async with self._lock:
            self._subscriptions[id(subscription)] = subscription
            ws_connections_total.inc()
            ws_active_connections.set(len(self._subscriptions))
        logger.debug(f"[FEED] Opened workout feed for {user_id}. Total: {len(self._subscriptions)}")
        return subscription

    async def close(self, subscription: FeedSubscription) -> None:
        subscription.stop()
        async with self._lock:
            self._subscriptions.pop(id(subscription), None)
            ws_active_connections.set(len(self._subscriptions))

    @property
    def active(self) -> int:
        return len(self._subscriptions)


hub = FeedHub()
