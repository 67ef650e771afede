"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Tue Feb 03 2026
# SPDX-License-Identifier: MIT
"""

import logging
import threading
from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

AUTH_CHANNEL = "auth"

# Auth stream events
SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
ROLE_CHANGED = "ROLE_CHANGED"


@dataclass(frozen=True)
class ChangeEvent:
    """
    "Something changed" notification. Receivers treat it as an invalidation signal
    and re-read the affected collection; the fields only identify what changed.
    """

    channel: str
    event: str
    record_id: Optional[int] = None
    user_id: Optional[int] = None

    def to_message(self) -> dict:
        return asdict(self)


Listener = Callable[[ChangeEvent], None]
Matcher = Callable[[ChangeEvent], bool]


class Subscription:
    def __init__(self, feed: "ChangeFeed", channel: str, listener: Listener, match: Optional[Matcher] = None):
        self._feed = feed
        self.channel = channel
        self.listener = listener
        self.match = match
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._feed._remove(self)
            self.active = False


class ChangeFeed:
    """
    In-process publish/subscribe hub keyed by channel (table name or the auth stream).

    Listeners are invoked synchronously on the publishing thread; a listener that needs
    to reach an event loop must hand the event over itself.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: Dict[str, List[Subscription]] = defaultdict(list)

    def subscribe(self, channel: str, listener: Listener, match: Optional[Matcher] = None) -> Subscription:
        subscription = Subscription(self, channel, listener, match)
        with self._lock:
            self._subscriptions[channel].append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscriptions.get(subscription.channel, [])
            if subscription in subscribers:
                subscribers.remove(subscription)

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(channel, []))

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            subscribers = list(self._subscriptions.get(event.channel, []))
        for subscription in subscribers:
            if subscription.match is not None and not subscription.match(event):
                continue
            try:
                subscription.listener(event)
            except Exception:
                logger.exception("Change listener failed for %s/%s", event.channel, event.event)


change_feed = ChangeFeed()


def notify_change(table: str, event: str, record_id: Optional[int] = None, user_id: Optional[int] = None) -> None:
    """
    Publishes a row change on the table's channel. Called after the write is committed.
    """
    change_feed.publish(ChangeEvent(channel=table, event=event, record_id=record_id, user_id=user_id))


def notify_auth(event: str, user_id: int) -> None:
    change_feed.publish(ChangeEvent(channel=AUTH_CHANNEL, event=event, user_id=user_id))
