"""
Scan notifications
------------------
The scan core reports through a ``NotificationSink`` and knows nothing about
who listens. Three event names travel on the wire: ``mediaFound`` (a batch of
MediaFile records), ``scanProgress`` (a ScanProgress snapshot) and
``scanError`` (a message string).

``EventHub`` fans events out to any number of subscribers (the SSE route
holds one per connection). Each subscriber owns a bounded queue; when a slow
reader lets it fill up, the oldest event is discarded so the scan never waits
on a consumer.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from queue import Empty, Full, Queue
from typing import Any, Dict, List, Optional, Protocol, Sequence

from poto.constants import EVENT_MEDIA_FOUND, EVENT_SCAN_ERROR, EVENT_SCAN_PROGRESS
from poto.schemas.media import MediaItem, ScanProgressModel
from poto.services.media_models import MediaFile, ScanProgress

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def media_found(self, batch: Sequence[MediaFile]) -> None: ...

    def scan_progress(self, progress: ScanProgress) -> None: ...

    def scan_error(self, message: str) -> None: ...


def media_found_payload(batch: Sequence[MediaFile]) -> List[Dict[str, Any]]:
    return [MediaItem.from_domain(media).to_payload() for media in batch]


def scan_progress_payload(progress: ScanProgress) -> Dict[str, Any]:
    return ScanProgressModel.from_domain(progress).model_dump(mode="json")


@dataclass(frozen=True)
class Event:
    name: str
    data: Any


class Subscription:
    def __init__(self, hub: "EventHub", maxsize: int) -> None:
        self._hub = hub
        self._queue: Queue[Event] = Queue(maxsize=max(maxsize, 1))
        self._lock = threading.Lock()
        self.dropped = 0

    def push(self, event: Event) -> None:
        with self._lock:
            while True:
                try:
                    self._queue.put_nowait(event)
                    return
                except Full:
                    try:
                        self._queue.get_nowait()
                        self.dropped += 1
                    except Empty:
                        pass

    def get(self, timeout: Optional[float] = None) -> Optional[Event]:
        try:
            return self._queue.get(timeout=timeout)
        except Empty:
            return None

    def close(self) -> None:
        self._hub.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class EventHub:
    def __init__(self, *, queue_size: int = 256) -> None:
        self._queue_size = queue_size
        self._subscribers: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self) -> Subscription:
        sub = Subscription(self, self._queue_size)
        with self._lock:
            self._subscribers.append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscribers:
                self._subscribers.remove(sub)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, name: str, data: Any) -> None:
        with self._lock:
            targets = list(self._subscribers)
        event = Event(name, data)
        for sub in targets:
            sub.push(event)

    def media_found(self, batch: Sequence[MediaFile]) -> None:
        if batch:
            self.publish(EVENT_MEDIA_FOUND, media_found_payload(batch))

    def scan_progress(self, progress: ScanProgress) -> None:
        self.publish(EVENT_SCAN_PROGRESS, scan_progress_payload(progress))

    def scan_error(self, message: str) -> None:
        self.publish(EVENT_SCAN_ERROR, message)


class LoggingSink:
    """Event trace at DEBUG; the session itself logs start, finish and walk errors."""

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._log = log or logger

    def media_found(self, batch: Sequence[MediaFile]) -> None:
        self._log.debug("%s: %d item(s)", EVENT_MEDIA_FOUND, len(batch))

    def scan_progress(self, progress: ScanProgress) -> None:
        self._log.debug(
            "%s: scanned=%d found=%d at %s complete=%s",
            EVENT_SCAN_PROGRESS,
            progress.scanned_files,
            progress.found_media,
            progress.current_path,
            progress.is_complete,
        )

    def scan_error(self, message: str) -> None:
        self._log.debug("%s: %s", EVENT_SCAN_ERROR, message)


class CompositeSink:
    """Forwards every event to each sink in order; one failing sink does not starve the others."""

    def __init__(self, *sinks: NotificationSink) -> None:
        self._sinks = list(sinks)

    def _each(self, method: str, arg: Any) -> None:
        for sink in self._sinks:
            try:
                getattr(sink, method)(arg)
            except Exception:
                logger.exception("Notification sink %r failed on %s", sink, method)

    def media_found(self, batch: Sequence[MediaFile]) -> None:
        self._each("media_found", batch)

    def scan_progress(self, progress: ScanProgress) -> None:
        self._each("scan_progress", progress)

    def scan_error(self, message: str) -> None:
        self._each("scan_error", message)
