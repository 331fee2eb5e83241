"""
Telemetry senders.

Provides the EventSender contract the pipeline forwards sampled events
to, and HoneycombSender, which batches events on a background thread and
posts them to the Honeycomb batch API with httpx.

Events arrive pre-sampled: their sample_rate is reported to the backend
as-is and never applied again.
"""

import logging
import queue
import threading
import time
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from ..config.constants import DEFAULT_HTTP_TIMEOUT_SECONDS, DEFAULT_PENDING_EVENTS
from ..config.settings import HoneycombSettings
from ..ingestion.base import Event

logger = logging.getLogger(__name__)

_FLUSH = object()


class EventSender(ABC):
    """Abstract base class for event destinations."""

    @abstractmethod
    def send(self, event: Event) -> None:
        """Queue one pre-sampled event for delivery. May block for backpressure."""
        pass

    def close(self) -> None:
        """Flush outstanding events and release resources."""
        pass

    def __enter__(self) -> "EventSender":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def event_to_batch_item(event: Event) -> dict:
    """
    Convert an event to one item of a Honeycomb batch request.

    Examples:
        >>> from datetime import datetime, timezone
        >>> ev = Event(datetime(2024, 1, 1, tzinfo=timezone.utc), {"a": 1}, 4)
        >>> event_to_batch_item(ev)
        {'time': '2024-01-01T00:00:00+00:00', 'samplerate': 4, 'data': {'a': 1}}
    """
    return {
        "time": event.timestamp.isoformat(),
        "samplerate": event.sample_rate,
        "data": dict(event.fields),
    }


class HoneycombSender(EventSender):
    """
    Batching sender for the Honeycomb events API.

    A batch is posted when it reaches max_batch_size events or when
    send_frequency_ms has passed since its first event, whichever comes
    first. send() blocks once max_pending events are waiting.

    Example:
        with HoneycombSender(settings.honeycomb, dataset="aws-elb-access") as sender:
            sender.send(event)
    """

    def __init__(
        self,
        settings: HoneycombSettings,
        dataset: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        max_pending: int = DEFAULT_PENDING_EVENTS,
        user_agent: str = "access-log-pipeline",
    ):
        """
        Initialize the sender and start its background thread.

        Args:
            settings: Backend settings (write key, API host, batching)
            dataset: Dataset to send to (default: settings.dataset)
            client: Optional pre-configured httpx client (e.g. for tests)
            max_pending: Events allowed to wait before send() blocks
            user_agent: User-Agent header of batch requests
        """
        self.settings = settings
        self.dataset = dataset or settings.dataset
        self._client = client or httpx.Client(timeout=DEFAULT_HTTP_TIMEOUT_SECONDS)
        self._owns_client = client is None
        self._headers = {
            "X-Honeycomb-Team": settings.write_key,
            "User-Agent": user_agent,
        }
        self._pending: queue.Queue = queue.Queue(maxsize=max_pending)
        self._closed = False

        self.events_sent = 0
        self.events_failed = 0

        self._thread = threading.Thread(
            target=self._run,
            name="honeycomb-sender",
            daemon=True,
        )
        self._thread.start()

    @property
    def batch_url(self) -> str:
        """URL of the batch endpoint for the dataset."""
        return f"{self.settings.api_host.rstrip('/')}/1/batch/{self.dataset}"

    def send(self, event: Event) -> None:
        if self._closed:
            raise RuntimeError("Sender is closed")
        self._pending.put(event)

    def close(self) -> None:
        """Flush outstanding sends and stop the background thread."""
        if self._closed:
            return
        self._closed = True
        self._pending.put(_FLUSH)
        self._thread.join()
        if self._owns_client:
            self._client.close()
        logger.info(
            f"Sender closed: {self.events_sent} events sent, "
            f"{self.events_failed} failed"
        )

    def _run(self) -> None:
        batch: list[Event] = []
        interval = self.settings.send_frequency_ms / 1000.0
        flush_at = None

        while True:
            timeout = None if flush_at is None else max(0.0, flush_at - time.monotonic())
            try:
                item = self._pending.get(timeout=timeout)
            except queue.Empty:
                item = None

            if item is _FLUSH:
                self._post(batch)
                return

            if item is not None:
                if not batch:
                    flush_at = time.monotonic() + interval
                batch.append(item)

            if batch and (
                len(batch) >= self.settings.max_batch_size
                or time.monotonic() >= flush_at
            ):
                self._post(batch)
                batch = []
                flush_at = None

    def _post(self, batch: list[Event]) -> None:
        """Send one batch; failures are logged and counted, never retried."""
        if not batch:
            return

        payload = [event_to_batch_item(event) for event in batch]
        try:
            response = self._client.post(
                self.batch_url, json=payload, headers=self._headers
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            self.events_failed += len(batch)
            logger.error(f"Unexpected error sending {len(batch)} events: {e}")
            return

        self.events_sent += len(batch)
        logger.debug(f"Sent batch of {len(batch)} events to {self.dataset}")
